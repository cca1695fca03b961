from contextlib import asynccontextmanager

from fastapi import FastAPI

from gigflow.shared.config import settings
from gigflow.shared.db import init_db
from gigflow.shared.errors import register_error_handlers
from gigflow.shared.log import configure_logging

# Routers Import
from gigflow.auth.api import router as auth_router
from gigflow.users.api import router as users_router
from gigflow.gigs.api import router as gigs_router
from gigflow.bids.api import router as bids_router
from gigflow.notifications.api import router as notifications_router

TAGS_METADATA = [
    {"name": "Auth", "description": "Register, verify, log in"},
    {"name": "Users", "description": "Profile and account removal"},
    {"name": "Gigs", "description": "Post, browse, close and delete gigs"},
    {"name": "Bids", "description": "Bid on gigs and hire a freelancer"},
    {"name": "Notifications", "description": "Server-sent notification stream"},
    {"name": "Health", "description": "Service health"},
]

configure_logging(settings.LOG_LEVEL)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

app = FastAPI(
    title="GigFlow",
    version="0.1.0",
    description="Gig marketplace: post gigs, bid, hire.",
    openapi_tags=TAGS_METADATA,
    lifespan=lifespan,
)

register_error_handlers(app)

@app.get("/healthz", tags=["Health"])
def healthz():
    return {"ok": True}

# Mount feature routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(gigs_router)
app.include_router(bids_router)
app.include_router(notifications_router)

