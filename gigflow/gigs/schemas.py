from datetime import datetime
from typing import List, Literal
from pydantic import BaseModel, Field, ConfigDict

from gigflow.gigs.service import GigListing

class GigCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    budget: float = Field(gt=0)

class GigStatusUpdate(BaseModel):
    # Open is only ever the initial state
    status: Literal["Closed"]

class OwnerOut(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None

class GigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    title: str
    description: str
    budget: float
    status: str
    owner_id: str
    created_at: datetime

class GigListingOut(GigOut):
    owner: OwnerOut
    bid_count: int

class GigList(BaseModel):
    items: List[GigListingOut]

def listing_out(row: GigListing) -> GigListingOut:
    g = row.gig
    return GigListingOut(
        id=g.id, title=g.title, description=g.description, budget=g.budget, status=g.status,
        owner_id=g.owner_id, created_at=g.created_at,
        owner=OwnerOut(id=g.owner_id, name=row.owner_name, email=row.owner_email),
        bid_count=row.bid_count,
    )
