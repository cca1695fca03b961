from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gigflow.shared.db import get_db
from gigflow.shared.auth import Requester, get_requester
from gigflow.shared.http import ok
from gigflow.gigs.schemas import GigCreate, GigStatusUpdate, GigOut, GigListingOut, GigList, listing_out
from gigflow.gigs.service import (
    create_gig,
    get_gig,
    list_open_gigs,
    list_gigs_for_owner,
    close_gig,
    delete_gig,
)

router = APIRouter(prefix="/gigs", tags=["Gigs"])

@router.get("", response_model=GigList)
def list_open(search: str | None = Query(None, max_length=200), db: Session = Depends(get_db)):
    return {"items": [listing_out(row) for row in list_open_gigs(db, search)]}

@router.post("", response_model=GigOut, status_code=201)
def create(payload: GigCreate, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    return create_gig(db, user.id, payload.title, payload.description, payload.budget)

@router.get("/mine", response_model=GigList)
def mine(user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    return {"items": [listing_out(row) for row in list_gigs_for_owner(db, user.id)]}

@router.get("/{gig_id}", response_model=GigListingOut)
def detail(gig_id: str, db: Session = Depends(get_db)):
    return listing_out(get_gig(db, gig_id))

@router.patch("/{gig_id}/status", response_model=GigOut)
def update_status(
    gig_id: str, payload: GigStatusUpdate, user: Requester = Depends(get_requester), db: Session = Depends(get_db)
):
    return close_gig(db, gig_id, user.id)

@router.delete("/{gig_id}")
def remove(gig_id: str, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    delete_gig(db, gig_id, user.id)
    return ok(message="gig deleted")
