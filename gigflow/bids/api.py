from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gigflow.shared.db import get_db
from gigflow.shared.auth import Requester, get_requester
from gigflow.bids.schemas import (
    BidCreate, BidOut, BidList, MyBidList, HireOut, with_freelancer, with_gig,
)
from gigflow.bids.service import (
    create_bid,
    list_bids_for_gig,
    find_bid_by_freelancer,
    list_bids_for_freelancer,
)
from gigflow.bids.hiring import hire

router = APIRouter(prefix="/bids", tags=["Bids"])

@router.post("", response_model=BidOut, status_code=201)
def place(payload: BidCreate, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    return create_bid(db, payload.gig_id, user.id, payload.message, payload.price)

# static paths before /{gig_id}
@router.get("/mine", response_model=MyBidList)
def mine(user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    return {"items": [with_gig(row) for row in list_bids_for_freelancer(db, user.id)]}

@router.get("/check/{gig_id}", response_model=BidOut | None)
def check(gig_id: str, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    return find_bid_by_freelancer(db, gig_id, user.id)

@router.get("/{gig_id}", response_model=BidList)
def for_gig(gig_id: str, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    return {"items": [with_freelancer(row) for row in list_bids_for_gig(db, gig_id, user.id)]}

@router.patch("/{bid_id}/hire", response_model=HireOut)
def hire_freelancer(bid_id: str, user: Requester = Depends(get_requester), db: Session = Depends(get_db)):
    bid = hire(db, bid_id, user.id)
    return HireOut(message="freelancer hired successfully", bid=BidOut.model_validate(bid))
