from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from gigflow.bids.service import BidWithFreelancer, BidWithGig

class BidCreate(BaseModel):
    gig_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    price: float = Field(gt=0)

class BidOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    gig_id: str
    freelancer_id: str
    message: str
    price: float
    status: str
    created_at: datetime

class FreelancerOut(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None

class BidWithFreelancerOut(BidOut):
    freelancer: FreelancerOut

class GigSummaryOut(BaseModel):
    id: str
    title: str
    budget: float
    status: str
    owner_id: str
    owner_name: str | None = None

class MyBidOut(BidOut):
    gig: Optional[GigSummaryOut] = None

class HireOut(BaseModel):
    message: str
    bid: BidOut

def with_freelancer(row: BidWithFreelancer) -> BidWithFreelancerOut:
    base = BidOut.model_validate(row.bid).model_dump()
    return BidWithFreelancerOut(
        **base, freelancer=FreelancerOut(id=row.bid.freelancer_id, name=row.freelancer_name, email=row.freelancer_email)
    )

def with_gig(row: BidWithGig) -> MyBidOut:
    base = BidOut.model_validate(row.bid).model_dump()
    return MyBidOut(**base, gig=GigSummaryOut(**row.gig._asdict()) if row.gig else None)

class BidList(BaseModel):
    items: List[BidWithFreelancerOut]

class MyBidList(BaseModel):
    items: List[MyBidOut]
