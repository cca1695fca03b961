import logging
import math
from typing import NamedTuple

from sqlalchemy import select, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gigflow.auth.models import User
from gigflow.bids.models import Bid, BidStatus
from gigflow.gigs.lifecycle import guard_gig
from gigflow.gigs.models import Gig, GigStatus
from gigflow.shared.db import atomic
from gigflow.shared.errors import (
    AuthorizationError, ConflictError, InvalidStateError, NotFoundError, ValidationError,
)

logger = logging.getLogger(__name__)


class BidWithFreelancer(NamedTuple):
    bid: Bid
    freelancer_name: str | None
    freelancer_email: str | None

class GigSummary(NamedTuple):
    id: str
    title: str
    budget: float
    status: str
    owner_id: str
    owner_name: str | None

class BidWithGig(NamedTuple):
    bid: Bid
    gig: GigSummary | None  # None once the gig has been deleted


def bid_counts():
    """Aggregate subquery (gig_id, bid_count) over the live bid rows."""
    return (
        select(Bid.gig_id.label("gig_id"), func.count(Bid.id).label("bid_count"))
        .group_by(Bid.gig_id)
        .subquery()
    )

def count_bids(db: Session, gig_id: str) -> int:
    return db.scalar(select(func.count(Bid.id)).where(Bid.gig_id == gig_id)) or 0


def create_bid(db: Session, gig_id: str, freelancer_id: str, message: str, price: float) -> Bid:
    gig = db.get(Gig, gig_id)
    if not gig or gig.status != GigStatus.OPEN:
        raise InvalidStateError("gig is no longer open", details={"gig_id": gig_id})
    if gig.owner_id == freelancer_id:
        raise AuthorizationError("you cannot bid on your own gig")

    message = (message or "").strip()
    if not message:
        raise ValidationError("message is required")
    if not isinstance(price, (int, float)) or not math.isfinite(price) or price <= 0:
        raise ValidationError("price must be a positive number")

    if find_bid_by_freelancer(db, gig_id, freelancer_id):
        raise ConflictError("you have already placed a bid on this gig")

    def _write(db: Session) -> Bid:
        # re-check at commit time: lock the gig row only while it is still Open
        if not guard_gig(db, gig_id, Gig.status == GigStatus.OPEN):
            logger.warning("bid by %s on gig %s lost the race: gig is no longer open", freelancer_id, gig_id)
            raise InvalidStateError("gig is no longer open", details={"gig_id": gig_id})
        bid = Bid(gig_id=gig_id, freelancer_id=freelancer_id, message=message, price=float(price))
        db.add(bid)
        db.flush()
        return bid

    try:
        bid = atomic(db, _write)
    except IntegrityError:
        # lost a race with the same freelancer's other request
        raise ConflictError("you have already placed a bid on this gig")
    db.refresh(bid)
    logger.info("bid %s placed on gig %s by %s", bid.id, gig_id, freelancer_id)
    return bid


def list_bids_for_gig(db: Session, gig_id: str, requester_id: str) -> list[BidWithFreelancer]:
    gig = db.get(Gig, gig_id)
    if not gig:
        raise NotFoundError("gig not found")
    if gig.owner_id != requester_id:
        raise AuthorizationError("not authorized to view bids for this gig")
    stmt = (
        select(Bid, User.name, User.email)
        .outerjoin(User, User.id == Bid.freelancer_id)
        .where(Bid.gig_id == gig_id)
        .order_by(desc(Bid.created_at))
    )
    return [BidWithFreelancer(*row) for row in db.execute(stmt).all()]


def find_bid_by_freelancer(db: Session, gig_id: str, freelancer_id: str) -> Bid | None:
    stmt = select(Bid).where(Bid.gig_id == gig_id, Bid.freelancer_id == freelancer_id)
    return db.scalars(stmt).first()


def list_bids_for_freelancer(db: Session, freelancer_id: str) -> list[BidWithGig]:
    stmt = (
        select(Bid, Gig, User.name)
        .outerjoin(Gig, Gig.id == Bid.gig_id)
        .outerjoin(User, User.id == Gig.owner_id)
        .where(Bid.freelancer_id == freelancer_id)
        .order_by(desc(Bid.created_at))
    )
    out = []
    for bid, gig, owner_name in db.execute(stmt).all():
        summary = None
        if gig is not None:
            summary = GigSummary(gig.id, gig.title, gig.budget, gig.status, gig.owner_id, owner_name)
        out.append(BidWithGig(bid, summary))
    return out
