"""Hiring: select one bid, lock its gig and reject the competition.

The three writes (gig -> Assigned, bid -> Hired, other Pending bids -> Rejected)
commit as one transaction. The first write only matches while the gig is still
Open, so of two concurrent hires on the same gig exactly one commits; the other
matches no row and is rolled back with InvalidStateError. A bid being placed
concurrently takes the same gig row lock (see `bids.service.create_bid`), so it
either commits before the hire (and is then rejected by it) or sees the gig
Assigned.

The freelancer is told after the commit. That notice is best-effort: it never
blocks the caller and its failure never undoes or fails the hire.
"""

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from gigflow.bids.models import Bid, BidStatus
from gigflow.gigs.lifecycle import BID_TRANSITIONS, guard_gig, require_transition
from gigflow.gigs.models import Gig, GigStatus
from gigflow.notifications.channel import NotificationChannel, channel
from gigflow.shared.db import atomic
from gigflow.shared.errors import AuthorizationError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


def hire(db: Session, bid_id: str, requester_id: str, notifier: NotificationChannel | None = None) -> Bid:
    bid = db.get(Bid, bid_id)
    if not bid:
        raise NotFoundError("bid not found")
    gig = db.get(Gig, bid.gig_id)
    if not gig:
        raise NotFoundError("gig not found")
    if gig.owner_id != requester_id:
        raise AuthorizationError("not authorized to hire for this gig")
    if gig.status != GigStatus.OPEN:
        raise InvalidStateError("gig is already assigned" if gig.status == GigStatus.ASSIGNED else "gig is not open",
                                details={"gig_id": gig.id, "status": gig.status})
    require_transition(BID_TRANSITIONS, bid.status, BidStatus.HIRED, what="bid")

    gig_id, title, freelancer_id = gig.id, gig.title, bid.freelancer_id

    def _commit_hire(db: Session) -> int:
        if not guard_gig(db, gig_id, Gig.status == GigStatus.OPEN, set_status=GigStatus.ASSIGNED):
            logger.warning("hire of bid %s lost the race: gig %s is no longer open", bid_id, gig_id)
            raise InvalidStateError("gig is already assigned", details={"gig_id": gig_id})
        hired = db.execute(
            update(Bid)
            .where(Bid.id == bid_id, Bid.status == BidStatus.PENDING)
            .values(status=BidStatus.HIRED)
            .execution_options(synchronize_session=False)
        ).rowcount
        if hired != 1:
            raise InvalidStateError("bid is no longer pending", details={"bid_id": bid_id})
        return db.execute(
            update(Bid)
            .where(Bid.gig_id == gig_id, Bid.id != bid_id, Bid.status == BidStatus.PENDING)
            .values(status=BidStatus.REJECTED)
            .execution_options(synchronize_session=False)
        ).rowcount

    rejected = atomic(db, _commit_hire)
    db.refresh(bid)
    logger.info("gig %s assigned: bid %s hired, %d bid(s) rejected", gig_id, bid_id, rejected)

    notify_hired(notifier or channel, freelancer_id, gig_id, bid_id, title)
    return bid


def notify_hired(notifier: NotificationChannel, freelancer_id: str, gig_id: str, bid_id: str, title: str) -> int:
    """Push the 'hired' notice. Returns how many connections it was handed to; never raises."""
    try:
        delivered = notifier.publish(freelancer_id, "notification", {
            "type": "hired",
            "message": f'You have been hired for "{title}"!',
            "gig_id": gig_id,
            "bid_id": bid_id,
        })
    except Exception:
        logger.exception("hired notification for %s failed", freelancer_id)
        return 0
    if not delivered:
        logger.info("freelancer %s has no open connection; hired notification dropped", freelancer_id)
    return delivered
