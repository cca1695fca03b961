"""Gig and bid lifecycle rules.

    Gig:  Open -> Assigned      (a bid was hired)
          Open -> Closed        (the owner withdrew the gig)
    Bid:  Pending -> Hired | Rejected

Assigned, Closed, Hired and Rejected are terminal. The tables validate a move
up front; the write itself goes through `guard_gig`, which re-checks the
expected prior status in the UPDATE so a concurrent transition cannot be
overwritten.
"""

from sqlalchemy import update
from sqlalchemy.orm import Session

from gigflow.bids.models import BidStatus
from gigflow.gigs.models import Gig, GigStatus
from gigflow.shared.errors import InvalidStateError

GIG_TRANSITIONS: dict[str, frozenset[str]] = {
    GigStatus.OPEN: frozenset({GigStatus.ASSIGNED, GigStatus.CLOSED}),
    GigStatus.ASSIGNED: frozenset(),
    GigStatus.CLOSED: frozenset(),
}

BID_TRANSITIONS: dict[str, frozenset[str]] = {
    BidStatus.PENDING: frozenset({BidStatus.HIRED, BidStatus.REJECTED}),
    BidStatus.HIRED: frozenset(),
    BidStatus.REJECTED: frozenset(),
}


def can_transition(table: dict[str, frozenset[str]], current: str, target: str) -> bool:
    return target in table.get(current, frozenset())


def require_transition(table: dict[str, frozenset[str]], current: str, target: str, what: str = "gig") -> None:
    """Raise InvalidStateError unless current -> target is a legal move."""
    if not can_transition(table, current, target):
        raise InvalidStateError(
            f"{what} is {current}; cannot move to {target}",
            details={"status": current, "target": target},
        )


def is_terminal(table: dict[str, frozenset[str]], status: str) -> bool:
    return not table.get(status)


def guard_gig(db: Session, gig_id: str, *criteria, set_status: str | None = None) -> bool:
    """
    Conditional write on one gig row: `UPDATE gigs SET status=... WHERE id=:id AND <criteria>`.

    Without `set_status` the row is rewritten with its own status, which changes nothing
    but takes the row's write lock until the surrounding transaction ends. Returns False
    when no row matched, i.e. the gig is gone or no longer satisfies `criteria`.
    """
    stmt = (
        update(Gig)
        .where(Gig.id == gig_id, *criteria)
        .values(status=set_status if set_status else Gig.status)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount == 1
