import logging
import math
from typing import Iterator, NamedTuple

from sqlalchemy import select, desc, delete, func
from sqlalchemy.orm import Session

from gigflow.auth.models import User
from gigflow.bids.models import Bid
from gigflow.bids.service import bid_counts
from gigflow.gigs.lifecycle import GIG_TRANSITIONS, guard_gig, require_transition
from gigflow.gigs.models import Gig, GigStatus
from gigflow.shared.db import atomic
from gigflow.shared.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class GigListing(NamedTuple):
    gig: Gig
    bid_count: int
    owner_name: str | None
    owner_email: str | None


def _listing_stmt():
    counts = bid_counts()
    return (
        select(Gig, func.coalesce(counts.c.bid_count, 0), User.name, User.email)
        .outerjoin(counts, counts.c.gig_id == Gig.id)
        .outerjoin(User, User.id == Gig.owner_id)
    )

def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class OpenGigFeed:
    """
    Open gigs, newest first, optionally filtered by a case-insensitive substring of the title.

    Iterating runs the query and streams rows in batches; iterating again runs it again,
    so the feed always reflects the current store.
    """

    def __init__(self, db: Session, search: str | None = None, batch_size: int = 100):
        self.db = db
        self.search = (search or "").strip() or None
        self.batch_size = batch_size

    def statement(self):
        stmt = _listing_stmt().where(Gig.status == GigStatus.OPEN)
        if self.search:
            stmt = stmt.where(Gig.title.ilike(f"%{_escape_like(self.search)}%", escape="\\"))
        return stmt.order_by(desc(Gig.created_at))

    def __iter__(self) -> Iterator[GigListing]:
        result = self.db.execute(self.statement().execution_options(yield_per=self.batch_size))
        try:
            for gig, count, owner_name, owner_email in result:
                yield GigListing(gig, int(count), owner_name, owner_email)
        finally:
            result.close()


def _require_text(value: str | None, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value

def _require_positive(value, field: str) -> float:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise ValidationError(f"{field} must be a positive number")
    return float(value)

def _load_owned(db: Session, gig_id: str, requester_id: str, action: str) -> Gig:
    gig = db.get(Gig, gig_id)
    if not gig:
        raise NotFoundError("gig not found")
    if gig.owner_id != requester_id:
        raise AuthorizationError(f"not authorized to {action} this gig")
    return gig


def create_gig(db: Session, owner_id: str, title: str, description: str, budget: float) -> Gig:
    gig = Gig(
        owner_id=owner_id,
        title=_require_text(title, "title"),
        description=_require_text(description, "description"),
        budget=_require_positive(budget, "budget"),
        status=GigStatus.OPEN,
    )
    db.add(gig)
    db.commit()
    db.refresh(gig)
    logger.info("gig %s created by %s", gig.id, owner_id)
    return gig

def get_gig(db: Session, gig_id: str) -> GigListing:
    row = db.execute(_listing_stmt().where(Gig.id == gig_id)).first()
    if not row:
        raise NotFoundError("gig not found")
    gig, count, owner_name, owner_email = row
    return GigListing(gig, int(count), owner_name, owner_email)

def list_open_gigs(db: Session, search: str | None = None) -> OpenGigFeed:
    return OpenGigFeed(db, search)

def list_gigs_for_owner(db: Session, owner_id: str) -> list[GigListing]:
    stmt = _listing_stmt().where(Gig.owner_id == owner_id).order_by(desc(Gig.created_at))
    return [GigListing(g, int(c), n, e) for g, c, n, e in db.execute(stmt).all()]


def close_gig(db: Session, gig_id: str, requester_id: str) -> Gig:
    gig = _load_owned(db, gig_id, requester_id, "update")
    require_transition(GIG_TRANSITIONS, gig.status, GigStatus.CLOSED)

    def _write(db: Session) -> None:
        if not guard_gig(db, gig_id, Gig.status == GigStatus.OPEN, set_status=GigStatus.CLOSED):
            logger.warning("close of gig %s lost the race: it is no longer open", gig_id)
            raise InvalidStateError("gig is no longer open", details={"gig_id": gig_id})

    atomic(db, _write)
    db.refresh(gig)
    logger.info("gig %s closed", gig_id)
    return gig

def delete_gig(db: Session, gig_id: str, requester_id: str) -> None:
    gig = _load_owned(db, gig_id, requester_id, "delete")
    if gig.status == GigStatus.ASSIGNED:
        raise InvalidStateError("cannot delete an assigned gig")

    def _write(db: Session) -> int:
        # lock the gig row first (same order as a hire), then bids, then the gig
        if not guard_gig(db, gig_id, Gig.status != GigStatus.ASSIGNED):
            raise InvalidStateError("cannot delete an assigned gig")
        removed = db.execute(
            delete(Bid).where(Bid.gig_id == gig_id).execution_options(synchronize_session=False)
        ).rowcount
        db.execute(delete(Gig).where(Gig.id == gig_id).execution_options(synchronize_session=False))
        return removed

    db.expunge(gig)
    removed = atomic(db, _write)
    logger.info("gig %s deleted with %d bid(s)", gig_id, removed)
