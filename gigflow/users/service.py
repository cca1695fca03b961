import logging

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gigflow.auth.models import User
from gigflow.auth.service import find_by_email, hash_password, normalize_email
from gigflow.bids.models import Bid, BidStatus
from gigflow.gigs.models import Gig
from gigflow.shared.db import atomic
from gigflow.shared.errors import AuthorizationError, ConflictError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)

def update_profile(
    db: Session,
    user_id: str,
    name: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> User:
    u = db.get(User, user_id)
    if not u:
        raise NotFoundError("user not found")
    password_hash = hash_password(password) if password else None
    if name and name.strip():
        u.name = name.strip()
    if email and email.strip():
        email = normalize_email(email)
        other = find_by_email(db, email)
        if other and other.id != u.id:
            db.rollback()
            raise ConflictError("email already exists")
        u.email = email
    if password_hash:
        u.password_hash = password_hash
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("email already exists")
    db.refresh(u)
    return u

def delete_user(db: Session, user_id: str, requester_id: str) -> None:
    """
    Remove an account together with everything that references it: the bids on its gigs,
    its gigs, and its own bids. Refused while the user holds a Hired bid, since that
    would leave an Assigned gig without its hired bid.
    """
    u = db.get(User, user_id)
    if not u:
        raise NotFoundError("user not found")
    if user_id != requester_id:
        raise AuthorizationError("not authorized to delete this account")

    def _cascade(db: Session) -> tuple[int, int]:
        no_sync = {"synchronize_session": False}
        # write first so a concurrent hire cannot slip in between the check and the delete
        bids = db.execute(
            delete(Bid).where(Bid.freelancer_id == user_id, Bid.status != BidStatus.HIRED).execution_options(**no_sync)
        ).rowcount
        hired = db.scalars(
            select(Bid.id).where(Bid.freelancer_id == user_id, Bid.status == BidStatus.HIRED).limit(1)
        ).first()
        if hired:
            raise InvalidStateError("cannot delete an account that has been hired for a gig")
        owned = select(Gig.id).where(Gig.owner_id == user_id).scalar_subquery()
        bids += db.execute(delete(Bid).where(Bid.gig_id.in_(owned)).execution_options(**no_sync)).rowcount
        gigs = db.execute(delete(Gig).where(Gig.owner_id == user_id).execution_options(**no_sync)).rowcount
        db.execute(delete(User).where(User.id == user_id).execution_options(**no_sync))
        return gigs, bids

    db.expunge(u)
    gigs, bids = atomic(db, _cascade)
    logger.info("user %s deleted with %d gig(s) and %d bid(s)", user_id, gigs, bids)
