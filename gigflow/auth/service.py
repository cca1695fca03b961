import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gigflow.auth.models import User, ROLES
from gigflow.auth.mailer import send_verification_code
from gigflow.shared.config import settings
from gigflow.shared.errors import AuthenticationError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes and refuses anything longer
MAX_PASSWORD_BYTES = 72

def hash_password(pw: str) -> str:
    raw = pw.encode()
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode()

def _verify(pw: str, ph: str) -> bool:
    try: return bcrypt.checkpw(pw.encode(), ph.encode())
    except ValueError: return False

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _as_utc(ts: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if ts is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts

def _new_code() -> str:
    return str(100000 + secrets.randbelow(900000))

def normalize_email(email: str) -> str:
    return email.lower().strip()

def find_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == normalize_email(email))).first()

def register_user(db: Session, name: str, email: str, password: str, role: str | None = None) -> User:
    """
    Create an unverified account and send it a verification code.

    An email held by a verified account, or by an unverified one whose code is still
    live, is a conflict. An unverified account whose code has expired is stale: it could
    never log in, so it is purged and the email is reused.
    """
    name = (name or "").strip()
    role = role or "client"
    if not name:
        raise ValidationError("name is required")
    if not password:
        raise ValidationError("password is required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")
    password_hash = hash_password(password)

    email = normalize_email(email)
    existing = find_by_email(db, email)
    if existing:
        if existing.is_verified:
            raise ConflictError("user already exists")
        expires = _as_utc(existing.otp_expires_at)
        if expires and expires > _now():
            raise ConflictError("verification pending for this email")
        logger.info("purging stale unverified account %s for %s", existing.id, email)
        db.delete(existing)
        db.flush()

    code = _new_code()
    u = User(
        name=name,
        email=email,
        password_hash=password_hash,
        role=role,
        is_verified=False,
        otp_code=code,
        otp_expires_at=_now() + timedelta(minutes=settings.OTP_TTL_MIN),
    )
    db.add(u)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent registration took the email between the lookup and the insert
        db.rollback()
        raise ConflictError("user already exists")
    db.refresh(u)
    logger.info("registered %s user %s", role, u.id)
    send_verification_code(u.email, code)
    return u

def verify_otp(db: Session, email: str, code: str) -> User:
    u = find_by_email(db, email)
    expires = _as_utc(u.otp_expires_at) if u else None
    if (
        not u
        or u.is_verified
        or not u.otp_code
        or not secrets.compare_digest(u.otp_code, (code or "").strip())
        or not expires
        or expires <= _now()
    ):
        raise ValidationError("invalid or expired verification code")
    u.is_verified = True
    u.otp_code = None
    u.otp_expires_at = None
    db.commit(); db.refresh(u)
    logger.info("verified user %s", u.id)
    return u

def authenticate_user(db: Session, email: str, password: str) -> User:
    u = find_by_email(db, email)
    if not u or not _verify(password, u.password_hash):
        raise AuthenticationError("invalid email or password")
    if not u.is_verified:
        raise AuthenticationError("please verify your email first")
    return u
