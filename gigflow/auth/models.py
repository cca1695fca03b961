from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, Boolean, CheckConstraint
from gigflow.shared.db import Base
import uuid

ROLES = ("client", "freelancer")

def _id32() -> str:
    return uuid.uuid4().hex

class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('client', 'freelancer')", name="ck_users_role"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_id32)
    name: Mapped[str] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String)
    role: Mapped[str] = mapped_column(String(16), default="client")  # fixed for the account's lifetime
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    # only set while unverified
    otp_code: Mapped[str | None] = mapped_column(String(6), nullable=True)
    otp_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
