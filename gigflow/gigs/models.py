from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Text, Float, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from gigflow.shared.db import Base
import uuid

def _id32() -> str:
    return uuid.uuid4().hex  # 32 chars

class GigStatus:
    OPEN = "Open"
    ASSIGNED = "Assigned"
    CLOSED = "Closed"
    ALL = (OPEN, ASSIGNED, CLOSED)

class Gig(Base):
    __tablename__ = "gigs"
    __table_args__ = (
        CheckConstraint("budget > 0", name="ck_gigs_budget_positive"),
        CheckConstraint("status IN ('Open', 'Assigned', 'Closed')", name="ck_gigs_status"),
    )
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_id32)
    owner_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    budget: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(16), default=GigStatus.OPEN, index=True)  # Open|Assigned|Closed
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
