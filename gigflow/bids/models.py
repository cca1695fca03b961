from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Text, Float, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from gigflow.shared.db import Base
import uuid

def _id32() -> str:
    return uuid.uuid4().hex

class BidStatus:
    PENDING = "Pending"
    HIRED = "Hired"
    REJECTED = "Rejected"
    ALL = (PENDING, HIRED, REJECTED)

class Bid(Base):
    __tablename__ = "bids"
    __table_args__ = (
        UniqueConstraint("gig_id", "freelancer_id", name="uq_bids_gig_freelancer"),
        CheckConstraint("price > 0", name="ck_bids_price_positive"),
        CheckConstraint("status IN ('Pending', 'Hired', 'Rejected')", name="ck_bids_status"),
    )
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_id32)
    gig_id: Mapped[str] = mapped_column(String(32), ForeignKey("gigs.id", ondelete="CASCADE"), index=True)
    freelancer_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    message: Mapped[str] = mapped_column(Text)
    price: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(16), default=BidStatus.PENDING)  # Pending|Hired|Rejected
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
