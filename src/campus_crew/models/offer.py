"""SQLAlchemy model for offers made against gigs."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_crew.db.session import Base
from campus_crew.db.time import UTCDateTime, utcnow


class OfferStatus(str, enum.Enum):
    """Offer lifecycle; accepted and rejected are terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Offer(Base):
    """Proposal by one student to take on another student's gig."""

    __tablename__ = "offer"
    __table_args__ = (
        CheckConstraint("proposed_budget > 0", name="ck_offer_budget_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    gig_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("gig.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Snapshots copied from the gig and the offerer when the offer is created.
    gig_title: Mapped[str] = mapped_column(Text, nullable=False)
    gig_posted_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    offered_by: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    offered_by_name: Mapped[str] = mapped_column(Text, nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    proposed_budget: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=OfferStatus.PENDING.value
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
