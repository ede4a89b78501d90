"""SQLAlchemy model for gig postings."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_crew.db.session import Base
from campus_crew.db.time import UTCDateTime, utcnow


class GigCategory(str, enum.Enum):
    """Closed set of gig categories."""

    ACADEMIC = "Academic"
    CREATIVE = "Creative"
    TECH = "Tech"
    ERRANDS = "Errands"
    EVENTS = "Events"
    OTHER = "Other"


class GigStatus(str, enum.Enum):
    """Gig lifecycle: open -> in_progress/cancelled -> completed."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Gig(Base):
    """Paid task posted by a student for their college."""

    __tablename__ = "gig"
    __table_args__ = (
        CheckConstraint("budget > 0", name="ck_gig_budget_positive"),
        Index("ix_gig_college_status_created", "college", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    budget: Mapped[float] = mapped_column(Float, nullable=False)
    deadline: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False, default="")
    college: Mapped[str] = mapped_column(Text, nullable=False)

    posted_by: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Snapshot of the poster's display name at creation time.
    posted_by_name: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=GigStatus.OPEN.value)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
