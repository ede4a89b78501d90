"""SQLAlchemy model for student profiles."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_crew.db.session import Base
from campus_crew.db.time import UTCDateTime, utcnow


class Profile(Base):
    """Durable profile record for an authenticated principal.

    The primary key is the opaque principal id issued at sign-in
    (``google:<sub>`` or ``phone:<e164>``).
    """

    __tablename__ = "profile"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    college: Mapped[str] = mapped_column(Text, nullable=False, default="", index=True)
    year: Mapped[str] = mapped_column(Text, nullable=False, default="")
    branch: Mapped[str] = mapped_column(Text, nullable=False, default="")
    roll_number: Mapped[str] = mapped_column(Text, nullable=False, default="")
    phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    auth_method: Mapped[str] = mapped_column(String(16), nullable=False, default="google")

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    @property
    def display_name(self) -> str:
        """Return the name shown on gigs, offers and messages."""
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.email or self.id
