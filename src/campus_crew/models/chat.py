"""Models for gig chats and their messages."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import BigInteger, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_crew.db.session import Base
from campus_crew.db.time import UTCDateTime, utcnow


class MessageType(str, enum.Enum):
    """Kinds of content a message can carry."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"


class Chat(Base):
    """Private thread between a gig poster and the student whose offer was accepted.

    At most one chat exists per offer; ``offer_id`` is unique.
    """

    __tablename__ = "chat"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    poster_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    poster_name: Mapped[str] = mapped_column(Text, nullable=False)
    offerer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    offerer_name: Mapped[str] = mapped_column(Text, nullable=False)

    gig_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("gig.id", ondelete="CASCADE"), nullable=False, index=True
    )
    gig_title: Mapped[str] = mapped_column(Text, nullable=False)
    offer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("offer.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    # Denormalised from the newest message; refreshed on every append.
    last_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_message_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    @property
    def participants(self) -> list[str]:
        """Return ``[gig poster, offer maker]``."""
        return [self.poster_id, self.offerer_id]

    @property
    def participant_names(self) -> list[str]:
        """Return display names parallel to ``participants``."""
        return [self.poster_name, self.offerer_name]

    def has_participant(self, principal_id: str) -> bool:
        """Return True if the principal is one of the two parties."""
        return principal_id in (self.poster_id, self.offerer_id)

    def other_participant(self, principal_id: str) -> str:
        """Return the counterpart of ``principal_id`` in this chat."""
        return self.offerer_id if principal_id == self.poster_id else self.poster_id


class Message(Base):
    """Entry in a chat; immutable apart from its read receipts."""

    __tablename__ = "message"
    __table_args__ = (Index("ix_message_chat_created", "chat_id", "created_at", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chat.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_name: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=MessageType.TEXT.value)

    media_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    video_duration: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    receipts: Mapped[list[MessageRead]] = relationship(
        "MessageRead",
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def read_by(self) -> list[str]:
        """Return principal ids that have seen this message, in receipt order."""
        return [receipt.principal_id for receipt in self.receipts]


class MessageRead(Base):
    """Read receipt; rows are only ever added."""

    __tablename__ = "message_read"

    message_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    principal_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    read_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    message: Mapped[Message] = relationship("Message", back_populates="receipts")
