"""Campus-wide broadcast room with no participant restriction."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.orm import Session

from campus_crew.db.time import utcnow
from campus_crew.models import GlobalMessage, MessageType, Profile
from campus_crew.schemas.global_chat import GlobalMediaUpload, GlobalMessageResponse

from .blob_store import BlobStore
from .errors import CampusCrewError, require, store_call
from .live_feed import GLOBAL_TOPIC, LiveFeedHub, Subscription, get_live_feed_hub
from .media import StoredMedia, store_media

__all__ = ["send_text", "send_media", "recent_messages", "subscribe"]

logger = logging.getLogger(__name__)

RECENT_LIMIT = 50
SUBSCRIBE_LIMIT = 100


def recent_messages(db: Session, limit: int = RECENT_LIMIT) -> list[GlobalMessage]:
    """Return the newest ``limit`` messages, oldest first."""
    newest = (
        db.query(GlobalMessage)
        .order_by(GlobalMessage.created_at.desc(), GlobalMessage.id.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(newest))


def _snapshot(db: Session, limit: int = SUBSCRIBE_LIMIT) -> list[GlobalMessageResponse]:
    return [GlobalMessageResponse.model_validate(message) for message in recent_messages(db, limit)]


def _persist(db: Session, message: GlobalMessage, hub: LiveFeedHub | None) -> GlobalMessage:
    with store_call(db, "send_global_message"):
        db.add(message)
        db.commit()
        db.refresh(message)
    hub = hub if hub is not None else get_live_feed_hub()
    if hub.has_subscribers(GLOBAL_TOPIC):
        hub.publish(GLOBAL_TOPIC, _snapshot(db))
    return message


def _location(sender: Profile, location: str | None) -> str:
    return (location or sender.college or "").strip()


def send_text(
    db: Session,
    sender: Profile,
    content: str,
    location: str | None = None,
    *,
    hub: LiveFeedHub | None = None,
    now: datetime | None = None,
) -> GlobalMessage:
    """Post a trimmed text message to the global room."""
    content = content.strip()
    require(bool(content), "Message must not be empty", operation="send_global_message")
    message = GlobalMessage(
        sender_id=sender.id,
        sender_name=sender.display_name,
        sender_location=_location(sender, location),
        content=content,
        type=MessageType.TEXT.value,
        created_at=now or utcnow(),
    )
    return _persist(db, message, hub)


def send_media(
    db: Session,
    blob_store: BlobStore,
    sender: Profile,
    upload: GlobalMediaUpload,
    *,
    hub: LiveFeedHub | None = None,
    now: datetime | None = None,
) -> GlobalMessage:
    """Validate and store a file, then post it to the global room."""
    media: StoredMedia = store_media(blob_store, upload, folder="global")
    message = GlobalMessage(
        sender_id=sender.id,
        sender_name=sender.display_name,
        sender_location=_location(sender, upload.sender_location),
        content=media.summary,
        type=media.message_type.value,
        media_url=media.url,
        media_name=media.name,
        media_size=media.size,
        video_duration=media.video_duration,
        created_at=now or utcnow(),
    )
    try:
        return _persist(db, message, hub)
    except CampusCrewError:
        logger.warning("Discarding stored file %s after failed global send", media.url)
        blob_store.delete(media.url)
        raise


def subscribe(
    db: Session,
    hub: LiveFeedHub,
    callback: Callable[[list[GlobalMessageResponse]], None],
    limit: int = SUBSCRIBE_LIMIT,
) -> Subscription:
    """Deliver the newest ``limit`` messages now and after every new post."""
    return hub.subscribe(GLOBAL_TOPIC, callback, _snapshot(db, limit))
