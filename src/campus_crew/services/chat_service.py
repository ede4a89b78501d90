"""Chat and message store for accepted offers.

Every path that appends a message also refreshes the parent chat's
``last_message``, ``last_message_time`` and ``updated_at`` in the same commit.
Live subscribers receive a fresh snapshot after each committed change.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_crew.db.time import utcnow
from campus_crew.models import Chat, Message, MessageRead, MessageType, Profile
from campus_crew.schemas.chat import ChatResponse, MediaUpload, MessageResponse

from .blob_store import BlobStore
from .errors import AuthorizationError, CampusCrewError, NotFoundError, require, store_call
from .live_feed import LiveFeedHub, Subscription, chat_list_topic, chat_topic, get_live_feed_hub
from .media import StoredMedia, store_media

__all__ = [
    "get_chat",
    "require_chat",
    "find_chat_for_offer",
    "require_participant",
    "list_chats_for_principal",
    "list_messages",
    "send_message",
    "send_media_message",
    "subscribe_to_messages",
    "subscribe_to_chats",
    "mark_messages_as_read",
    "get_unread_count",
    "delete_chat",
    "delete_chats",
    "publish_chat_lists",
]

logger = logging.getLogger(__name__)

_MARK_READ_ATTEMPTS = 3

MessagesCallback = Callable[[list[MessageResponse]], None]
ChatsCallback = Callable[[list[ChatResponse]], None]


def get_chat(db: Session, chat_id: int) -> Chat | None:
    """Return a single chat by id."""
    return db.query(Chat).filter(Chat.id == chat_id).first()


def require_chat(db: Session, chat_id: int, operation: str) -> Chat:
    """Return the chat or raise :class:`NotFoundError`."""
    chat = get_chat(db, chat_id)
    if chat is None:
        raise NotFoundError("Chat not found", operation=operation, entity_id=chat_id)
    return chat


def find_chat_for_offer(db: Session, offer_id: int) -> Chat | None:
    """Return the chat created when ``offer_id`` was accepted, if any."""
    return db.query(Chat).filter(Chat.offer_id == offer_id).first()


def require_participant(chat: Chat, principal_id: str, operation: str) -> None:
    """Raise :class:`AuthorizationError` unless the principal is in the chat."""
    if not chat.has_participant(principal_id):
        raise AuthorizationError(
            "You are not a participant of this chat",
            operation=operation,
            entity_id=chat.id,
        )


def _participant_filter(principal_id: str):  # type: ignore[no-untyped-def]
    return or_(Chat.poster_id == principal_id, Chat.offerer_id == principal_id)


def list_chats_for_principal(db: Session, principal_id: str) -> list[Chat]:
    """Return the principal's chats, most recently active first."""
    activity = func.coalesce(Chat.last_message_time, Chat.updated_at)
    return list(
        db.query(Chat)
        .filter(_participant_filter(principal_id))
        .order_by(activity.desc(), Chat.id.desc())
        .all()
    )


def list_messages(db: Session, chat_id: int, limit: int | None = None) -> list[Message]:
    """Return messages of a chat in ascending creation order.

    With ``limit``, only the newest ``limit`` messages are returned, still
    oldest first. Ties on ``created_at`` fall back to insertion order.
    """
    query = db.query(Message).filter(Message.chat_id == chat_id)
    if limit is None:
        return list(query.order_by(Message.created_at.asc(), Message.id.asc()).all())
    newest = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
    return list(reversed(newest))


def _message_snapshot(db: Session, chat_id: int) -> list[MessageResponse]:
    return [MessageResponse.model_validate(message) for message in list_messages(db, chat_id)]


def _chat_list_snapshot(db: Session, principal_id: str) -> list[ChatResponse]:
    return [
        ChatResponse.model_validate(chat) for chat in list_chats_for_principal(db, principal_id)
    ]


def _publish_messages(db: Session, hub: LiveFeedHub, chat_id: int) -> None:
    topic = chat_topic(chat_id)
    if hub.has_subscribers(topic):
        hub.publish(topic, _message_snapshot(db, chat_id))


def publish_chat_lists(db: Session, hub: LiveFeedHub, principal_ids: Sequence[str]) -> None:
    """Push fresh chat lists to whoever is watching these principals."""
    for principal_id in dict.fromkeys(principal_ids):
        topic = chat_list_topic(principal_id)
        if hub.has_subscribers(topic):
            hub.publish(topic, _chat_list_snapshot(db, principal_id))


def _append(
    db: Session,
    chat: Chat,
    sender: Profile,
    content: str,
    *,
    message_type: MessageType,
    media: StoredMedia | None,
    now: datetime,
    operation: str,
) -> Message:
    message = Message(
        chat_id=chat.id,
        sender_id=sender.id,
        sender_name=sender.display_name,
        content=content,
        type=message_type.value,
        created_at=now,
    )
    if media is not None:
        message.media_url = media.url
        message.media_name = media.name
        message.media_size = media.size
        message.video_duration = media.video_duration
    message.receipts.append(MessageRead(principal_id=sender.id, read_at=now))

    chat.last_message = content
    chat.last_message_time = now
    chat.updated_at = now

    with store_call(db, operation, chat.id):
        db.add(message)
        db.commit()
        db.refresh(message)
    return message


def _after_append(db: Session, hub: LiveFeedHub | None, chat: Chat) -> None:
    hub = hub if hub is not None else get_live_feed_hub()
    _publish_messages(db, hub, chat.id)
    publish_chat_lists(db, hub, chat.participants)


def send_message(
    db: Session,
    chat_id: int,
    sender: Profile,
    content: str,
    *,
    hub: LiveFeedHub | None = None,
    now: datetime | None = None,
) -> Message:
    """Append a text message and refresh the chat summary.

    Raises:
        ValidationFailed: The message is blank.
        NotFoundError: The chat does not exist.
        AuthorizationError: The sender is not a participant.
    """
    content = content.strip()
    require(bool(content), "Message must not be empty", operation="send_message", entity_id=chat_id)
    chat = require_chat(db, chat_id, "send_message")
    require_participant(chat, sender.id, "send_message")

    message = _append(
        db,
        chat,
        sender,
        content,
        message_type=MessageType.TEXT,
        media=None,
        now=now or utcnow(),
        operation="send_message",
    )
    _after_append(db, hub, chat)
    return message


def send_media_message(
    db: Session,
    blob_store: BlobStore,
    chat_id: int,
    sender: Profile,
    upload: MediaUpload,
    *,
    hub: LiveFeedHub | None = None,
    now: datetime | None = None,
) -> Message:
    """Validate a file, store it, then append a message referencing it.

    If the message cannot be persisted the stored file is removed again.
    """
    chat = require_chat(db, chat_id, "send_media_message")
    require_participant(chat, sender.id, "send_media_message")

    media = store_media(blob_store, upload, folder=f"chats/{chat.id}")
    try:
        message = _append(
            db,
            chat,
            sender,
            media.summary,
            message_type=media.message_type,
            media=media,
            now=now or utcnow(),
            operation="send_media_message",
        )
    except CampusCrewError:
        logger.warning("Discarding stored file %s after failed send", media.url)
        blob_store.delete(media.url)
        raise

    _after_append(db, hub, chat)
    return message


def subscribe_to_messages(
    db: Session,
    hub: LiveFeedHub,
    chat_id: int,
    callback: MessagesCallback,
) -> Subscription:
    """Deliver the ordered messages of a chat now and after every change."""
    require_chat(db, chat_id, "subscribe_to_messages")
    return hub.subscribe(chat_topic(chat_id), callback, _message_snapshot(db, chat_id))


def subscribe_to_chats(
    db: Session,
    hub: LiveFeedHub,
    principal_id: str,
    callback: ChatsCallback,
) -> Subscription:
    """Deliver the principal's chat list now and after every change."""
    return hub.subscribe(
        chat_list_topic(principal_id), callback, _chat_list_snapshot(db, principal_id)
    )


def _not_read_by(principal_id: str):  # type: ignore[no-untyped-def]
    return ~exists().where(
        and_(MessageRead.message_id == Message.id, MessageRead.principal_id == principal_id)
    )


def mark_messages_as_read(
    db: Session,
    chat_id: int,
    principal_id: str,
    *,
    hub: LiveFeedHub | None = None,
    now: datetime | None = None,
) -> int:
    """Add a read receipt for ``principal_id`` to every unread message.

    Receipts are only ever added. Returns the number of messages marked.
    """
    chat = require_chat(db, chat_id, "mark_messages_as_read")
    require_participant(chat, principal_id, "mark_messages_as_read")

    now = now or utcnow()
    marked = 0
    for _ in range(_MARK_READ_ATTEMPTS):
        unread_ids = db.scalars(
            select(Message.id).where(Message.chat_id == chat_id, _not_read_by(principal_id))
        ).all()
        if not unread_ids:
            break
        with store_call(db, "mark_messages_as_read", chat_id):
            try:
                db.add_all(
                    MessageRead(message_id=message_id, principal_id=principal_id, read_at=now)
                    for message_id in unread_ids
                )
                db.commit()
            except IntegrityError:
                # A concurrent request recorded some of these receipts first.
                db.rollback()
                logger.info(
                    "Read receipts for %s in chat %s raced, retrying", principal_id, chat_id
                )
                continue
        marked = len(unread_ids)
        break
    if not marked:
        return 0
    db.expire_all()

    _publish_messages(db, hub if hub is not None else get_live_feed_hub(), chat_id)
    return marked


def get_unread_count(db: Session, principal_id: str) -> int:
    """Count messages in the principal's chats sent by others and not yet read."""
    count = db.scalar(
        select(func.count(Message.id))
        .join(Chat, Chat.id == Message.chat_id)
        .where(
            _participant_filter(principal_id),
            Message.sender_id != principal_id,
            _not_read_by(principal_id),
        )
    )
    return int(count or 0)


def delete_chats(db: Session, chat_ids: Sequence[int]) -> int:
    """Stage deletion of chats with their messages and read receipts.

    Does not commit. Returns the number of messages deleted.
    """
    if not chat_ids:
        return 0
    message_ids = select(Message.id).where(Message.chat_id.in_(chat_ids))
    db.query(MessageRead).filter(MessageRead.message_id.in_(message_ids)).delete(
        synchronize_session=False
    )
    deleted_messages = (
        db.query(Message).filter(Message.chat_id.in_(chat_ids)).delete(synchronize_session=False)
    )
    db.query(Chat).filter(Chat.id.in_(chat_ids)).delete(synchronize_session=False)
    return deleted_messages


def delete_chat(db: Session, chat_id: int, *, hub: LiveFeedHub | None = None) -> int:
    """Delete a chat and all of its messages.

    Returns:
        Number of messages removed with the chat.
    """
    chat = require_chat(db, chat_id, "delete_chat")
    participants = chat.participants
    with store_call(db, "delete_chat", chat_id):
        deleted_messages = delete_chats(db, [chat_id])
        db.commit()
    db.expire_all()
    logger.info("Chat %s deleted with %d messages", chat_id, deleted_messages)

    hub = hub if hub is not None else get_live_feed_hub()
    hub.publish(chat_topic(chat_id), [])
    publish_chat_lists(db, hub, participants)
    return deleted_messages
