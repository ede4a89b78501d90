"""Chat and message endpoints for the Campus Crew API."""

from __future__ import annotations

from fastapi import APIRouter, Query, WebSocket, status
from sqlalchemy.orm import Session

from campus_crew.models import Chat, Message
from campus_crew.schemas.chat import (
    ChatDeleteResponse,
    ChatResponse,
    MarkReadResponse,
    MediaUpload,
    MessageCreate,
    MessageResponse,
    UnreadCountResponse,
)
from campus_crew.services import chat_service
from campus_crew.services.live_feed import Subscription

from ..dependencies import (
    BlobStoreDep,
    CurrentProfileDep,
    HubDep,
    Principal,
    PrincipalDep,
    SessionDep,
    SessionFactoryDep,
    websocket_principal,
)
from ..streaming import Deliver, stream_snapshots

router = APIRouter(prefix="/chats", tags=["chats"])


def _readable_chat(db: Session, chat_id: int, principal: Principal, operation: str) -> Chat:
    chat = chat_service.require_chat(db, chat_id, operation)
    if not principal.is_admin:
        chat_service.require_participant(chat, principal.principal_id, operation)
    return chat


@router.get("", response_model=list[ChatResponse])
async def list_chats(principal: PrincipalDep, db: SessionDep) -> list[Chat]:
    """The caller's chats, most recently active first."""
    return chat_service.list_chats_for_principal(db, principal.principal_id)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(principal: PrincipalDep, db: SessionDep) -> UnreadCountResponse:
    """Messages from others the caller has not read yet."""
    return UnreadCountResponse(unread=chat_service.get_unread_count(db, principal.principal_id))


@router.get("/{chat_id}", response_model=ChatResponse)
async def read_chat(chat_id: int, principal: PrincipalDep, db: SessionDep) -> Chat:
    """Return one chat to a participant or an admin."""
    return _readable_chat(db, chat_id, principal, "get_chat")


@router.delete("/{chat_id}", response_model=ChatDeleteResponse)
async def delete_chat(
    chat_id: int,
    principal: PrincipalDep,
    db: SessionDep,
    hub: HubDep,
) -> ChatDeleteResponse:
    """Delete a chat and its messages."""
    _readable_chat(db, chat_id, principal, "delete_chat")
    return ChatDeleteResponse(deleted_messages=chat_service.delete_chat(db, chat_id, hub=hub))


@router.get("/{chat_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    chat_id: int,
    principal: PrincipalDep,
    db: SessionDep,
    limit: int | None = Query(None, ge=1, le=500),
) -> list[Message]:
    """Messages of a chat, oldest first."""
    _readable_chat(db, chat_id, principal, "list_messages")
    return chat_service.list_messages(db, chat_id, limit)


@router.post(
    "/{chat_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    chat_id: int,
    message_data: MessageCreate,
    current_profile: CurrentProfileDep,
    db: SessionDep,
    hub: HubDep,
) -> Message:
    """Send a text message as one of the chat's participants."""
    return chat_service.send_message(db, chat_id, current_profile, message_data.content, hub=hub)


@router.post(
    "/{chat_id}/media",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_media(
    chat_id: int,
    upload: MediaUpload,
    current_profile: CurrentProfileDep,
    db: SessionDep,
    hub: HubDep,
    blob_store: BlobStoreDep,
) -> Message:
    """Share an image, short video or document in a chat."""
    return chat_service.send_media_message(
        db, blob_store, chat_id, current_profile, upload, hub=hub
    )


@router.put("/{chat_id}/read", response_model=MarkReadResponse)
async def mark_read(
    chat_id: int,
    principal: PrincipalDep,
    db: SessionDep,
    hub: HubDep,
) -> MarkReadResponse:
    """Mark every message in the chat as read by the caller."""
    marked = chat_service.mark_messages_as_read(db, chat_id, principal.principal_id, hub=hub)
    return MarkReadResponse(marked=marked)


@router.websocket("/{chat_id}/stream")
async def stream_messages(
    websocket: WebSocket,
    chat_id: int,
    session_factory: SessionFactoryDep,
    hub: HubDep,
) -> None:
    """Live feed of a chat's ordered messages.

    Authenticate with ``?token=<access token>``. The current messages are sent
    on connect and again after every change. A session is held only while the
    caller is checked and the first snapshot is read.
    """
    principal = websocket_principal(websocket)
    allowed = False
    if principal is not None:
        with session_factory() as db:
            chat = chat_service.get_chat(db, chat_id)
            allowed = chat is not None and (
                principal.is_admin or chat.has_participant(principal.principal_id)
            )
    if not allowed:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    def subscribe(deliver: Deliver) -> Subscription:
        with session_factory() as db:
            return chat_service.subscribe_to_messages(db, hub, chat_id, deliver)

    await websocket.accept()
    await stream_snapshots(websocket, subscribe)
