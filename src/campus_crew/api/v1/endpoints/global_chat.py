"""Global chat endpoints: one room shared by every signed-in student."""

from __future__ import annotations

from fastapi import APIRouter, Query, WebSocket, status

from campus_crew.models import GlobalMessage
from campus_crew.schemas.global_chat import (
    GlobalMediaUpload,
    GlobalMessageCreate,
    GlobalMessageResponse,
)
from campus_crew.services import global_chat_service
from campus_crew.services.live_feed import Subscription

from ..dependencies import (
    BlobStoreDep,
    CurrentProfileDep,
    HubDep,
    PrincipalDep,
    SessionDep,
    SessionFactoryDep,
    websocket_principal,
)
from ..streaming import Deliver, stream_snapshots

router = APIRouter(prefix="/global-chat", tags=["global-chat"])


@router.get("/messages", response_model=list[GlobalMessageResponse])
async def recent_messages(
    _: PrincipalDep,
    db: SessionDep,
    limit: int = Query(50, ge=1, le=100),
) -> list[GlobalMessage]:
    """Newest messages of the room, oldest first."""
    return global_chat_service.recent_messages(db, limit)


@router.post(
    "/messages",
    response_model=GlobalMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    message_data: GlobalMessageCreate,
    current_profile: CurrentProfileDep,
    db: SessionDep,
    hub: HubDep,
) -> GlobalMessage:
    """Post a text message to the room."""
    return global_chat_service.send_text(
        db, current_profile, message_data.content, message_data.sender_location, hub=hub
    )


@router.post(
    "/media",
    response_model=GlobalMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_media(
    upload: GlobalMediaUpload,
    current_profile: CurrentProfileDep,
    db: SessionDep,
    hub: HubDep,
    blob_store: BlobStoreDep,
) -> GlobalMessage:
    """Share a file with the room."""
    return global_chat_service.send_media(db, blob_store, current_profile, upload, hub=hub)


@router.websocket("/stream")
async def stream_room(
    websocket: WebSocket,
    session_factory: SessionFactoryDep,
    hub: HubDep,
) -> None:
    """Live feed of the newest room messages; authenticate with ``?token=``."""
    if websocket_principal(websocket) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    def subscribe(deliver: Deliver) -> Subscription:
        with session_factory() as db:
            return global_chat_service.subscribe(db, hub, deliver)

    await websocket.accept()
    await stream_snapshots(websocket, subscribe)
