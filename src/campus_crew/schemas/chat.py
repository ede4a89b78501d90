"""Chat and message Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for sending a text message."""

    content: str = Field(..., min_length=1, max_length=5000)


class MediaUpload(BaseModel):
    """File shared in a chat, carried as base64 in the JSON body."""

    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., description="MIME type reported by the client")
    data_b64: str = Field(..., description="Base64-encoded file content")
    video_duration: float | None = Field(
        None, ge=0, description="Duration in seconds measured by the client (videos only)"
    )


class MessageResponse(BaseModel):
    """Schema for a chat message returned by the API."""

    id: int
    chat_id: int
    sender_id: str
    sender_name: str
    content: str
    type: str
    media_url: str | None = None
    media_name: str | None = None
    media_size: int | None = None
    video_duration: float | None = None
    created_at: datetime
    read_by: list[str]

    model_config = ConfigDict(from_attributes=True)


class ChatResponse(BaseModel):
    """Schema for a chat thread returned by the API."""

    id: int
    participants: list[str]
    participant_names: list[str]
    gig_id: int
    gig_title: str
    offer_id: int
    last_message: str | None = None
    last_message_time: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AcceptOfferResponse(BaseModel):
    """Outcome of accepting an offer."""

    offer_id: int
    status: str
    chat: ChatResponse


class MarkReadResponse(BaseModel):
    """Number of messages newly marked as read."""

    marked: int


class UnreadCountResponse(BaseModel):
    """Unread messages across all of a principal's chats."""

    unread: int


class ChatDeleteResponse(BaseModel):
    """Counts reported after deleting a chat."""

    deleted_messages: int
