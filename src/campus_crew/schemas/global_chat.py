"""Global chat Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .chat import MediaUpload


class GlobalMessageCreate(BaseModel):
    """Schema for posting to the global room."""

    content: str = Field(..., min_length=1, max_length=2000)
    sender_location: str | None = Field(None, max_length=200)


class GlobalMediaUpload(MediaUpload):
    """Media shared in the global room."""

    sender_location: str | None = Field(None, max_length=200)


class GlobalMessageResponse(BaseModel):
    """Schema for a global chat message returned by the API."""

    id: int
    sender_id: str
    sender_name: str
    sender_location: str
    content: str
    type: str
    media_url: str | None = None
    media_name: str | None = None
    media_size: int | None = None
    video_duration: float | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
