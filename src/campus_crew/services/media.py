"""Validation and storage of shared media files."""

from __future__ import annotations

import base64
import binascii
import secrets
from dataclasses import dataclass
from pathlib import PurePosixPath

from campus_crew.core.settings import settings
from campus_crew.models.chat import MessageType
from campus_crew.schemas.chat import MediaUpload

from .blob_store import BlobStore
from .errors import CollaboratorUnavailableError, ValidationFailed

ALLOWED_TYPES: dict[MessageType, frozenset[str]] = {
    MessageType.IMAGE: frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"}),
    MessageType.VIDEO: frozenset({"video/mp4", "video/webm", "video/quicktime"}),
    MessageType.DOCUMENT: frozenset(
        {
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "text/plain",
        }
    ),
}

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


@dataclass(frozen=True)
class StoredMedia:
    """A validated file that now lives in the blob store."""

    message_type: MessageType
    url: str
    name: str
    size: int
    video_duration: float | None

    @property
    def summary(self) -> str:
        """Message text shown in chat lists for this file."""
        return f"Shared {self.message_type.value}: {self.name}"


def format_file_size(num_bytes: int) -> str:
    """Render a byte count as e.g. ``1.5 MB``."""
    if num_bytes <= 0:
        return "0 Bytes"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def classify(content_type: str) -> MessageType:
    """Map a MIME type onto a media message type, or fail validation."""
    for message_type, allowed in ALLOWED_TYPES.items():
        if content_type in allowed:
            return message_type
    raise ValidationFailed(
        "File type not supported. Please upload images, videos (MP4, WebM, MOV) "
        "or documents (PDF, DOC, DOCX, TXT).",
        operation="validate_media",
    )


def max_size_for(content_type: str) -> int:
    """Images may be larger than every other kind of file."""
    if content_type.startswith("image/"):
        return settings.max_image_bytes
    return settings.max_media_bytes


def validate_media(
    upload: MediaUpload, *, max_bytes: int | None = None
) -> tuple[MessageType, bytes]:
    """Check type, size and video duration and return the decoded bytes.

    Args:
        upload: File received from the client.
        max_bytes: Overrides the per-type size limit.

    Raises:
        ValidationFailed: On any rule violation; nothing is stored.
    """
    message_type = classify(upload.content_type)

    try:
        data = base64.b64decode(upload.data_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationFailed(
            "File data must be valid base64", operation="validate_media"
        ) from exc

    if not data:
        raise ValidationFailed("File is empty", operation="validate_media")

    limit = max_bytes or max_size_for(upload.content_type)
    if len(data) > limit:
        raise ValidationFailed(
            f"File size must be less than {format_file_size(limit)}",
            operation="validate_media",
        )

    if message_type is MessageType.VIDEO:
        if upload.video_duration is None:
            raise ValidationFailed(
                "Video duration is required", operation="validate_media"
            )
        if upload.video_duration > settings.max_video_seconds:
            raise ValidationFailed(
                f"Video must be {settings.max_video_seconds:g} seconds or less",
                operation="validate_media",
            )

    return message_type, data


def store_media(
    blob_store: BlobStore,
    upload: MediaUpload,
    *,
    folder: str,
    max_bytes: int | None = None,
) -> StoredMedia:
    """Validate ``upload`` and put it in the blob store.

    Args:
        blob_store: Destination store.
        upload: File received from the client.
        folder: Path prefix, e.g. ``chats/12`` or ``global``.
        max_bytes: Optional size limit tighter than the per-type default.
    """
    message_type, data = validate_media(upload, max_bytes=max_bytes)
    safe_name = PurePosixPath(upload.file_name).name or "file"
    path = f"{folder}/{secrets.token_hex(8)}-{safe_name}"
    try:
        url = blob_store.put(data, path)
    except OSError as exc:
        raise CollaboratorUnavailableError(
            "File storage is unavailable, please retry", operation="store_media"
        ) from exc
    return StoredMedia(
        message_type=message_type,
        url=url,
        name=safe_name,
        size=len(data),
        video_duration=upload.video_duration if message_type is MessageType.VIDEO else None,
    )
