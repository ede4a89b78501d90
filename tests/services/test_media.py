"""Tests for media validation."""

from __future__ import annotations

import base64

import pytest

from campus_crew.core.settings import settings
from campus_crew.models import MessageType
from campus_crew.schemas.chat import MediaUpload
from campus_crew.services.errors import ValidationFailed
from campus_crew.services.media import classify, format_file_size, store_media, validate_media


def _upload(data: bytes, content_type: str, **kwargs) -> MediaUpload:
    return MediaUpload(
        file_name=kwargs.pop("file_name", "file.bin"),
        content_type=content_type,
        data_b64=base64.b64encode(data).decode(),
        **kwargs,
    )


@pytest.mark.parametrize(
    ("num_bytes", "expected"),
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
    ],
)
def test_format_file_size(num_bytes, expected) -> None:
    assert format_file_size(num_bytes) == expected


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("image/webp", MessageType.IMAGE),
        ("video/quicktime", MessageType.VIDEO),
        ("text/plain", MessageType.DOCUMENT),
    ],
)
def test_classify_known_types(content_type, expected) -> None:
    assert classify(content_type) is expected


def test_classify_rejects_unknown_type() -> None:
    with pytest.raises(ValidationFailed):
        classify("application/zip")


def test_images_may_exceed_the_general_limit(monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_image_bytes", 16)
    monkeypatch.setattr(settings, "max_media_bytes", 8)

    message_type, data = validate_media(_upload(b"x" * 12, "image/png"))
    assert message_type is MessageType.IMAGE
    assert len(data) == 12

    with pytest.raises(ValidationFailed, match="less than"):
        validate_media(_upload(b"x" * 12, "application/pdf"))
    with pytest.raises(ValidationFailed):
        validate_media(_upload(b"x" * 17, "image/png"))


def test_explicit_limit_overrides_type_limit(monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_image_bytes", 64)

    with pytest.raises(ValidationFailed, match="less than 10 Bytes"):
        validate_media(_upload(b"x" * 11, "image/png"), max_bytes=10)
    _, data = validate_media(_upload(b"x" * 10, "image/png"), max_bytes=10)
    assert len(data) == 10


def test_video_needs_short_duration() -> None:
    with pytest.raises(ValidationFailed, match="duration"):
        validate_media(_upload(b"video", "video/mp4"))
    with pytest.raises(ValidationFailed, match="seconds or less"):
        validate_media(_upload(b"video", "video/mp4", video_duration=15.5))

    message_type, _ = validate_media(_upload(b"video", "video/mp4", video_duration=15))
    assert message_type is MessageType.VIDEO


def test_invalid_base64_rejected() -> None:
    upload = MediaUpload(file_name="a.png", content_type="image/png", data_b64="not base64!")
    with pytest.raises(ValidationFailed, match="base64"):
        validate_media(upload)


def test_empty_file_rejected() -> None:
    with pytest.raises(ValidationFailed, match="empty"):
        validate_media(_upload(b"", "text/plain"))


def test_store_media_strips_directories(blob_store) -> None:
    stored = store_media(
        blob_store, _upload(b"hello", "text/plain", file_name="../../etc/notes.txt"), folder="global"
    )

    assert stored.name == "notes.txt"
    assert stored.size == 5
    assert stored.video_duration is None
    assert stored.url.startswith("/media/global/")
    assert stored.url.endswith("-notes.txt")
