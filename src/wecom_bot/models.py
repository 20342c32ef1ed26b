"""Value types shared by the message model and the bot client."""

from __future__ import annotations

import base64
import hashlib
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

from wecom_bot.errors import ImageReadError, MediaTypeError

PathSource = Union[str, os.PathLike]


class MediaType(str, Enum):
    """Kinds of media accepted by the upload endpoint."""

    FILE = "file"
    IMAGE = "image"
    VOICE = "voice"
    VIDEO = "video"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> MediaType:
        """Parse a media kind case-insensitively, e.g. ``"Voice"``."""
        try:
            return cls(value.lower())
        except ValueError:
            raise MediaTypeError(value) from None

    def format_upload_url(self, base: str) -> str:
        return f"{base}&type={self.value}"


@dataclass
class Article:
    """One entry of a news message.

    ``title`` is limited to 128 bytes and ``description`` to 512 bytes.
    """

    title: str
    url: str
    description: str | None = None
    pic_url: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"title": self.title}
        if self.description is not None:
            data["description"] = self.description
        data["url"] = self.url
        if self.pic_url is not None:
            data["picurl"] = self.pic_url
        return data


class Image:
    """Raw image content (PNG or JPG) to be sent inline as an image message."""

    def __init__(self, data: bytes) -> None:
        self._content = bytes(data)

    @classmethod
    def from_file(cls, path: PathSource) -> Image:
        """Load image content from *path*, raising :class:`ImageReadError` on I/O failure."""
        try:
            return cls(Path(path).read_bytes())
        except OSError as exc:
            raise ImageReadError(exc) from exc

    @property
    def content(self) -> bytes:
        return self._content

    def encode(self) -> tuple[str, str]:
        """Return ``(base64, md5_hex)`` of the raw content."""
        b64 = base64.b64encode(self._content).decode("ascii")
        digest = hashlib.md5(self._content).hexdigest()
        return b64, digest

    def __repr__(self) -> str:
        return f"Image({len(self._content)} bytes)"


def _require(data: dict[str, Any], key: str, kind: type) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    value = data[key]
    # bool is an int subclass but never a valid errcode
    if not isinstance(value, kind) or isinstance(value, bool):
        raise TypeError(f"field `{key}` must be {kind.__name__}, got {type(value).__name__}")
    return value


def _optional_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field `{key}` must be str, got {type(value).__name__}")
    return value


@dataclass
class SendResp:
    """Status returned by the send endpoint."""

    err_code: int = 0
    err_msg: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> SendResp:
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return cls(
            err_code=_require(data, "errcode", int),
            err_msg=_require(data, "errmsg", str),
        )

    def is_ok(self) -> bool:
        return self.err_code == 0


@dataclass
class UploadResp:
    """Result of a media upload.

    The default instance means "success, nothing uploaded yet".
    """

    err_code: int = 0
    err_msg: str = "success"
    media_type: str = MediaType.FILE.value
    media_id: str = ""
    created_at: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> UploadResp:
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return cls(
            err_code=_require(data, "errcode", int),
            err_msg=_require(data, "errmsg", str),
            media_type=_optional_str(data, "type"),
            media_id=_optional_str(data, "media_id"),
            created_at=_optional_str(data, "created_at"),
        )

    def is_ok(self) -> bool:
        return self.err_code == 0
