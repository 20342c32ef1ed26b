"""Exceptions raised by the WeCom bot client.

Every failure surfaces to the caller as a subclass of :class:`WeComError`.
The library never retries and never logs errors on the caller's behalf.
"""

from __future__ import annotations


class WeComError(Exception):
    """Base class for all wecom_bot errors."""


class KeyNotFoundError(WeComError):
    """Raised when a client is built without a usable webhook key."""

    def __init__(self) -> None:
        super().__init__("wecom bot key not set")


class NetworkError(WeComError):
    """The HTTP exchange failed before a response was received."""

    def __init__(self, source: Exception) -> None:
        self.source = source
        super().__init__(f"network failed: {source}")


class ServerError(WeComError):
    """The webhook API answered with a 5xx status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"wecom bot server error: {status_code}")


class DecodeError(WeComError):
    """The response body could not be decoded into the expected type."""

    def __init__(self, typename: str, source: Exception) -> None:
        self.typename = typename
        self.source = source
        super().__init__(f"could not parse {typename} data from JSON: {source}")


class ImageReadError(WeComError):
    """A local image file could not be read."""

    def __init__(self, source: OSError) -> None:
        self.source = source
        super().__init__(f"failed to read image file: {source}")


class FileReadError(WeComError):
    """A local file could not be read for upload."""

    def __init__(self, source: OSError) -> None:
        self.source = source
        super().__init__(f"failed to read upload file: {source}")


class MediaTypeError(WeComError):
    """An unknown media kind was given where one had to be parsed."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"unknown upload media type: {value}")


class MessageValidationError(WeComError):
    """A message exceeds the documented webhook size or count limits."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("invalid message: " + "; ".join(problems))
