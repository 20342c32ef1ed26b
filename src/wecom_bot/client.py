"""WeCom group bot webhook clients.

Two clients share one contract: :class:`WeComBot` blocks the calling thread,
:class:`WeComBotAsync` suspends at I/O. Both are built from a webhook key,
hold no mutable state after construction and may be shared freely.

Failure policy:
- transport failure (DNS, connect, timeout, unusable URL) -> ``NetworkError``
- 5xx status -> ``ServerError``
- body not decodable into the response type -> ``DecodeError``
- anything else, 4xx included, is decoded and returned; WeCom reports most
  problems through ``errcode`` in a 200 body.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar, Union

import httpx

from wecom_bot.errors import (
    DecodeError,
    FileReadError,
    KeyNotFoundError,
    NetworkError,
    ServerError,
)
from wecom_bot.message import Message
from wecom_bot.models import MediaType, PathSource, SendResp, UploadResp

logger = logging.getLogger(__name__)

WECOM_SEND_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send"
WECOM_UPLOAD_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/upload_media"
DEFAULT_TIMEOUT = 10.0
KEY_ENV_VAR = "WECOM_BOT_KEY"

R = TypeVar("R")
UploadSource = Union[PathSource, bytes]


@dataclass(frozen=True)
class BotEndpoints:
    """Send and upload URLs derived from one webhook key."""

    send_url: str
    upload_base_url: str

    @classmethod
    def from_key(cls, key: str | None) -> BotEndpoints:
        # keys read from files or env vars often carry a trailing newline
        key = key.strip() if key is not None else ""
        if not key:
            raise KeyNotFoundError()
        return cls(
            send_url=f"{WECOM_SEND_URL}?key={key}",
            upload_base_url=f"{WECOM_UPLOAD_URL}?key={key}",
        )

    def upload_url(self, media_type: MediaType) -> str:
        return media_type.format_upload_url(self.upload_base_url)


def _media_type(media_type: MediaType | str) -> MediaType:
    if isinstance(media_type, MediaType):
        return media_type
    return MediaType.parse(media_type)


def _check_status(response: httpx.Response) -> None:
    if response.is_server_error:
        raise ServerError(response.status_code)


def _decode(response: httpx.Response, resp_type: type[R]) -> R:
    try:
        return resp_type.from_dict(response.json())  # type: ignore[attr-defined]
    except (ValueError, TypeError) as exc:
        raise DecodeError(resp_type.__qualname__, exc) from exc


def _read_source(source: UploadSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    try:
        return Path(source).read_bytes()
    except OSError as exc:
        raise FileReadError(exc) from exc


def _upload_filename(source: UploadSource, filename: str | None) -> str:
    if filename is not None:
        return filename
    if isinstance(source, (bytes, bytearray)):
        return ""
    return Path(source).name


def _log_response(kind: str, response: httpx.Response) -> None:
    logger.debug("wecom %s answered HTTP %d", kind, response.status_code)


class _BuilderBase:
    def __init__(self) -> None:
        self._key: str | None = None
        self._timeout: float = DEFAULT_TIMEOUT

    def key(self, key: Any):
        """Set the webhook key used to build the endpoint URLs."""
        self._key = None if key is None else str(key)
        return self

    def key_from_env(self, var: str = KEY_ENV_VAR):
        """Read the webhook key from environment variable *var*.

        A missing variable leaves the key unset so that ``build()`` fails
        with ``KeyNotFoundError``.
        """
        self._key = os.environ.get(var)
        return self

    def timeout(self, seconds: float):
        """Request timeout for the default HTTP client. Ignored if a client is supplied."""
        self._timeout = seconds
        return self


class WeComBotBuilder(_BuilderBase):
    """Configures a blocking :class:`WeComBot`."""

    def __init__(self) -> None:
        super().__init__()
        self._client: httpx.Client | None = None

    def client(self, client: httpx.Client) -> WeComBotBuilder:
        """Use a pre-configured ``httpx.Client`` (proxies, pooling, timeouts)."""
        self._client = client
        return self

    def build(self) -> WeComBot:
        endpoints = BotEndpoints.from_key(self._key)
        if self._client is not None:
            return WeComBot(endpoints, self._client, owns_client=False)
        return WeComBot(endpoints, httpx.Client(timeout=self._timeout), owns_client=True)


class WeComBotAsyncBuilder(_BuilderBase):
    """Configures a :class:`WeComBotAsync`."""

    def __init__(self) -> None:
        super().__init__()
        self._client: httpx.AsyncClient | None = None

    def client(self, client: httpx.AsyncClient) -> WeComBotAsyncBuilder:
        self._client = client
        return self

    def build(self) -> WeComBotAsync:
        endpoints = BotEndpoints.from_key(self._key)
        if self._client is not None:
            return WeComBotAsync(endpoints, self._client, owns_client=False)
        return WeComBotAsync(
            endpoints, httpx.AsyncClient(timeout=self._timeout), owns_client=True,
        )


class WeComBot:
    """Blocking WeCom bot client.

    Usage::

        bot = WeComBot.from_key("xxxx-xxxx")
        resp = bot.send(Message.text("hello"))
        if not resp.is_ok():
            ...
    """

    def __init__(
        self, endpoints: BotEndpoints, client: httpx.Client, owns_client: bool = False,
    ) -> None:
        self._endpoints = endpoints
        self._client = client
        self._owns_client = owns_client

    @staticmethod
    def builder() -> WeComBotBuilder:
        return WeComBotBuilder()

    @classmethod
    def from_key(cls, key: str) -> WeComBot:
        """Client with the default configuration for webhook *key*."""
        return WeComBotBuilder().key(key).build()

    def send(self, message: Message, resp_type: type[R] = SendResp) -> R:  # type: ignore[assignment]
        """Send *message* and decode the reply into *resp_type*."""
        logger.debug("sending %s message", message.msgtype)
        try:
            response = self._client.post(self._endpoints.send_url, json=message.to_dict())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(exc) from exc
        _log_response("send", response)
        _check_status(response)
        return _decode(response, resp_type)

    def upload(
        self,
        media_type: MediaType | str,
        source: UploadSource,
        filename: str | None = None,
    ) -> UploadResp:
        """Upload a file (path or raw bytes) and return its ``media_id``.

        The returned id is valid for :meth:`Message.file`.
        """
        kind = _media_type(media_type)
        content = _read_source(source)
        files = {"filename": (_upload_filename(source, filename), content)}
        logger.debug("uploading %d bytes as %s", len(content), kind.value)
        try:
            response = self._client.post(self._endpoints.upload_url(kind), files=files)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(exc) from exc
        _log_response("upload", response)
        _check_status(response)
        return _decode(response, UploadResp)

    def close(self) -> None:
        """Close the underlying HTTP client if this bot created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> WeComBot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"WeComBot(url={self._endpoints.send_url!r})"


class WeComBotAsync:
    """Non-blocking WeCom bot client with the same contract as :class:`WeComBot`."""

    def __init__(
        self, endpoints: BotEndpoints, client: httpx.AsyncClient, owns_client: bool = False,
    ) -> None:
        self._endpoints = endpoints
        self._client = client
        self._owns_client = owns_client

    @staticmethod
    def builder() -> WeComBotAsyncBuilder:
        return WeComBotAsyncBuilder()

    @classmethod
    def from_key(cls, key: str) -> WeComBotAsync:
        return WeComBotAsyncBuilder().key(key).build()

    async def send(self, message: Message, resp_type: type[R] = SendResp) -> R:  # type: ignore[assignment]
        logger.debug("sending %s message", message.msgtype)
        try:
            response = await self._client.post(
                self._endpoints.send_url, json=message.to_dict(),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(exc) from exc
        _log_response("send", response)
        _check_status(response)
        return _decode(response, resp_type)

    async def upload(
        self,
        media_type: MediaType | str,
        source: UploadSource,
        filename: str | None = None,
    ) -> UploadResp:
        kind = _media_type(media_type)
        # file reads happen off the event loop
        content = await asyncio.to_thread(_read_source, source)
        files = {"filename": (_upload_filename(source, filename), content)}
        logger.debug("uploading %d bytes as %s", len(content), kind.value)
        try:
            response = await self._client.post(
                self._endpoints.upload_url(kind), files=files,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(exc) from exc
        _log_response("upload", response)
        _check_status(response)
        return _decode(response, UploadResp)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WeComBotAsync:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"WeComBotAsync(url={self._endpoints.send_url!r})"
