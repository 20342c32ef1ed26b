"""Outbound message model for the WeCom group bot webhook.

A :class:`Message` wraps exactly one body (text, markdown, image, news or
file) and serializes to the webhook wire format::

    {"msgtype": "<tag>", "<tag>": {...body fields...}}

Optional body fields that are unset are omitted from the JSON entirely.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from wecom_bot.errors import MessageValidationError
from wecom_bot.models import Article, Image

logger = logging.getLogger(__name__)

MAX_TEXT_BYTES = 2048
MAX_MARKDOWN_BYTES = 4096
MAX_ARTICLE_TITLE_BYTES = 128
MAX_ARTICLE_DESCRIPTION_BYTES = 512
MAX_NEWS_ARTICLES = 8


def _as_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return str(value)


def _as_ids(ids: Iterable[str] | None) -> tuple[str, ...] | None:
    if ids is None:
        return None
    # a bare "@all" means one id, not its characters
    if isinstance(ids, (str, bytes, bytearray)):
        return (_as_str(ids),)
    return tuple(_as_str(i) for i in ids)


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


@dataclass(frozen=True)
class TextBody:
    msgtype: ClassVar[str] = "text"

    content: str
    # user ids, "@all" mentions everyone
    mentioned_list: tuple[str, ...] | None = None
    # phone numbers, for when the user id is unknown
    mentioned_mobile_list: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": self.content}
        if self.mentioned_list is not None:
            data["mentioned_list"] = list(self.mentioned_list)
        if self.mentioned_mobile_list is not None:
            data["mentioned_mobile_list"] = list(self.mentioned_mobile_list)
        return data


@dataclass(frozen=True)
class MarkdownBody:
    msgtype: ClassVar[str] = "markdown"

    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content}


@dataclass(frozen=True)
class ImageBody:
    msgtype: ClassVar[str] = "image"

    base64: str
    md5: str

    def to_dict(self) -> dict[str, Any]:
        return {"base64": self.base64, "md5": self.md5}


@dataclass(frozen=True)
class NewsArticle:
    """Frozen snapshot of an :class:`Article` held by a news message."""

    title: str
    url: str
    description: str | None = None
    pic_url: str | None = None

    @classmethod
    def from_article(cls, article: Article) -> NewsArticle:
        return cls(
            title=article.title,
            url=article.url,
            description=article.description,
            pic_url=article.pic_url,
        )

    def to_dict(self) -> dict[str, str]:
        return Article(self.title, self.url, self.description, self.pic_url).to_dict()


@dataclass(frozen=True)
class NewsBody:
    msgtype: ClassVar[str] = "news"

    articles: tuple[NewsArticle, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"articles": [a.to_dict() for a in self.articles]}


@dataclass(frozen=True)
class FileBody:
    msgtype: ClassVar[str] = "file"

    media_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"media_id": self.media_id}


MessageBody = Union[TextBody, MarkdownBody, ImageBody, NewsBody, FileBody]


@dataclass(frozen=True)
class Message:
    """A single webhook payload.

    Build instances with the constructors (:meth:`text`, :meth:`markdown`,
    :meth:`image`, :meth:`news`, :meth:`file`) rather than by hand::

        msg = Message.text("deploy finished").with_mentioned_list(["@all"])
        bot.send(msg)

    Size and count limits documented by WeCom are not checked on
    construction; call :meth:`validate` to check them explicitly.
    """

    body: MessageBody

    @classmethod
    def text(
        cls,
        content: Any,
        mentioned_list: Iterable[str] | None = None,
        mentioned_mobile_list: Iterable[str] | None = None,
    ) -> Message:
        return cls(TextBody(
            content=_as_str(content),
            mentioned_list=_as_ids(mentioned_list),
            mentioned_mobile_list=_as_ids(mentioned_mobile_list),
        ))

    @classmethod
    def markdown(cls, content: Any) -> Message:
        return cls(MarkdownBody(content=_as_str(content)))

    @classmethod
    def image(cls, image: Image) -> Message:
        b64, md5 = image.encode()
        return cls(ImageBody(base64=b64, md5=md5))

    @classmethod
    def news(cls, articles: Iterable[Article]) -> Message:
        """Build a news message; WeCom accepts 1 to 8 articles."""
        return cls(NewsBody(articles=tuple(NewsArticle.from_article(a) for a in articles)))

    @classmethod
    def file(cls, media_id: Any) -> Message:
        """Build a file message from the ``media_id`` of a prior upload."""
        return cls(FileBody(media_id=_as_str(media_id)))

    @property
    def msgtype(self) -> str:
        return self.body.msgtype

    def with_mentioned_list(self, ids: Iterable[str]) -> Message:
        """Return a copy mentioning *ids*; no-op unless this is a text message."""
        if not isinstance(self.body, TextBody):
            logger.debug("mentioned_list ignored for %s message", self.msgtype)
            return self
        return Message(dataclasses.replace(self.body, mentioned_list=_as_ids(ids)))

    def with_mentioned_mobile_list(self, ids: Iterable[str]) -> Message:
        """Return a copy mentioning phone numbers *ids*; no-op unless text."""
        if not isinstance(self.body, TextBody):
            logger.debug("mentioned_mobile_list ignored for %s message", self.msgtype)
            return self
        return Message(dataclasses.replace(self.body, mentioned_mobile_list=_as_ids(ids)))

    def to_dict(self) -> dict[str, Any]:
        return {"msgtype": self.msgtype, self.msgtype: self.body.to_dict()}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    def validate(self) -> None:
        """Check the documented webhook limits.

        Raises :class:`MessageValidationError` listing every violation.
        """
        problems: list[str] = []
        body = self.body
        if isinstance(body, TextBody):
            size = _byte_len(body.content)
            if size > MAX_TEXT_BYTES:
                problems.append(f"text content is {size} bytes (max {MAX_TEXT_BYTES})")
        elif isinstance(body, MarkdownBody):
            size = _byte_len(body.content)
            if size > MAX_MARKDOWN_BYTES:
                problems.append(
                    f"markdown content is {size} bytes (max {MAX_MARKDOWN_BYTES})"
                )
        elif isinstance(body, NewsBody):
            count = len(body.articles)
            if not 1 <= count <= MAX_NEWS_ARTICLES:
                problems.append(f"news has {count} articles (expected 1-{MAX_NEWS_ARTICLES})")
            for index, article in enumerate(body.articles):
                size = _byte_len(article.title)
                if size > MAX_ARTICLE_TITLE_BYTES:
                    problems.append(
                        f"article {index} title is {size} bytes (max {MAX_ARTICLE_TITLE_BYTES})"
                    )
                if article.description is not None:
                    size = _byte_len(article.description)
                    if size > MAX_ARTICLE_DESCRIPTION_BYTES:
                        problems.append(
                            f"article {index} description is {size} bytes"
                            f" (max {MAX_ARTICLE_DESCRIPTION_BYTES})"
                        )
        if problems:
            raise MessageValidationError(problems)
