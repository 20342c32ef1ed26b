"""Tests for the outbound message model and its wire format."""

from __future__ import annotations

import dataclasses
import json

import pytest

from wecom_bot.errors import MessageValidationError
from wecom_bot.message import MAX_NEWS_ARTICLES, Message, NewsBody, TextBody
from wecom_bot.models import Article, Image


def _wire(message: Message) -> dict:
    """Parse the serialized JSON back so assertions ignore key order."""
    return json.loads(message.to_json())


def _make_article(index: int = 0, **kwargs: str) -> Article:
    defaults = {"title": f"title {index}", "url": f"https://example.com/{index}"}
    defaults.update(kwargs)
    return Article(**defaults)


class TestTextMessage:
    def test_text_only(self) -> None:
        msg = Message.text("Text-Only")
        assert _wire(msg) == {"msgtype": "text", "text": {"content": "Text-Only"}}

    def test_unset_mentions_are_omitted_not_null(self) -> None:
        raw = Message.text("hi").to_json()
        assert "null" not in raw
        assert "mentioned_list" not in raw
        assert "mentioned_mobile_list" not in raw

    def test_compact_json(self) -> None:
        assert Message.text("Text-Only").to_json() == (
            '{"msgtype":"text","text":{"content":"Text-Only"}}'
        )

    def test_mentioned_list_injection(self) -> None:
        msg = Message.text("Title").with_mentioned_list(["", "uid2"])
        assert _wire(msg) == {
            "msgtype": "text",
            "text": {"content": "Title", "mentioned_list": ["", "uid2"]},
        }

    def test_mentioned_mobile_list(self) -> None:
        msg = Message.text("ping").with_mentioned_mobile_list(["13800001111", "@all"])
        assert _wire(msg)["text"] == {
            "content": "ping",
            "mentioned_mobile_list": ["13800001111", "@all"],
        }

    def test_both_mention_lists(self) -> None:
        msg = Message.text("x", mentioned_list=["@all"], mentioned_mobile_list=["138"])
        assert _wire(msg)["text"] == {
            "content": "x",
            "mentioned_list": ["@all"],
            "mentioned_mobile_list": ["138"],
        }

    def test_bare_string_mention_is_one_id(self) -> None:
        msg = Message.text("x").with_mentioned_list("@all").with_mentioned_mobile_list("138")
        assert _wire(msg)["text"] == {
            "content": "x",
            "mentioned_list": ["@all"],
            "mentioned_mobile_list": ["138"],
        }
        assert _wire(Message.text("x", mentioned_list="@all"))["text"]["mentioned_list"] == ["@all"]

    def test_setters_return_new_instance(self) -> None:
        original = Message.text("Title")
        updated = original.with_mentioned_list(["uid"])
        assert original is not updated
        assert isinstance(original.body, TextBody)
        assert original.body.mentioned_list is None

    def test_bytes_content_is_decoded(self) -> None:
        assert _wire(Message.text("你好".encode()))["text"]["content"] == "你好"

    def test_non_ascii_kept_unescaped(self) -> None:
        assert "你好" in Message.text("你好").to_json()


class TestMarkdownMessage:
    def test_markdown_shape(self) -> None:
        msg = Message.markdown("# Markdown")
        assert _wire(msg) == {"msgtype": "markdown", "markdown": {"content": "# Markdown"}}

    def test_mention_setters_are_noop(self) -> None:
        msg = Message.markdown("# Markdown")
        assert msg.with_mentioned_list(["uid"]) is msg
        assert msg.with_mentioned_mobile_list(["138"]) is msg
        assert msg.with_mentioned_list(["uid"]).to_json() == msg.to_json()


class TestImageMessage:
    def test_image_encoding(self) -> None:
        msg = Message.image(Image(b"image"))
        assert _wire(msg) == {
            "msgtype": "image",
            "image": {
                "base64": "aW1hZ2U=",
                "md5": "78805a221a988e79ef3f42d7c5bfd418",
            },
        }

    def test_image_is_deterministic(self) -> None:
        assert Message.image(Image(b"image")) == Message.image(Image(b"image"))

    def test_mention_setter_is_noop(self) -> None:
        msg = Message.image(Image(b"image"))
        assert msg.with_mentioned_list(["uid"]) is msg


class TestNewsMessage:
    def test_article_optional_fields_omitted(self) -> None:
        msg = Message.news([_make_article()])
        assert _wire(msg) == {
            "msgtype": "news",
            "news": {"articles": [{"title": "title 0", "url": "https://example.com/0"}]},
        }

    def test_article_pic_url_wire_name(self) -> None:
        article = _make_article(description="desc", pic_url="https://example.com/p.png")
        entry = _wire(Message.news([article]))["news"]["articles"][0]
        assert entry["picurl"] == "https://example.com/p.png"
        assert entry["description"] == "desc"
        assert "pic_url" not in entry

    def test_eight_articles_keep_order(self) -> None:
        articles = [_make_article(i) for i in range(MAX_NEWS_ARTICLES)]
        entries = _wire(Message.news(articles))["news"]["articles"]
        assert [e["title"] for e in entries] == [f"title {i}" for i in range(8)]

    def test_out_of_range_count_is_not_rejected(self) -> None:
        articles = [_make_article(i) for i in range(9)]
        assert len(_wire(Message.news(articles))["news"]["articles"]) == 9
        assert _wire(Message.news([]))["news"]["articles"] == []

    def test_article_edits_after_construction_do_not_leak(self) -> None:
        article = _make_article()
        msg = Message.news([article])
        article.title = "changed"
        assert _wire(msg)["news"]["articles"][0]["title"] == "title 0"

    def test_built_articles_are_frozen(self) -> None:
        msg = Message.news([_make_article()])
        assert isinstance(msg.body, NewsBody)
        with pytest.raises(dataclasses.FrozenInstanceError):
            msg.body.articles[0].title = "changed"  # type: ignore[misc]
        assert _wire(msg)["news"]["articles"][0]["title"] == "title 0"

    def test_news_message_is_hashable(self) -> None:
        first = Message.news([_make_article(pic_url="https://example.com/p.png")])
        second = Message.news([_make_article(pic_url="https://example.com/p.png")])
        assert hash(first) == hash(second)

    def test_accepts_generator(self) -> None:
        msg = Message.news(_make_article(i) for i in range(2))
        assert len(_wire(msg)["news"]["articles"]) == 2


class TestFileMessage:
    def test_file_shape(self) -> None:
        msg = Message.file("3a8asd892asd8asd")
        assert _wire(msg) == {"msgtype": "file", "file": {"media_id": "3a8asd892asd8asd"}}

    def test_msgtype_property(self) -> None:
        assert Message.file("id").msgtype == "file"


class TestValidate:
    def test_valid_messages_pass(self) -> None:
        Message.text("ok").validate()
        Message.markdown("ok").validate()
        Message.news([_make_article()]).validate()
        Message.file("id").validate()

    def test_text_limit_counts_bytes(self) -> None:
        # 683 three-byte characters exceed 2048 bytes
        with pytest.raises(MessageValidationError, match="text content"):
            Message.text("字" * 683).validate()
        Message.text("字" * 682).validate()

    def test_markdown_limit(self) -> None:
        with pytest.raises(MessageValidationError):
            Message.markdown("x" * 4097).validate()

    def test_news_count_limits(self) -> None:
        with pytest.raises(MessageValidationError, match="0 articles"):
            Message.news([]).validate()
        with pytest.raises(MessageValidationError, match="9 articles"):
            Message.news([_make_article(i) for i in range(9)]).validate()

    def test_collects_every_problem(self) -> None:
        article = _make_article(title="t" * 129, description="d" * 513)
        with pytest.raises(MessageValidationError) as exc_info:
            Message.news([article]).validate()
        assert len(exc_info.value.problems) == 2
