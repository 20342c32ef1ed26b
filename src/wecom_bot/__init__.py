"""Client library for WeCom (Enterprise WeChat) group bot webhooks."""

from wecom_bot.client import (
    BotEndpoints,
    WeComBot,
    WeComBotAsync,
    WeComBotAsyncBuilder,
    WeComBotBuilder,
)
from wecom_bot.errors import (
    DecodeError,
    FileReadError,
    ImageReadError,
    KeyNotFoundError,
    MediaTypeError,
    MessageValidationError,
    NetworkError,
    ServerError,
    WeComError,
)
from wecom_bot.message import Message
from wecom_bot.models import Article, Image, MediaType, SendResp, UploadResp

__all__ = [
    "Article",
    "BotEndpoints",
    "DecodeError",
    "FileReadError",
    "Image",
    "ImageReadError",
    "KeyNotFoundError",
    "MediaType",
    "MediaTypeError",
    "Message",
    "MessageValidationError",
    "NetworkError",
    "SendResp",
    "ServerError",
    "UploadResp",
    "WeComBot",
    "WeComBotAsync",
    "WeComBotAsyncBuilder",
    "WeComBotBuilder",
    "WeComError",
]
