"""Typed client for the Diffbot content-extraction API."""

from __future__ import annotations

from loguru import logger

from diffbot.client import Diffbot, call
from diffbot.config import Settings, get_settings
from diffbot.document import JsonValue, ResponseDocument
from diffbot.endpoints import CustomApi, Operation, content_operations, path_for
from diffbot.errors import (
    ERROR_PROCESSING,
    REQUESTED_PAGE_NOT_FOUND,
    TOKEN_EXCEEDED_OR_THROTTLED,
    UNAUTHORIZED_TOKEN,
    ApiError,
    DiffbotError,
    InvalidInputError,
    NetworkError,
    ParseError,
)
from diffbot.logs import configure_logging
from diffbot.request import Request, build_bulk, build_call, build_crawl, build_search
from diffbot.retry import diffbot_retrying, is_throttled

logger.disable("diffbot")

__version__ = "1.0.0"

__all__ = [
    "ApiError",
    "CustomApi",
    "Diffbot",
    "DiffbotError",
    "ERROR_PROCESSING",
    "InvalidInputError",
    "JsonValue",
    "NetworkError",
    "Operation",
    "ParseError",
    "REQUESTED_PAGE_NOT_FOUND",
    "Request",
    "ResponseDocument",
    "Settings",
    "TOKEN_EXCEEDED_OR_THROTTLED",
    "UNAUTHORIZED_TOKEN",
    "build_bulk",
    "build_call",
    "build_crawl",
    "build_search",
    "call",
    "configure_logging",
    "content_operations",
    "diffbot_retrying",
    "get_settings",
    "is_throttled",
    "path_for",
]
