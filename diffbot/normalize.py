"""Classification of transport outcomes into documents or errors.

The order of checks matters: transport failure, then JSON parsing, then
API-level errors, then success. The remote service reports some errors inside
a 200 response (``{"error": "...", "errorCode": 401}``), so the body is
inspected before the HTTP status is trusted.
"""

from __future__ import annotations

import json
from typing import Any, Final

from loguru import logger

from diffbot.document import ResponseDocument
from diffbot.errors import ApiError, NetworkError, ParseError
from diffbot.net.http import RawResponse, Transport, TransportError, truncate
from diffbot.request import Request

__all__ = ["BODY_PREFIX_CHARS", "exchange", "normalize_response"]

log = logger.bind(module="normalize")

BODY_PREFIX_CHARS: Final[int] = 256


def _body_prefix(body: bytes) -> str:
    text = body[: BODY_PREFIX_CHARS * 4].decode("utf-8", errors="replace")
    return truncate(text.strip(), limit=BODY_PREFIX_CHARS)


def _api_error_code(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _parse(raw: RawResponse) -> dict[str, Any]:
    if not raw.body:
        raise ParseError("Empty response body", status_code=raw.status_code)
    try:
        payload = json.loads(raw.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(
            f"Invalid JSON response: {exc}",
            status_code=raw.status_code,
            body_prefix=_body_prefix(raw.body),
        ) from exc
    except RecursionError as exc:
        raise ParseError(
            "Invalid JSON response: nested too deeply",
            status_code=raw.status_code,
            body_prefix=_body_prefix(raw.body),
        ) from exc
    if not isinstance(payload, dict):
        raise ParseError(
            f"Expected a JSON object, got {type(payload).__name__}",
            status_code=raw.status_code,
            body_prefix=_body_prefix(raw.body),
        )
    return payload


def normalize_response(raw: RawResponse) -> ResponseDocument:
    """Turn a completed HTTP exchange into a document.

    Raises:
        ParseError: When the body is empty, not JSON, or not a JSON object.
        ApiError: When the body carries an integer ``errorCode`` (whatever the
            HTTP status), or when the status is not 2xx.
    """
    payload = _parse(raw)

    message = payload.get("error")
    message = message if isinstance(message, str) else None

    code = _api_error_code(payload.get("errorCode"))
    if code is not None:
        log.debug("API error {} reported in a {} response", code, raw.status_code)
        raise ApiError(code, message or "", status_code=raw.status_code)

    if not raw.ok:
        log.debug("HTTP {} without errorCode; using status as the error code", raw.status_code)
        raise ApiError(raw.status_code, message or f"HTTP {raw.status_code}", status_code=raw.status_code)

    return ResponseDocument(payload)


def exchange(transport: Transport, request: Request) -> ResponseDocument:
    """Send `request` once through `transport` and normalize the outcome.

    Raises:
        NetworkError: When the transport could not complete the round trip.
        ParseError: See `normalize_response`.
        ApiError: See `normalize_response`.
    """
    try:
        raw = transport.send(
            request.method,
            request.url,
            headers=dict(request.headers) if request.headers else None,
            content=request.body,
        )
    except TransportError as exc:
        raise NetworkError(exc.message, cause=exc) from exc
    try:
        return normalize_response(raw)
    except ApiError as exc:
        log.warning("{} {} returned {}", request.method, request.redacted_url, exc)
        raise
