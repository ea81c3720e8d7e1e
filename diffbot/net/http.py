"""HTTP transport built on top of httpx.

The client core only depends on the small `Transport` protocol below. The
default implementation, `HttpClient`, centralizes timeout/redirect behavior
and maps httpx transport failures into `TransportError`. It does not judge
HTTP status codes; classifying the outcome is the normalizer's job.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Mapping, Protocol, runtime_checkable

import httpx
from loguru import logger

from diffbot.request import redact

__all__ = ["HttpClient", "RawResponse", "Transport", "TransportError", "truncate"]

log = logger.bind(module="net.http")

_MIN_TIMEOUT_SECONDS = 0.1


class TransportError(RuntimeError):
    """Raised when a request could not complete (DNS, connect, TLS, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = str(message)


@dataclass(frozen=True, slots=True)
class RawResponse:
    """Status and undecoded body of a completed HTTP exchange."""

    status_code: int
    body: bytes
    content_type: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= int(self.status_code) < 300


@runtime_checkable
class Transport(Protocol):
    """Minimal capability the client needs from an HTTP stack."""

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> RawResponse: ...


def truncate(text: str, *, limit: int) -> str:
    """Return a truncated string with an ellipsis when needed."""
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    head = text[: max(0, limit - 3)].rstrip()
    return f"{head}..."


class HttpClient:
    """Sync httpx transport with consistent defaults.

    Notes:
        - By default, a short-lived `httpx.Client` is created per request.
        - When `reuse_connections=True`, an internal persistent `httpx.Client` is
          used to enable connection pooling. Call `close()` (or use this object
          as a context manager) to release resources deterministically.
        - Timeouts are clamped to at least `_MIN_TIMEOUT_SECONDS`.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        follow_redirects: bool = True,
        user_agent: str | None = None,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        reuse_connections: bool = False,
    ) -> None:
        self.timeout_seconds = float(max(_MIN_TIMEOUT_SECONDS, timeout_seconds))
        self.follow_redirects = bool(follow_redirects)
        self.transport = transport
        self.reuse_connections = bool(reuse_connections)

        merged: dict[str, str] = dict(headers or {})
        if user_agent and "User-Agent" not in merged:
            merged["User-Agent"] = user_agent
        self.headers = merged
        self._client: httpx.Client | None = None
        self._finalizer: weakref.finalize | None = None
        self._lock = threading.Lock()

    def _build_client(self) -> httpx.Client:
        kwargs: dict[str, object] = {
            "timeout": self.timeout_seconds,
            "follow_redirects": self.follow_redirects,
            "headers": self.headers,
        }
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return httpx.Client(**kwargs)  # type: ignore[arg-type]

    def open(self) -> None:
        """Open an internal persistent `httpx.Client` when reuse is enabled."""
        if self.reuse_connections:
            self._pooled_client()

    def _pooled_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = self._build_client()
                # Ensure we don't leak open pools if callers forget to close explicitly.
                self._finalizer = weakref.finalize(self, self._client.close)
            return self._client

    def close(self) -> None:
        """Close any internal persistent `httpx.Client`."""
        with self._lock:
            if self._finalizer is not None:
                self._finalizer.detach()
                self._finalizer = None
            if self._client is None:
                return
            self._client.close()
            self._client = None

    def __enter__(self) -> "HttpClient":
        self.open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    @contextmanager
    def _client_ctx(self) -> Iterator[httpx.Client]:
        if self.reuse_connections:
            yield self._pooled_client()
            return
        with self._build_client() as client:
            yield client

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> RawResponse:
        """Send one request and return its status and body, whatever the status.

        Raises:
            TransportError: When the round trip could not be completed.
        """
        method = (method or "GET").strip().upper()
        target = (url or "").strip()
        if not target:
            raise ValueError("url must be non-empty.")

        try:
            with self._client_ctx() as client:
                response = client.request(
                    method,
                    target,
                    headers=dict(headers) if headers else None,
                    content=content,
                )
                body = response.read()
        except httpx.RequestError as exc:
            log.warning("{} {} failed: {}", method, redact(target), type(exc).__name__)
            detail = str(exc) or type(exc).__name__
            raise TransportError(f"HTTP request failed: {detail}") from exc

        log.debug("{} {} -> {} ({} bytes)", method, redact(target), response.status_code, len(body))
        return RawResponse(
            status_code=int(response.status_code),
            body=body,
            content_type=response.headers.get("Content-Type"),
        )
