"""Client facade for the Diffbot API.

There are a few ways to make calls:

1. `Diffbot(token).call(Operation.ARTICLE, url)` keeps the token and API
   version so they are given once.
2. `Diffbot.search(index, query)` runs a full-text query against a hosted
   index.
3. `Diffbot.prepare_request(...)` returns a `Request` that can be refined
   (remote fetch timeout, forwarded headers, supplying the HTML yourself)
   before handing it to `Diffbot.send()`.
4. `Diffbot.crawl()` and `Diffbot.bulk()` start named jobs that run an
   extraction API over many pages; `get_crawl()`, `get_bulk()` and
   `list_crawls()` report on them.
5. The module-level `call()` does a one-off request with everything passed in.

Each call is a single round trip: it returns a `ResponseDocument` or raises
one `DiffbotError` subclass. Nothing is retried or cached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Sequence

from loguru import logger

from diffbot.document import ResponseDocument
from diffbot.endpoints import Api, Operation
from diffbot.errors import InvalidInputError
from diffbot.net.http import HttpClient, Transport
from diffbot.normalize import exchange
from diffbot.request import (
    DEFAULT_HOST,
    Request,
    build_bulk,
    build_call,
    build_crawl,
    build_job_status,
    build_list_crawls,
    build_search,
    normalize_version,
)

if TYPE_CHECKING:
    import httpx

    from diffbot.config import Settings

__all__ = ["Diffbot", "call"]

log = logger.bind(module="client")

DEFAULT_VERSION = "v3"


class Diffbot:
    """Holds a developer token and API version and dispatches calls.

    Configuration is fixed at construction. `transport` may be any object
    implementing `Transport`; otherwise an httpx-backed `HttpClient` is
    created (pass `http_transport` to route it through e.g.
    `httpx.MockTransport`).
    """

    __slots__ = ("token", "version", "host", "_transport", "_owns_transport")

    def __init__(
        self,
        token: str,
        version: str | int = DEFAULT_VERSION,
        *,
        host: str = DEFAULT_HOST,
        timeout_seconds: float = 30.0,
        user_agent: str | None = "diffbot-python",
        transport: Transport | None = None,
        http_transport: "httpx.BaseTransport | None" = None,
        reuse_connections: bool = False,
    ) -> None:
        token = (token or "").strip()
        if not token:
            raise InvalidInputError("Token must be non-empty.")
        host = (host or "").strip()
        if not host:
            raise InvalidInputError("API host must be non-empty.")
        object.__setattr__(self, "token", token)
        object.__setattr__(self, "version", normalize_version(version))
        object.__setattr__(self, "host", host)
        if transport is None:
            transport = HttpClient(
                timeout_seconds=timeout_seconds,
                user_agent=user_agent,
                transport=http_transport,
                reuse_connections=reuse_connections,
            )
            object.__setattr__(self, "_owns_transport", True)
        else:
            object.__setattr__(self, "_owns_transport", False)
        object.__setattr__(self, "_transport", transport)

    @classmethod
    def from_settings(cls, settings: "Settings | None" = None, **kwargs: Any) -> "Diffbot":
        """Build a client from `Settings` (loaded from the environment by default)."""
        if settings is None:
            from diffbot.config import get_settings

            settings = get_settings()
        if not settings.token:
            raise InvalidInputError("DIFFBOT_TOKEN is required.")
        options: dict[str, Any] = {
            "host": settings.host,
            "timeout_seconds": settings.timeout_seconds,
            "user_agent": settings.user_agent,
            "reuse_connections": settings.reuse_connections,
        }
        options.update(kwargs)
        return cls(settings.token, settings.api_version, **options)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"Diffbot(version={self.version!r}, host={self.host!r})"

    def close(self) -> None:
        """Release pooled connections of a transport this client created."""
        if self._owns_transport and isinstance(self._transport, HttpClient):
            self._transport.close()

    def __enter__(self) -> "Diffbot":
        if self._owns_transport and isinstance(self._transport, HttpClient):
            self._transport.open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def prepare_request(
        self,
        operation: Api | str,
        target_url: str,
        extra_params: Mapping[str, object] | None = None,
        *,
        fields: Sequence[str] | None = None,
    ) -> Request:
        """Build, but do not send, a call to `operation` for `target_url`."""
        return build_call(
            self.token,
            self.version,
            operation,
            target_url,
            extra_params,
            fields=fields,
            host=self.host,
        )

    def prepare_search(
        self,
        index: str,
        query: str,
        extra_params: Mapping[str, object] | None = None,
    ) -> Request:
        """Build, but do not send, a search request."""
        return build_search(self.token, self.version, index, query, extra_params, host=self.host)

    def send(self, request: Request) -> ResponseDocument:
        """Send a prepared request and normalize the response."""
        log.debug("Dispatching {} {}", request.method, request.redacted_url)
        return exchange(self._transport, request)

    def call(
        self,
        operation: Api | str,
        target_url: str,
        extra_params: Mapping[str, object] | None = None,
        *,
        fields: Sequence[str] | None = None,
    ) -> ResponseDocument:
        """Run `operation` against `target_url`.

        `extra_params` are appended to the query string in the given order;
        `fields` restricts the fields returned, using the remote field syntax.

        Raises:
            InvalidInputError: Before any I/O, for malformed input.
            NetworkError: When the request could not be completed.
            ParseError: When the response is not a JSON object.
            ApiError: When the remote service reports an error.
        """
        return self.send(self.prepare_request(operation, target_url, extra_params, fields=fields))

    def search(
        self,
        index: str,
        query: str,
        extra_params: Mapping[str, object] | None = None,
    ) -> ResponseDocument:
        """Run a full-text `query` against the hosted `index` (e.g. ``"GLOBAL-INDEX"``).

        `extra_params` such as ``{"num": 20}`` follow the query.
        """
        return self.send(self.prepare_search(index, query, extra_params))

    def crawl(
        self,
        name: str,
        api: Api | str,
        seeds: Sequence[str],
        extra_params: Mapping[str, object] | None = None,
    ) -> ResponseDocument:
        """Start crawl job `name` from `seeds`, processing each page found with `api`."""
        request = build_crawl(self.token, self.version, name, api, seeds, extra_params, host=self.host)
        return self.send(request)

    def bulk(
        self,
        name: str,
        api: Api | str,
        urls: Sequence[str],
        extra_params: Mapping[str, object] | None = None,
    ) -> ResponseDocument:
        """Start bulk job `name`, processing every URL in `urls` with `api`."""
        request = build_bulk(self.token, self.version, name, api, urls, extra_params, host=self.host)
        return self.send(request)

    def get_crawl(self, name: str) -> ResponseDocument:
        """Return the status document of crawl job `name`."""
        return self.send(build_job_status(self.token, self.version, Operation.CRAWL, name, host=self.host))

    def get_bulk(self, name: str) -> ResponseDocument:
        """Return the status document of bulk job `name`."""
        return self.send(build_job_status(self.token, self.version, Operation.BULK, name, host=self.host))

    def list_crawls(self) -> ResponseDocument:
        """Return the account's crawl jobs (under the ``jobs`` key)."""
        return self.send(build_list_crawls(self.token, self.version, host=self.host))


def call(
    operation: Api | str,
    target_url: str,
    token: str,
    *,
    version: str | int = DEFAULT_VERSION,
    fields: Sequence[str] | None = None,
    extra_params: Mapping[str, object] | None = None,
    **client_options: Any,
) -> ResponseDocument:
    """Make a one-off call; `client_options` are passed to `Diffbot`."""
    with Diffbot(token, version, **client_options) as client:
        return client.call(operation, target_url, extra_params, fields=fields)
