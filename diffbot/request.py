"""Pure construction of requests against the versioned API.

Nothing here performs I/O. Query strings are assembled in a fixed order
(token, the operation's own parameters, then caller extras) and every value
is percent-encoded without safe characters, so built URLs are reproducible
and decode back to exactly what the caller passed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Final, Iterable, Mapping, Sequence
from urllib.parse import parse_qsl, quote, unquote_plus, urlencode, urlsplit, urlunsplit

from diffbot.endpoints import Api, Endpoint, Operation, endpoint_for, job_operations
from diffbot.errors import InvalidInputError

__all__ = [
    "DEFAULT_HOST",
    "Request",
    "api_root",
    "build_bulk",
    "build_call",
    "build_crawl",
    "build_job_status",
    "build_list_crawls",
    "build_search",
    "normalize_version",
    "redact",
]

DEFAULT_HOST: Final[str] = "diffbot.com"
_ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})
_REDACTED: Final[str] = "***"
_FORM_CONTENT_TYPE: Final[str] = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class Request:
    """A ready-to-send request. Refinements return new instances."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def with_timeout(self, milliseconds: int) -> "Request":
        """Ask the remote service to give up fetching the target after `milliseconds`."""
        try:
            value = int(milliseconds)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Invalid timeout: {milliseconds!r}") from exc
        if value <= 0:
            raise InvalidInputError("Timeout must be a positive number of milliseconds.")
        return replace(self, url=_set_query_param(self.url, "timeout", str(value)))

    def with_forwarded_headers(
        self,
        *,
        user_agent: str | None = None,
        referer: str | None = None,
        cookie: str | None = None,
    ) -> "Request":
        """Set the headers the remote service sends when it fetches the target page."""
        headers = dict(self.headers)
        for name, value in (
            ("X-Forwarded-User-Agent", user_agent),
            ("X-Forwarded-Referer", referer),
            ("X-Forwarded-Cookie", cookie),
        ):
            if value is not None:
                headers[name] = str(value)
        return replace(self, headers=headers)

    def with_body(self, body: str | bytes) -> "Request":
        """POST `body` as the HTML to process instead of fetching the target URL.

        Useful for pages that are not reachable from the public Internet.
        """
        if isinstance(body, str):
            content = body.encode("utf-8")
        elif isinstance(body, (bytes, bytearray)):
            content = bytes(body)
        else:
            raise InvalidInputError(f"Body must be str or bytes, got {type(body).__name__}.")
        headers = dict(self.headers)
        headers["Content-Type"] = "text/html; charset=utf-8"
        return replace(self, method="POST", headers=headers, body=content)

    @property
    def redacted_url(self) -> str:
        return redact(self.url)


def normalize_version(version: str | int) -> str:
    """Return an API version tag such as ``"v3"`` (``3`` is accepted too)."""
    if isinstance(version, bool):
        raise InvalidInputError(f"Invalid API version: {version!r}")
    if isinstance(version, int):
        if version <= 0:
            raise InvalidInputError(f"Invalid API version: {version!r}")
        return f"v{version}"
    text = str(version or "").strip().strip("/")
    if not text:
        raise InvalidInputError("API version must be non-empty.")
    if text.isdigit():
        return f"v{text}"
    return text


def api_root(host: str = DEFAULT_HOST) -> str:
    """Return the scheme and authority of the API, e.g. ``https://api.diffbot.com``."""
    text = (host or "").strip().rstrip("/")
    if not text:
        raise InvalidInputError("API host must be non-empty.")
    return f"https://api.{text}"


def _require_text(name: str, value: str | None) -> str:
    text = "" if value is None else str(value)
    if not text.strip():
        raise InvalidInputError(f"{name} must be non-empty.")
    return text


def _validate_target_url(target_url: str | None) -> str:
    text = _require_text("Target URL", target_url)
    if text != text.strip() or any(ch.isspace() for ch in text):
        raise InvalidInputError(f"Target URL must not contain whitespace: {text!r}")
    try:
        parsed = urlsplit(text)
        hostname = parsed.hostname
    except ValueError as exc:
        raise InvalidInputError(f"Target URL is malformed: {text!r} ({exc})") from exc
    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidInputError(f"Target URL must be an absolute http(s) URL: {text!r}")
    if not hostname:
        raise InvalidInputError(f"Target URL has no host: {text!r}")
    return text


def _encode(pairs: Iterable[tuple[str, str]]) -> str:
    return urlencode(list(pairs), quote_via=quote, safe="")


def _set_query_param(url: str, name: str, value: str) -> str:
    """Return `url` with every `name` pair dropped and a single `name=value` appended."""
    parts = urlsplit(url)
    kept = [
        segment
        for segment in parts.query.split("&")
        if segment and unquote_plus(segment.split("=", 1)[0]) != name
    ]
    kept.append(_encode([(name, value)]))
    query = "&".join(kept)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _extra_pairs(endpoint: Endpoint, extra_params: Mapping[str, object] | None) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for key, value in (extra_params or {}).items():
        name = str(key or "").strip()
        if not name:
            raise InvalidInputError("Extra parameter names must be non-empty.")
        if name in endpoint.reserved:
            raise InvalidInputError(f"Parameter {name!r} is reserved for {endpoint.path!r} requests.")
        pairs.append((name, _stringify(value)))
    return pairs


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _endpoint_base(host: str, version: str | int, endpoint: Endpoint) -> str:
    return f"{api_root(host)}/{normalize_version(version)}/{endpoint.path}"


def _endpoint_url(host: str, version: str | int, endpoint: Endpoint, pairs: Sequence[tuple[str, str]]) -> str:
    return f"{_endpoint_base(host, version, endpoint)}?{_encode(pairs)}"


def build_call(
    token: str,
    version: str | int,
    operation: Api | str,
    target_url: str,
    extra_params: Mapping[str, object] | None = None,
    *,
    fields: Sequence[str] | None = None,
    host: str = DEFAULT_HOST,
) -> Request:
    """Build a GET request running `operation` against `target_url`.

    `operation` may also be a `CustomApi`. `fields` selects which fields the
    remote returns, using its own syntax (``"meta"``, ``"images(*)"``, ...);
    they are sent comma-joined.

    Raises:
        InvalidInputError: When the token or target URL is malformed, the
            operation does not take a URL, or an extra parameter collides with
            a reserved name.
    """
    endpoint = endpoint_for(operation)
    if not endpoint.takes_url:
        raise InvalidInputError(f"Operation {endpoint.path!r} does not take a target URL.")
    pairs: list[tuple[str, str]] = [
        ("token", _require_text("Token", token)),
        ("url", _validate_target_url(target_url)),
    ]
    if fields:
        names = [str(name).strip() for name in fields if str(name).strip()]
        if names:
            pairs.append(("fields", ",".join(names)))
    pairs.extend(_extra_pairs(endpoint, extra_params))
    return Request(method="GET", url=_endpoint_url(host, version, endpoint, pairs))


def build_search(
    token: str,
    version: str | int,
    index: str,
    query: str,
    extra_params: Mapping[str, object] | None = None,
    *,
    host: str = DEFAULT_HOST,
) -> Request:
    """Build a GET request running full-text `query` against the `index` collection.

    `extra_params` (e.g. ``{"num": 2}``) follow `col` and `query` in the given order.
    """
    endpoint = endpoint_for(Operation.SEARCH)
    pairs = [
        ("token", _require_text("Token", token)),
        ("col", _require_text("Index", index)),
        ("query", _require_text("Query", query)),
    ]
    pairs.extend(_extra_pairs(endpoint, extra_params))
    return Request(method="GET", url=_endpoint_url(host, version, endpoint, pairs))


def _form_request(url: str, pairs: Sequence[tuple[str, str]]) -> Request:
    return Request(
        method="POST",
        url=url,
        headers={"Content-Type": _FORM_CONTENT_TYPE},
        body=urlencode(list(pairs)).encode("utf-8"),
    )


def _build_job(
    job: Operation,
    list_param: str,
    token: str,
    version: str | int,
    name: str,
    api: Api | str,
    urls: Sequence[str],
    extra_params: Mapping[str, object] | None,
    host: str,
) -> Request:
    endpoint = endpoint_for(job)
    target = endpoint_for(api)
    if not target.takes_url:
        raise InvalidInputError(f"Jobs must run a content operation, not {target.path!r}.")
    if isinstance(urls, str):
        raise InvalidInputError(f"{list_param} must be a sequence of URLs, not a single string.")
    checked = [_validate_target_url(url) for url in urls or ()]
    if not checked:
        raise InvalidInputError(f"{list_param} must contain at least one URL.")
    pairs: list[tuple[str, str]] = [
        ("name", _require_text("Job name", name)),
        ("token", _require_text("Token", token)),
        ("apiUrl", _endpoint_base(host, version, target)),
        (list_param, " ".join(checked)),
    ]
    pairs.extend(_extra_pairs(endpoint, extra_params))
    return _form_request(_endpoint_base(host, version, endpoint), pairs)


def build_crawl(
    token: str,
    version: str | int,
    name: str,
    api: Api | str,
    seeds: Sequence[str],
    extra_params: Mapping[str, object] | None = None,
    *,
    host: str = DEFAULT_HOST,
) -> Request:
    """Build a form POST starting crawl job `name` from `seeds`.

    Every page the crawler finds is processed by `api`. `extra_params`
    (``maxHops``, ``repeat``, ``notifyEmail``, ...) are appended to the form.
    """
    return _build_job(Operation.CRAWL, "seeds", token, version, name, api, seeds, extra_params, host)


def build_bulk(
    token: str,
    version: str | int,
    name: str,
    api: Api | str,
    urls: Sequence[str],
    extra_params: Mapping[str, object] | None = None,
    *,
    host: str = DEFAULT_HOST,
) -> Request:
    """Build a form POST starting bulk job `name`, processing each of `urls` with `api`."""
    return _build_job(Operation.BULK, "urls", token, version, name, api, urls, extra_params, host)


def build_job_status(
    token: str,
    version: str | int,
    job: Operation | str,
    name: str,
    *,
    host: str = DEFAULT_HOST,
) -> Request:
    """Build a form POST retrieving the status and results of crawl or bulk job `name`."""
    endpoint = endpoint_for(job)
    if endpoint.operation not in job_operations():
        raise InvalidInputError(f"{endpoint.path!r} is not a job operation.")
    pairs = [
        ("token", _require_text("Token", token)),
        ("name", _require_text("Job name", name)),
        ("format", "json"),
    ]
    return _form_request(_endpoint_base(host, version, endpoint), pairs)


def build_list_crawls(token: str, version: str | int, *, host: str = DEFAULT_HOST) -> Request:
    """Build a GET request listing the account's crawl jobs."""
    endpoint = endpoint_for(Operation.CRAWL)
    pairs = [("token", _require_text("Token", token))]
    return Request(method="GET", url=_endpoint_url(host, version, endpoint, pairs))


def redact(url: str) -> str:
    """Mask the token query parameter so the URL is safe for logs."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = [
        (key, _REDACTED if key == "token" else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    query = urlencode(pairs, quote_via=quote, safe=_REDACTED[0])
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
