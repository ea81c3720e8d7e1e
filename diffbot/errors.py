"""Error types raised by the Diffbot client.

Every failed call surfaces exactly one of these. The hierarchy mirrors the
four ways a call can go wrong: bad caller input, a transport that could not
complete the round trip, a body that was not JSON, or an error reported by the
remote service itself.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "ApiError",
    "DiffbotError",
    "ERROR_PROCESSING",
    "InvalidInputError",
    "NetworkError",
    "ParseError",
    "REQUESTED_PAGE_NOT_FOUND",
    "TOKEN_EXCEEDED_OR_THROTTLED",
    "UNAUTHORIZED_TOKEN",
]

# Error codes documented by the remote API.
UNAUTHORIZED_TOKEN: Final[int] = 401
REQUESTED_PAGE_NOT_FOUND: Final[int] = 404
TOKEN_EXCEEDED_OR_THROTTLED: Final[int] = 429
ERROR_PROCESSING: Final[int] = 500


class DiffbotError(RuntimeError):
    """Base class for every error raised by this package."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = str(message)
        self.status_code = int(status_code) if status_code is not None else None

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status={self.status_code})"


class InvalidInputError(DiffbotError, ValueError):
    """Raised before any network I/O when a caller-supplied parameter is malformed."""


class NetworkError(DiffbotError):
    """Raised when the transport could not complete the round trip."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ParseError(DiffbotError):
    """Raised when the response body is not a JSON object.

    `body_prefix` holds the start of the raw body for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body_prefix: str = "",
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.body_prefix = body_prefix


class ApiError(DiffbotError):
    """An error reported by the remote service, carried verbatim.

    Compare `code` against the module constants (`UNAUTHORIZED_TOKEN`,
    `REQUESTED_PAGE_NOT_FOUND`, `TOKEN_EXCEEDED_OR_THROTTLED`,
    `ERROR_PROCESSING`); other codes may appear as the remote API evolves.
    """

    def __init__(self, code: int, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, status_code=status_code)
        self.code = int(code)

    def __str__(self) -> str:
        return f"API error {self.code}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiError):
            return NotImplemented
        return (self.code, self.message) == (other.code, other.message)

    def __hash__(self) -> int:
        return hash((self.code, self.message))
