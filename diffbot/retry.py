"""Opt-in Tenacity retry helpers for callers of the client.

The client itself never retries: a failed call surfaces to the caller at
once. Callers that decide some failures are worth retrying can wrap their
calls with `diffbot_retrying()`, which gives every call site the same linear
backoff and a loguru-friendly before-sleep hook.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_incrementing

from diffbot.errors import TOKEN_EXCEEDED_OR_THROTTLED, ApiError, NetworkError

__all__ = ["diffbot_retrying", "is_throttled"]

_default_log = logger.bind(module="retry")


def is_throttled(exc: BaseException) -> bool:
    """Return True when `exc` is the remote service's rate-limit error."""
    return isinstance(exc, ApiError) and exc.code == TOKEN_EXCEEDED_OR_THROTTLED


def diffbot_retrying(
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = (NetworkError,),
    retry_throttled: bool = False,
    log: Any = None,
    operation: str = "Diffbot call",
) -> Retrying:
    """Return a configured Tenacity `Retrying` instance.

    Usage::

        for attempt in diffbot_retrying(max_attempts=3):
            with attempt:
                document = client.call(Operation.ARTICLE, url)

    Notes:
    - `max_attempts` maps to Tenacity's `stop_after_attempt(max_attempts)`.
    - Sleep is linear: ``backoff_seconds * attempt_number`` (1-indexed).
    - `retry_on` controls which exception types are retried; with
      `retry_throttled=True`, API errors with code 429 are retried as well.
    - The last error is re-raised unchanged once attempts are exhausted.
    """

    max_attempts = max(1, int(max_attempts))
    backoff_seconds = max(0.0, float(backoff_seconds))
    retry_on = tuple(retry_on or ())
    if not retry_on and not retry_throttled:
        raise ValueError("diffbot_retrying requires at least one retryable condition.")

    log = log if log is not None else _default_log
    operation = (operation or "Diffbot call").strip() or "Diffbot call"

    def _should_retry(exc: BaseException) -> bool:
        if retry_on and isinstance(exc, retry_on):
            return True
        return retry_throttled and is_throttled(exc)

    def _before_sleep(retry_state) -> None:  # type: ignore[no-untyped-def]
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        sleep = getattr(getattr(retry_state, "next_action", None), "sleep", None)
        attempt = getattr(retry_state, "attempt_number", None)
        if sleep is None:
            log.warning("{} attempt {} failed: {}. Retrying...", operation, attempt, exc)
            return
        log.warning(
            "{} attempt {} failed: {}. Retrying in {:.1f}s",
            operation,
            attempt,
            exc,
            float(sleep),
        )

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=backoff_seconds, increment=backoff_seconds),
        retry=retry_if_exception(_should_retry),
        reraise=True,
        before_sleep=_before_sleep,
    )
