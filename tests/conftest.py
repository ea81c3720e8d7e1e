from __future__ import annotations

from pathlib import Path
from typing import Callable, Generator, Mapping

import os
import pytest

import sys


ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Keep a developer's real token out of the test run.
os.environ.pop("DIFFBOT_TOKEN", None)

import httpx

from diffbot.client import Diffbot
from diffbot.config import Settings, get_settings
from diffbot.net.http import RawResponse, TransportError

TEST_TOKEN = "6932269b31d051457940f3da4ee23b79"


class RecordingTransport:
    """Transport double that records every send and replays a scripted outcome."""

    def __init__(
        self,
        *,
        status_code: int = 200,
        body: bytes = b"{}",
        error: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.error = error
        self.calls: list[dict[str, object]] = []

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> RawResponse:
        self.calls.append({"method": method, "url": url, "headers": headers, "content": content})
        if self.error is not None:
            raise self.error
        return RawResponse(status_code=self.status_code, body=self.body, content_type="application/json")


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Generator[Settings, None, None]:
    """Return a fresh Settings instance for each test, ignoring any local .env."""

    yield Settings(_env_file=None, token=TEST_TOKEN)


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def transport_error() -> TransportError:
    return TransportError("HTTP request failed: [Errno 111] Connection refused")


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], Diffbot]:
    """Return a factory building a client whose HTTP traffic goes to `handler`."""

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> Diffbot:
        return Diffbot(TEST_TOKEN, "v3", http_transport=httpx.MockTransport(handler))

    return _factory
