from __future__ import annotations

import io

from loguru import logger

from diffbot.client import Diffbot
from diffbot.endpoints import Operation
from diffbot.errors import ApiError
from diffbot.logs import configure_logging


def test_configure_logging_emits_redacted_records(recording_transport) -> None:
    recording_transport.body = b'{"error":"Not authorized API token.","errorCode":401}'
    sink = io.StringIO()
    handler_id = configure_logging("DEBUG", sink=sink)
    try:
        client = Diffbot("super-secret-token", transport=recording_transport)
        try:
            client.call(Operation.ARTICLE, "https://example.com/")
        except ApiError:
            pass
    finally:
        logger.remove(handler_id)
        logger.disable("diffbot")

    output = sink.getvalue()
    assert "Dispatching GET" in output
    assert "API error 401" in output
    assert "super-secret-token" not in output


def test_configure_logging_reads_level_from_settings(monkeypatch) -> None:
    monkeypatch.setenv("DIFFBOT_LOG_LEVEL", "warning")
    sink = io.StringIO()
    handler_id = configure_logging(sink=sink)
    try:
        log = logger.patch(lambda record: record.update(name="diffbot.tests"))
        log.debug("hidden")
        log.warning("visible")
    finally:
        logger.remove(handler_id)
        logger.disable("diffbot")
    output = sink.getvalue()
    assert "hidden" not in output
    assert "visible" in output
