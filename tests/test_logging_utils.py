"""Tests for the logging helpers and the prefixed logger factory."""

import logging
from unittest.mock import MagicMock

import pytest

from study_deck.managers.logging_manager import get_logger
from study_deck.utils.logging_utils import client_address, log_performance, redact_arguments


def test_prefixed_loggers_are_distinct_children():
    db_logger = get_logger(prefix="[DATABASE]")
    auth_logger = get_logger(prefix="[Auth]")

    assert db_logger is not auth_logger
    assert db_logger.name.startswith(get_logger().name + ".")
    assert get_logger(prefix="[DATABASE]") is db_logger
    assert len(db_logger.filters) == 1


def test_prefix_is_prepended_once(caplog):
    logger = get_logger(prefix="[Queue]")
    with caplog.at_level(logging.INFO, logger=get_logger().name):
        logger.info("built %d cards", 3)
    assert "[Queue] built 3 cards" in caplog.messages


def test_redact_arguments_hides_sensitive_values():
    rendered = redact_arguments(("deck-1", "my-token-value"), {"password": "hunter2", "deck_id": "d" * 150})
    assert rendered["args"] == ["deck-1", "<REDACTED>"]
    assert rendered["kwargs"]["password"] == "<REDACTED>"
    assert rendered["kwargs"]["deck_id"] == "d" * 100 + "..."


def test_redact_arguments_empty():
    assert redact_arguments() == {}


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({"x-forwarded-for": "10.0.0.1, 172.16.0.2"}, "10.0.0.1"),
        ({"x-real-ip": "10.0.0.9"}, "10.0.0.9"),
        ({}, "198.51.100.4"),
    ],
)
def test_client_address(headers, expected):
    request = MagicMock()
    request.headers = headers
    request.client.host = "198.51.100.4"
    assert client_address(request) == expected

@pytest.mark.asyncio
async def test_log_performance_async_passes_through():
    @log_performance("double", log_args=True)
    async def double(value):
        return value * 2

    assert await double(21) == 42
    assert double.__name__ == "double"


def test_log_performance_sync_reraises():
    @log_performance("explode")
    def explode():
        raise KeyError("boom")

    with pytest.raises(KeyError):
        explode()
