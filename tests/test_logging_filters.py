"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    hash_for_log,
    set_request_id,
)


@pytest.fixture
def log_stream():
    """Logger wired with the production filter and formatter."""

    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_filter_redacts_api_keys(log_stream):
    logger, stream = log_stream

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "gemini_api_key": "AIza-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "sk-secret-123" not in output
    assert "AIza-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_user_content(log_stream):
    """Prompts, scripts and audio never reach the log sink."""
    logger, stream = log_stream

    logger.info(
        "podcast_event",
        extra={
            "prompt": "The history of jazz in New Orleans",
            "script": "ALICE: Welcome to the show",
            "audio": "UklGRiQAAABXQVZF",
            "script_chars": 26,
        },
    )

    output = stream.getvalue()

    assert "New Orleans" not in output
    assert "Welcome to the show" not in output
    assert "UklGRiQAAABXQVZF" not in output
    assert "script_chars" in output


def test_sensitive_filter_allows_safe_fields(log_stream):
    logger, stream = log_stream

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "route": "/api/tts",
            "status": 200,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "req-123" in output
    assert "/api/tts" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts(log_stream):
    logger, stream = log_stream

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer secret-token",
                "user-agent": "pytest",
            },
            "body": [{"text": "hello world", "voice": "Kore"}],
        },
    )

    output = stream.getvalue()

    assert "secret-token" not in output
    assert "hello world" not in output
    assert "pytest" in output
    assert "Kore" in output


def test_json_formatter_includes_context_request_id(log_stream):
    logger, stream = log_stream
    set_request_id("ctx-req-42")

    logger.warning("with_context")

    record = json.loads(stream.getvalue().strip())
    assert record["request_id"] == "ctx-req-42"
    assert record["level"] == "warning"
    assert record["message"] == "with_context"
    assert record["service"] == "promptcast-api"


def test_hash_for_log_is_stable_and_short():
    assert hash_for_log("ip:127.0.0.1") == hash_for_log("ip:127.0.0.1")
    assert hash_for_log("ip:127.0.0.1") != hash_for_log("ip:127.0.0.2")
    assert len(hash_for_log("ip:127.0.0.1")) == 16
