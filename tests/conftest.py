"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before anything imports app.core.config.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from app.core.rate_limit import reset_rate_limiters


@pytest.fixture(autouse=True)
def _fresh_rate_limiters():
    """Every test starts with empty rate limit counters."""
    reset_rate_limiters()
    yield
    reset_rate_limiters()
