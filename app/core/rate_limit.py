"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.

Two independent budgets are enforced per client address:
- global: every podcast route (100 requests / 15 minutes by default)
- episode: script generation only (10 requests / hour by default)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitAppError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LimitPolicy:
    """Static description of one rate limit budget."""

    name: str
    code: str
    message: str


GLOBAL_POLICY = LimitPolicy(
    name="global",
    code="rate_limit_exceeded",
    message="Too many requests. Please try again in a few minutes.",
)

EPISODE_POLICY = LimitPolicy(
    name="episode",
    code="episode_limit_exceeded",
    message="Episode limit reached ({limit} per hour).",
)


_limiters: dict[str, AbstractRateLimiter] = {}
_limiter_configs: dict[str, tuple[int, int]] = {}


def _policy_config(policy: LimitPolicy) -> tuple[int, int]:
    cfg = settings.rate_limit
    if policy.name == EPISODE_POLICY.name:
        return cfg.episode_requests, cfg.episode_window_seconds
    return cfg.global_requests, cfg.global_window_seconds


def get_rate_limiter(policy: LimitPolicy) -> AbstractRateLimiter:
    """Return the process-wide limiter for ``policy``.

    Instances are cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Args:
        policy: Budget to look up.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    config = _policy_config(policy)
    limiter = _limiters.get(policy.name)

    if limiter is None or _limiter_configs.get(policy.name) != config:
        limit, window_seconds = config
        limiter = InMemoryFixedWindowRateLimiter(limit=limit, window_seconds=window_seconds)
        _limiters[policy.name] = limiter
        _limiter_configs[policy.name] = config

    return limiter


def reset_rate_limiters() -> None:
    """Drop every cached limiter (and with it, all counters)."""

    _limiters.clear()
    _limiter_configs.clear()


def build_client_key(request: Request) -> str:
    """Build the limiter key for the current request from the client address."""

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def _rejection_headers(result: RateLimitResult) -> dict[str, str]:
    if not settings.rate_limit.include_headers:
        return {}
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }


def admit(policy: LimitPolicy, request: Request) -> RateLimitResult:
    """Consume one unit of ``policy`` for the requesting client.

    Args:
        policy: Budget to charge.
        request: Incoming request, used to derive the client key.

    Returns:
        RateLimitResult of an admitted request.

    Raises:
        RateLimitAppError: 429 when the client exhausted the budget.
    """

    limiter = get_rate_limiter(policy)
    key = build_client_key(request)
    key_hash = hash_for_log(key)
    _, window_seconds = _policy_config(policy)

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "policy": policy.name,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": window_seconds,
            },
        )
        return result

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "policy": policy.name,
            "key_hash": key_hash,
            "limit": result.limit,
            "window_s": window_seconds,
            "retry_after_s": result.retry_after_seconds,
        },
    )

    raise RateLimitAppError(
        code=policy.code,
        message=policy.message.format(limit=result.limit),
        details={"limit": result.limit, "retry_after": result.retry_after_seconds or 0},
        headers=_rejection_headers(result),
    )


async def enforce_global_rate_limit(request: Request) -> None:
    """Application-wide dependency charging the global budget."""

    if not settings.rate_limit.enabled:
        return
    admit(GLOBAL_POLICY, request)


async def enforce_episode_rate_limit(request: Request) -> None:
    """Route dependency charging the stricter script-generation budget."""

    if not settings.rate_limit.enabled:
        return
    admit(EPISODE_POLICY, request)
