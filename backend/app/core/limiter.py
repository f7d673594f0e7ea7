# path: backend/app/core/limiter.py
"""
Rate limiting support (slowapi).

A module-level limiter is exposed so routes can use @limiter.limit(...) at
import time; apply_rate_limiting() wires the middleware and 429 handler.
"""

from typing import Tuple

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.settings import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


def apply_rate_limiting(app) -> Tuple[Limiter, bool]:
    """
    Attach SlowAPI middleware and exception handler.
    Returns (limiter, enabled_flag).
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_middleware(SlowAPIMiddleware)
    return limiter, limiter.enabled
