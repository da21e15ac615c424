"""Rate limiting.

``limiter`` is the slowapi limiter for per-IP limits declared on routes.
``UserRateLimiter`` applies a policy per authenticated identifier and is
handed to handlers through ``get_user_rate_limiter``. Both use the storage
named by RATE_LIMIT_STORAGE_URI (in-memory by default, a shared store such
as redis:// for multi-instance deployments).
"""

from dataclasses import dataclass

from limits import parse
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings

settings = get_settings()
limiter = Limiter(key_func=get_remote_address, storage_uri=settings.RATE_LIMIT_STORAGE_URI)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


class UserRateLimiter:
    """Fixed-window limiter keyed by an identifier such as a user id."""

    def __init__(self, policy: str, storage_uri: str = "memory://") -> None:
        self.policy = policy
        self._item = parse(policy)
        self._strategy = FixedWindowRateLimiter(storage_from_string(storage_uri))

    def hit(self, identifier: str) -> RateLimitResult:
        """Count one request for ``identifier``."""
        allowed = self._strategy.hit(self._item, identifier)
        reset_at, remaining = self._strategy.get_window_stats(self._item, identifier)
        return RateLimitResult(allowed=allowed, remaining=remaining, reset_at=reset_at)


_user_rate_limiter: UserRateLimiter | None = None


def get_user_rate_limiter() -> UserRateLimiter:
    """Per-user limiter for the direct transcription API."""
    global _user_rate_limiter
    if _user_rate_limiter is None:
        _user_rate_limiter = UserRateLimiter(settings.API_RATE_LIMIT, settings.RATE_LIMIT_STORAGE_URI)
    return _user_rate_limiter
