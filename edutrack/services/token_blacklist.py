"""Token blacklist for logout.

Access tokens are stateless ES256 JWTs with a fixed TTL. Logout adds the
token's jti to this blacklist until the moment the token would have expired
anyway, so entries clean themselves up: Redis via SETEX, the in-memory
variant by dropping expired entries on lookup.

require_user() checks the blacklist on every authenticated request after
the signature check.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from edutrack.core.metrics import TOKEN_BLACKLIST_CHECKS
from edutrack.db.redis import redis_pool


@runtime_checkable
class TokenBlacklist(Protocol):
    async def revoke(self, jti: str, expires_at: float) -> None:
        """Add a token's JTI to the blacklist until it would have expired."""
        ...

    async def is_revoked(self, jti: str) -> bool:
        """Check if a token has been revoked."""
        ...


class InMemoryTokenBlacklist:
    """Per-process blacklist for tests and single-instance dev runs.

    A logout on one API instance is invisible to another; deployments with
    more than one instance set REDIS_URL.
    """

    def __init__(self) -> None:
        # jti -> expiry timestamp (Unix seconds)
        self._revoked: dict[str, float] = {}

    async def revoke(self, jti: str, expires_at: float) -> None:
        if expires_at <= time.time():
            return
        self._revoked[jti] = expires_at

    async def is_revoked(self, jti: str) -> bool:
        exp = self._revoked.get(jti)
        if exp is None:
            TOKEN_BLACKLIST_CHECKS.labels(result="valid").inc()
            return False
        # Mimic Redis TTL behavior: auto-clean expired entries
        if exp < time.time():
            del self._revoked[jti]
            TOKEN_BLACKLIST_CHECKS.labels(result="valid").inc()
            return False
        TOKEN_BLACKLIST_CHECKS.labels(result="revoked").inc()
        return True


class RedisTokenBlacklist:
    """Redis-backed blacklist shared by every API instance."""

    _PREFIX = "edutrack:blacklist:jti:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def revoke(self, jti: str, expires_at: float) -> None:
        ttl_seconds = int(expires_at - time.time())
        if ttl_seconds <= 0:
            return  # already expired, the signature check rejects it

        # SETEX sets value and TTL atomically; a separate EXPIRE could be lost.
        await self._redis.setex(f"{self._PREFIX}{jti}", ttl_seconds, "1")

    async def is_revoked(self, jti: str) -> bool:
        revoked = bool(await self._redis.exists(f"{self._PREFIX}{jti}"))
        TOKEN_BLACKLIST_CHECKS.labels(result="revoked" if revoked else "valid").inc()
        return revoked


# ---------------------------------------------------------------------------
# Module-level singleton, conditional on Redis availability
# ---------------------------------------------------------------------------

if redis_pool is not None:
    token_blacklist: TokenBlacklist = RedisTokenBlacklist(redis_pool)
else:
    token_blacklist = InMemoryTokenBlacklist()
