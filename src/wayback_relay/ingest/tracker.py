"""In-flight conversation tracking.

A conversation is *claimed* before it is processed and *released* once the
reply has been sent.  While claimed, duplicate notifications for the same
conversation are dropped.  Release waits a short grace period first, so a
duplicate that arrives right after the reply is still treated as in flight.

Two implementations share one contract:

- :class:`InFlightTracker` keeps the set in memory (single process).
- :class:`RedisInFlightTracker` keeps it in Redis so several relay
  processes can share one inbox.
"""

from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class InFlightTracker:
    """In-memory set of conversations being processed.

    Args:
        grace: Default delay in seconds applied by :meth:`release`.
    """

    def __init__(self, grace: float = 1.0) -> None:
        self.grace = grace
        self._claimed: set[str] = set()
        self._lock = asyncio.Lock()

    async def try_claim(self, conversation_id: str) -> bool:
        """Claim *conversation_id*; return ``False`` if it is already claimed."""
        async with self._lock:
            if conversation_id in self._claimed:
                return False
            self._claimed.add(conversation_id)
            return True

    async def release(self, conversation_id: str, *, delay: float | None = None) -> None:
        """Forget *conversation_id* after the grace delay.

        Releasing a conversation that is not claimed is a no-op.
        """
        wait = self.grace if delay is None else delay
        if wait > 0:
            await asyncio.sleep(wait)
        async with self._lock:
            self._claimed.discard(conversation_id)

    async def is_claimed(self, conversation_id: str) -> bool:
        async with self._lock:
            return conversation_id in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)


class RedisInFlightTracker:
    """Redis-backed tracker shared by several relay processes.

    A claim is a single ``SET key 1 NX EX ttl`` so that it is atomic across
    processes.  The TTL bounds how long a crashed process can hold a claim.

    Args:
        redis_client: Connected :class:`redis.asyncio.Redis` client.
        grace: Default delay in seconds applied by :meth:`release`.
        ttl: Claim expiry in seconds.
        prefix: Key prefix for claim keys.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        grace: float = 1.0,
        ttl: int = 900,
        prefix: str = "wayback:inflight:",
    ) -> None:
        self._redis = redis_client
        self.grace = grace
        self.ttl = ttl
        self.prefix = prefix

    def _key(self, conversation_id: str) -> str:
        return f"{self.prefix}{conversation_id}"

    async def try_claim(self, conversation_id: str) -> bool:
        """Claim *conversation_id*.

        Returns ``False`` when the key already exists or Redis is unreachable,
        so a conversation is never processed twice.
        """
        try:
            created = await self._redis.set(self._key(conversation_id), "1", nx=True, ex=self.ttl)
        except RedisError as exc:
            logger.error("tracker: claim of %s failed: %s", conversation_id, exc)
            return False
        return bool(created)

    async def release(self, conversation_id: str, *, delay: float | None = None) -> None:
        """Delete the claim after the grace delay; errors leave it to expire."""
        wait = self.grace if delay is None else delay
        if wait > 0:
            await asyncio.sleep(wait)
        try:
            await self._redis.delete(self._key(conversation_id))
        except RedisError as exc:
            logger.warning(
                "tracker: release of %s failed, key expires in %ds: %s",
                conversation_id,
                self.ttl,
                exc,
            )

    async def is_claimed(self, conversation_id: str) -> bool:
        try:
            return bool(await self._redis.exists(self._key(conversation_id)))
        except RedisError as exc:
            logger.warning("tracker: lookup of %s failed: %s", conversation_id, exc)
            return False


def build_redis_client(redis_url: str) -> aioredis.Redis:
    """Return a :class:`redis.asyncio.Redis` client for *redis_url*."""
    client: aioredis.Redis = aioredis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    return client
