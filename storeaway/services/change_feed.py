"""Change notifications for listings and bookings over Redis pub/sub.

Writers publish after their transaction commits; UI clients subscribe
through the websocket endpoint and refetch what changed. Delivery is best
effort: a lost notification only delays a refresh.
"""

import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import Any

import redis.asyncio as redis

from storeaway.config import settings

logger = logging.getLogger(__name__)

TOPICS = ("listings", "bookings")


class ChangeFeed:
    """Publish/subscribe wrapper around Redis channels ``<prefix>:<topic>``."""

    def __init__(self, redis_url: str | None = None, prefix: str | None = None):
        self.redis_url = redis_url or settings.redis_url
        self.prefix = prefix or settings.change_feed_channel_prefix
        self._redis: redis.Redis | None = None

    def channel(self, topic: str) -> str:
        if topic not in TOPICS:
            raise ValueError(f"Unknown change feed topic: {topic}")
        return f"{self.prefix}:{topic}"

    async def get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        return self._redis

    async def publish(self, topic: str, event: str, record_id: Any, **data: Any) -> None:
        """Announce that a row in ``topic`` changed.

        Failures are logged and dropped; the write that triggered the
        notification has already committed.
        """
        message = json.dumps(
            {
                "topic": topic,
                "event": event,
                "id": str(record_id),
                "at": datetime.now(UTC).isoformat(),
                **data,
            },
            default=str,
        )
        try:
            client = await self.get_redis()
            await client.publish(self.channel(topic), message)
        except redis.RedisError as e:
            logger.warning(f"Change feed publish to '{topic}' failed: {e}")

    async def subscribe(self, *topics: str) -> AsyncIterator[dict[str, Any]]:
        """Yield change events for ``topics`` until the caller stops iterating."""
        channels = [self.channel(topic) for topic in (topics or TOPICS)]
        client = await self.get_redis()
        pubsub = client.pubsub()
        await pubsub.subscribe(*channels)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except (TypeError, ValueError):
                    logger.warning(f"Dropping malformed change event on {message.get('channel')}")
        finally:
            await pubsub.unsubscribe(*channels)
            await pubsub.aclose()

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


change_feed = ChangeFeed()
