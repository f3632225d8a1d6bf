"""
Factory for creating queue instances.
"""

import logging
from enum import Enum

from .strategies import QueueStrategy, RedisStreamQueue, InMemoryQueue
from shortlink_app.config import Settings

logger = logging.getLogger(__name__)


class QueueBackend(Enum):
    """Available queue backends"""
    REDIS_STREAMS = "redis_streams"
    MEMORY = "memory"


class QueueFactory:
    """
    Factory for creating queue instances.

    Returns a fresh instance on every call; the application keeps the one
    it uses on app.state.
    """

    @classmethod
    async def create(cls, backend: QueueBackend, app_settings: Settings) -> QueueStrategy:
        """
        Create a queue for the given backend.

        If Redis is unreachable at startup the factory falls back to the
        in-memory queue, so redirects keep working without click delivery
        to out-of-process workers.

        Args:
            backend: Type of queue backend (from enum)
            app_settings: Settings providing redis_url and consumer group

        Returns:
            QueueStrategy instance
        """
        if backend == QueueBackend.REDIS_STREAMS:
            import redis.asyncio as redis

            redis_client = redis.from_url(
                app_settings.redis_url,
                decode_responses=False,
                socket_connect_timeout=2,
                socket_timeout=5,
            )

            try:
                # Test connection immediately
                await redis_client.ping()
            except Exception as e:
                logger.warning("Redis connection failed: %s; falling back to in-memory queue", e)
                await redis_client.aclose()
                return InMemoryQueue()

            logger.info("Redis click queue initialized")
            return RedisStreamQueue(redis_client, app_settings.queue_consumer_group)

        elif backend == QueueBackend.MEMORY:
            logger.info("In-memory click queue initialized")
            return InMemoryQueue()

        raise ValueError(f"Unknown queue backend: {backend}")
