"""
Queue strategies using Strategy Pattern.
Allows switching between different queue backends (Redis Streams, In-Memory).
"""

import asyncio
import logging
import socket
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List

from .models import ClickMessage

logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for queue strategies.

    Producers (the click recorder) and consumers (the click worker) only
    see this interface. Methods report failure by returning False or an
    empty list; they do not raise.
    """

    @abstractmethod
    async def publish(self, queue_name: str, message: ClickMessage) -> bool:
        """
        Publish a message to the queue.

        Args:
            queue_name: Name of the queue
            message: ClickMessage to publish

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickMessage]:
        """
        Consume messages from the queue.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of messages to retrieve
            block_time: Time to wait for messages (milliseconds)

        Returns:
            List of ClickMessage objects (empty on timeout)
        """
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """
        Acknowledge messages (mark as processed).

        Args:
            queue_name: Name of the queue
            message_ids: List of message IDs to acknowledge

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        """Number of messages waiting in the queue"""
        pass

    async def consume_batch(self, queue_name: str, batch_size: int = 100, block_time: int = 1000) -> List[ClickMessage]:
        """Consume with a batch-sized default (used by the click worker)"""
        return await self.consume(queue_name, batch_size, block_time)

    async def close(self) -> None:
        """Release backend resources"""
        return None


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams implementation for the click queue.

    How it works:
    1. Producer publishes messages using XADD
    2. Consumer reads messages using XREADGROUP
    3. Consumer acknowledges messages using XACK

    Unacknowledged messages stay pending in the consumer group.

    Used when the click worker runs as its own process.
    """

    def __init__(self, redis_client, consumer_group: str = "click_workers"):
        """
        Args:
            redis_client: redis.asyncio.Redis instance
            consumer_group: Name of consumer group for workers
        """
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = f"worker-{socket.gethostname()}-{id(self)}"
        self._initialized_streams = set()

    async def _ensure_stream_exists(self, queue_name: str):
        """Create the stream and consumer group on first use"""
        if queue_name in self._initialized_streams:
            return

        try:
            # MKSTREAM creates the stream if it doesn't exist yet
            await self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id='0',
                mkstream=True
            )
            logger.info("Created Redis stream %s", queue_name)
        except Exception as e:
            # Group already exists
            if "BUSYGROUP" not in str(e):
                raise

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, message: ClickMessage) -> bool:
        """Append message to the stream (XADD)"""
        try:
            await self._ensure_stream_exists(queue_name)
            await self.redis.xadd(queue_name, {'data': message.model_dump_json()})
            return True

        except Exception as e:
            logger.warning("Redis publish error: %s", e)
            return False

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickMessage]:
        """
        Read messages for this consumer group (XREADGROUP).
        Messages stay pending until acknowledged.
        """
        try:
            await self._ensure_stream_exists(queue_name)

            # '>' means "messages never delivered to other consumers"
            messages = await self.redis.xreadgroup(
                groupname=self.consumer_group,
                consumername=self.consumer_name,
                streams={queue_name: '>'},
                count=batch_size,
                block=block_time
            )

            if not messages:
                return []

            events = []
            for _stream_name, stream_messages in messages:
                for message_id, message_data in stream_messages:
                    if isinstance(message_id, bytes):
                        message_id = message_id.decode('utf-8')
                    try:
                        event = ClickMessage.model_validate_json(message_data[b'data'])
                        event.message_id = message_id
                        events.append(event)
                    except Exception as e:
                        logger.warning("Failed to parse message %s: %s", message_id, e)
                        # Unparseable messages would stay pending forever
                        await self.redis.xack(queue_name, self.consumer_group, message_id)

            return events

        except Exception as e:
            logger.warning("Redis consume error: %s", e)
            return []

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        """Remove messages from the pending list (XACK)"""
        try:
            if not message_ids:
                return True

            await self.redis.xack(queue_name, self.consumer_group, *message_ids)
            return True

        except Exception as e:
            logger.warning("Redis ack error: %s", e)
            return False

    async def get_queue_length(self, queue_name: str) -> int:
        """Get approximate queue length"""
        try:
            info = await self.redis.xinfo_stream(queue_name)
            return info['length']
        except Exception:
            return 0

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryQueue(QueueStrategy):
    """
    In-memory queue implementation using deque.

    Pros:
    - No external dependencies
    - Good for development, testing and single-process deployments

    Cons:
    - Not persistent (lost on restart)
    - Not shared between processes, so the worker must run in-process

    Messages are removed on consume, so ack is a no-op.
    """

    def __init__(self):
        self._queues: Dict[str, Deque[ClickMessage]] = {}
        self._events: Dict[str, asyncio.Event] = {}

    def _get_queue(self, queue_name: str) -> Deque[ClickMessage]:
        if queue_name not in self._queues:
            self._queues[queue_name] = deque()
        return self._queues[queue_name]

    def _get_event(self, queue_name: str) -> asyncio.Event:
        if queue_name not in self._events:
            self._events[queue_name] = asyncio.Event()
        return self._events[queue_name]

    async def publish(self, queue_name: str, message: ClickMessage) -> bool:
        self._get_queue(queue_name).append(message)
        self._get_event(queue_name).set()
        return True

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickMessage]:
        """Take up to batch_size messages, waiting up to block_time ms for the first"""
        queue = self._get_queue(queue_name)
        event = self._get_event(queue_name)

        if not queue and block_time > 0:
            event.clear()
            try:
                await asyncio.wait_for(event.wait(), timeout=block_time / 1000)
            except asyncio.TimeoutError:
                return []

        messages = []
        while queue and len(messages) < batch_size:
            messages.append(queue.popleft())

        return messages

    async def ack(self, queue_name: str, message_ids: List[str]) -> bool:
        return True

    async def get_queue_length(self, queue_name: str) -> int:
        return len(self._get_queue(queue_name))
