import asyncio
import logging
from datetime import datetime
from typing import Set

from shortlink_app.queue.models import ClickMessage
from shortlink_app.queue.strategies import QueueStrategy

logger = logging.getLogger(__name__)


class ClickRecorder:
    """
    Fire-and-forget click accounting.

    record() schedules the queue publish as its own task and returns at once.
    The task is not tied to the request that triggered it, so a cancelled or
    finished request does not cancel it, and its failure never reaches the
    caller.
    """

    def __init__(self, queue: QueueStrategy, queue_name: str):
        self.queue = queue
        self.queue_name = queue_name
        # The loop only keeps weak references to tasks
        self._pending: Set[asyncio.Task] = set()

    def record(self, link_id: int, occurred_at: datetime) -> None:
        """Schedule one click event for link_id. Must be called from the event loop."""
        try:
            message = ClickMessage(link_id=link_id, occurred_at=occurred_at)
            task = asyncio.get_running_loop().create_task(self._publish(message))
        except Exception:
            logger.exception("Failed to schedule click for link %s", link_id)
            return

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _publish(self, message: ClickMessage) -> None:
        try:
            published = await self.queue.publish(self.queue_name, message)
        except Exception:
            logger.exception("Failed to log click for link %s", message.link_id)
            return

        if not published:
            logger.warning("Click for link %s was not queued", message.link_id)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled publish to finish (used at shutdown)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
