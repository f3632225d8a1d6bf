"""
Click Worker

Consumes click messages from the queue and appends them to the click log.

Architecture:
- Consumes messages from the queue in batches
- Writes each batch with a single store call
- Acknowledges a batch only after it was written

Runs inside the web process (memory queue) or standalone (Redis Streams):
    python -m shortlink_app.click_processor.click_worker
"""

import asyncio
import logging
import signal
import sys
from typing import List

from shortlink_app.config import Settings, settings
from shortlink_app.database.connection import Base, create_db_engine, create_session_factory
from shortlink_app.logging_config import configure_logging
from shortlink_app.queue.models import ClickMessage
from shortlink_app.queue.strategies import QueueStrategy, InMemoryQueue
from shortlink_app.storage.strategies import LinkStore, SQLAlchemyLinkStore

logger = logging.getLogger(__name__)


class ClickWorker:
    """
    Click log writer with batch processing.

    A batch that fails to write is logged and left unacknowledged;
    the worker itself does not retry it.
    """

    def __init__(
        self,
        queue: QueueStrategy,
        store: LinkStore,
        queue_name: str,
        batch_size: int = 100,
        block_time: int = 1000
    ):
        """
        Args:
            queue: Queue strategy for consuming messages
            store: Link store holding the click log
            queue_name: Queue to consume from
            batch_size: Maximum messages per batch
            block_time: How long one consume call waits (milliseconds)
        """
        self.queue = queue
        self.store = store
        self.queue_name = queue_name
        self.batch_size = batch_size
        self.block_time = block_time
        self.running = False
        self.processed_count = 0
        self.failed_count = 0

    async def start(self):
        """Run the consume loop until stop() is called or the task is cancelled"""
        self.running = True
        logger.info("Click worker started (queue=%s, batch size=%d)", self.queue_name, self.batch_size)

        while self.running:
            try:
                messages = await self.queue.consume_batch(
                    queue_name=self.queue_name,
                    batch_size=self.batch_size,
                    block_time=self.block_time
                )

                if messages:
                    await self.process_batch(messages)

            except asyncio.CancelledError:
                logger.info("Click worker task cancelled")
                break
            except Exception:
                logger.exception("Error in click worker loop")
                await asyncio.sleep(1)

        logger.info("Click worker stopped after %d clicks", self.processed_count)

    async def process_batch(self, messages: List[ClickMessage]) -> bool:
        """
        Write one batch to the click log.

        Returns:
            True if the batch was written and acknowledged
        """
        try:
            await self.store.record_clicks(messages)
        except Exception:
            self.failed_count += len(messages)
            logger.exception("Failed to record %d clicks", len(messages))
            return False

        message_ids = [msg.message_id for msg in messages if msg.message_id]
        if message_ids:
            await self.queue.ack(self.queue_name, message_ids)

        self.processed_count += len(messages)
        logger.debug("Recorded %d clicks. Total: %d", len(messages), self.processed_count)
        return True

    def stop(self):
        """Ask the loop to exit after the current consume call"""
        self.running = False


async def main(app_settings: Settings = settings):
    """Standalone entry point; consumes from the configured queue backend."""
    configure_logging(app_settings.log_level)

    logger.info("Environment: %s", app_settings.environment)
    logger.info("Queue backend: %s", app_settings.queue_backend)

    from shortlink_app.queue.factory import QueueFactory, QueueBackend
    queue = await QueueFactory.create(QueueBackend(app_settings.queue_backend), app_settings)
    if isinstance(queue, InMemoryQueue):
        logger.warning("In-memory queue is process-local; a standalone worker will see no clicks")

    engine = create_db_engine(app_settings.database_url)
    Base.metadata.create_all(bind=engine)
    store = SQLAlchemyLinkStore(create_session_factory(engine))

    worker = ClickWorker(
        queue=queue,
        store=store,
        queue_name=app_settings.queue_name,
        batch_size=app_settings.queue_batch_size,
        block_time=app_settings.queue_block_ms
    )

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, worker.stop)

    try:
        await worker.start()
    finally:
        await queue.close()
        engine.dispose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception:
        logger.exception("Fatal error in click worker")
        sys.exit(1)
