"""Batch consumer for conversion jobs.

Runs every message of a batch concurrently. Each message gets its own
time budget; a message that exceeds it is abandoned and settled through
ConversionJobHandler.handle_abandoned. One message's failure never
affects the rest of the batch.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from notemark.config.models import WorkerConfig
from .handler import ConversionJobHandler
from .models import JobResult
from .queue import InMemoryJobQueue, QueueMessage

logger = logging.getLogger(__name__)


class ConversionWorker:
    """Pulls batches from a queue and runs them through the handler."""

    def __init__(self, handler: ConversionJobHandler, config: Optional[WorkerConfig] = None):
        self.handler = handler
        self.config = config or handler.config

    async def process_batch(self, messages: Sequence[QueueMessage]) -> List[JobResult]:
        """Handle a batch of messages concurrently.

        Args:
            messages: Deliveries to process

        Returns:
            One JobResult per message, in batch order
        """
        results = await asyncio.gather(*(self._process_one(message) for message in messages))

        successful = sum(1 for result in results if result.succeeded)
        failed = len(results) - successful
        logger.info(f"Queue batch processed: {successful} successful, {failed} failed")
        return list(results)

    async def run_until_empty(
        self, queue: InMemoryJobQueue, max_batches: Optional[int] = None
    ) -> List[JobResult]:
        """Process batches until the queue has nothing pending or in flight.

        Waits for delayed redeliveries, so every message ends acked or
        dead-lettered unless max_batches stops the loop first.

        Returns:
            Results of every delivery, in processing order
        """
        results: List[JobResult] = []
        batches = 0

        while not queue.is_empty():
            if max_batches is not None and batches >= max_batches:
                logger.warning(f"Stopping after {batches} batch(es) with work remaining")
                break

            batch = queue.receive_batch(self.config.batch_size)
            if not batch:
                wait = queue.seconds_until_ready()
                if wait is None:
                    # Only in-flight messages left, owned by someone else
                    break
                logger.debug(f"Waiting {wait:.2f}s for delayed redelivery")
                await asyncio.sleep(wait)
                continue

            batches += 1
            results.extend(await self.process_batch(batch))

        return results

    async def _process_one(self, message: QueueMessage) -> JobResult:
        timeout = self.config.processing_timeout_seconds
        try:
            return await asyncio.wait_for(self.handler.handle(message), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Message {message.id} exceeded {timeout}s, abandoning")
            return await self.handler.handle_abandoned(message)
