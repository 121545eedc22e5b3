"""
In-memory delivery queue for outbound chat notifications.

Items are delivered strictly in enqueue order by a single worker task, with a
random pause between deliveries so the chat channel does not see a burst of
messages. Every item gets exactly one delivery attempt ("try once and move
on"): success or failure, the item is removed and never retried. Integrators
that need at-least-once delivery must layer that on top.

Usage:
    queue = DeliveryQueue(processor, min_delay_ms=2000, max_delay_ms=4000)
    item_id = queue.enqueue("628123456789", "Halo!")
"""

import asyncio
import random
import time
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from app.infrastructure.observability.logging import get_logger, log_delivery_outcome
from app.models.domain.queue_domain import DeliveryOutcome, QueueItem

logger = get_logger(__name__)

QueueProcessor = Callable[[QueueItem], Awaitable[DeliveryOutcome]]

STATUS_PREVIEW_SIZE = 3


class DeliveryFailure(Exception):
    """A single delivery attempt failed. Recorded and discarded, never retried."""

    def __init__(self, message: str, item_id: str | None = None):
        super().__init__(message)
        self.item_id = item_id


class DeliveryQueue:
    """
    FIFO, rate-limited, single-consumer dispatcher.

    At most one delivery attempt is in flight at any time. The worker task
    only exists while items are pending and is restarted by the next enqueue.
    """

    def __init__(
        self,
        processor: QueueProcessor,
        min_delay_ms: int = 2000,
        max_delay_ms: int = 4000,
        delivery_timeout_seconds: float | None = 30.0,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_delay_ms < 0 or max_delay_ms < min_delay_ms:
            raise ValueError(
                f"Invalid delay bounds: min_delay_ms={min_delay_ms}, max_delay_ms={max_delay_ms}"
            )

        self._processor = processor
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.delivery_timeout_seconds = delivery_timeout_seconds
        self._rng = rng or random.Random()
        self._sleep = sleep

        self._items: deque[QueueItem] = deque()
        self._worker: asyncio.Task | None = None
        self._is_processing = False

        self.delivered = 0
        self.failed = 0

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    def __len__(self) -> int:
        return len(self._items)

    def enqueue(self, recipient: str, body: str) -> str:
        """
        Append a message to the tail of the queue and return its id.

        Never blocks. Must be called from within a running event loop.
        """
        item = QueueItem(
            id=self._generate_id(),
            recipient=recipient,
            body=body,
            enqueued_at=datetime.now(UTC),
        )
        self._items.append(item)
        logger.info("Queue item added", item_id=item.id, total_items=len(self._items))

        if not self._is_processing:
            self._is_processing = True
            self._worker = asyncio.get_running_loop().create_task(self._drain())

        return item.id

    def remove(self, item_id: str) -> bool:
        """Drop a pending item by id. Returns False if it is not pending."""
        for item in self._items:
            if item.id == item_id:
                self._items.remove(item)
                return True
        return False

    def get_status(self) -> dict:
        """Non-mutating snapshot for observability."""
        return {
            "item_count": len(self._items),
            "is_processing": self._is_processing,
            "next_items": [item.preview() for item in list(self._items)[:STATUS_PREVIEW_SIZE]],
            "delivered": self.delivered,
            "failed": self.failed,
            "min_delay_ms": self.min_delay_ms,
            "max_delay_ms": self.max_delay_ms,
        }

    async def join(self) -> None:
        """Wait until every pending item has had its delivery attempt."""
        while self._is_processing and self._worker is not None:
            await asyncio.shield(self._worker)

    async def close(self) -> None:
        """Stop the worker. Pending items are dropped."""
        worker, self._worker = self._worker, None
        if worker and not worker.done():
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass

        if self._items:
            logger.warning("Delivery queue closed with pending items", dropped=len(self._items))
            self._items.clear()
        self._is_processing = False

    async def _drain(self) -> None:
        try:
            while self._items:
                item = self._items[0]
                try:
                    outcome = await self._deliver(item)
                finally:
                    self.remove(item.id)

                if outcome.success:
                    self.delivered += 1
                else:
                    self.failed += 1
                log_delivery_outcome(item.id, item.recipient, outcome.success, outcome.error)

                delay_ms = self._next_delay_ms()
                logger.debug("Waiting before next delivery", delay_ms=delay_ms)
                await self._sleep(delay_ms / 1000)
        finally:
            self._is_processing = False
            logger.info("Queue processing finished", pending=len(self._items))

    async def _deliver(self, item: QueueItem) -> DeliveryOutcome:
        logger.info("Processing queue item", item_id=item.id, recipient=item.recipient)
        started = time.monotonic()
        try:
            if self.delivery_timeout_seconds is None:
                outcome = await self._processor(item)
            else:
                outcome = await asyncio.wait_for(
                    self._processor(item), timeout=self.delivery_timeout_seconds
                )
        except TimeoutError:
            return DeliveryOutcome.failed(
                item.id, f"Delivery timed out after {self.delivery_timeout_seconds}s"
            )
        except Exception as e:
            logger.error(
                "Error processing queue item",
                item_id=item.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return DeliveryOutcome.failed(item.id, str(e) or type(e).__name__)

        logger.debug(
            "Queue item processed",
            item_id=item.id,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        if outcome is None:
            return DeliveryOutcome.failed(item.id, "Processor returned no outcome")
        return outcome

    def _next_delay_ms(self) -> int:
        return self._rng.randint(self.min_delay_ms, self.max_delay_ms)

    def _generate_id(self) -> str:
        return f"msg_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
