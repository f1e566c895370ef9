"""Queue infrastructure seen by the conversion job handler.

The handler only needs what any at-least-once queue provides: a message
id, its body, the delivery count, and ack/retry. InMemoryJobQueue is a
local implementation with delayed redelivery, used by the CLI and tests.
"""

import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class QueueMessage(Protocol):
    """One delivery of a job.

    Attributes:
        id: Message id, stable across redeliveries
        body: Job payload as sent
        attempts: 1-based delivery count
    """

    id: str
    body: Any
    attempts: int

    def ack(self) -> None: ...

    def retry(self, delay_seconds: float = 0.0) -> None: ...


@runtime_checkable
class JobQueue(Protocol):
    """Producer side of the queue."""

    def enqueue(self, body: Any, message_id: Optional[str] = None) -> str: ...


@dataclass
class InMemoryMessage:
    """A delivery handed out by InMemoryJobQueue.

    Settling twice is ignored, so a late ack from an abandoned attempt cannot
    undo the retry that replaced it.
    """

    id: str
    body: Any
    attempts: int
    _queue: "InMemoryJobQueue" = field(repr=False, compare=False)
    settled: Optional[str] = None
    retry_delay: Optional[float] = None

    def ack(self) -> None:
        if self._settle("acked"):
            self._queue._ack(self)

    def retry(self, delay_seconds: float = 0.0) -> None:
        if self._settle("retried"):
            self.retry_delay = delay_seconds
            self._queue._requeue(self, delay_seconds)

    def _settle(self, how: str) -> bool:
        if self.settled is not None:
            logger.debug(f"Message {self.id} already {self.settled}, ignoring {how}")
            return False
        self.settled = how
        return True


@dataclass
class _Entry:
    id: str
    body: Any
    attempts: int = 0
    available_at: float = 0.0


class InMemoryJobQueue:
    """At-least-once queue held in memory.

    Messages are delivered in enqueue order once their redelivery delay has
    passed. A message that is retried after max_deliveries deliveries is
    moved to the dead-letter list instead of being redelivered.
    """

    def __init__(
        self,
        max_deliveries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_deliveries = max_deliveries
        self._clock = clock
        self._pending: Deque[_Entry] = deque()
        self._in_flight: Dict[str, _Entry] = {}
        self.acked: List[str] = []
        self.dead_letters: List[InMemoryMessage] = []

    def enqueue(self, body: Any, message_id: Optional[str] = None) -> str:
        """Add a message and return its id."""
        message_id = message_id or uuid.uuid4().hex
        self._pending.append(_Entry(id=message_id, body=body, available_at=self._clock()))
        logger.debug(f"Enqueued message {message_id}")
        return message_id

    def receive_batch(self, max_messages: int = 10) -> List[InMemoryMessage]:
        """Take up to max_messages deliverable messages.

        Each returned message counts as one delivery attempt.
        """
        now = self._clock()
        batch: List[InMemoryMessage] = []
        remaining: Deque[_Entry] = deque()

        while self._pending:
            entry = self._pending.popleft()
            if len(batch) < max_messages and entry.available_at <= now:
                entry.attempts += 1
                self._in_flight[entry.id] = entry
                batch.append(
                    InMemoryMessage(
                        id=entry.id, body=entry.body, attempts=entry.attempts, _queue=self
                    )
                )
            else:
                remaining.append(entry)

        self._pending = remaining
        return batch

    def seconds_until_ready(self) -> Optional[float]:
        """Time until the next pending message is deliverable (None if none)."""
        if not self._pending:
            return None
        soonest = min(entry.available_at for entry in self._pending)
        return max(0.0, soonest - self._clock())

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def is_empty(self) -> bool:
        """True when nothing is pending or in flight."""
        return not self._pending and not self._in_flight

    def _ack(self, message: InMemoryMessage) -> None:
        self._in_flight.pop(message.id, None)
        self.acked.append(message.id)

    def _requeue(self, message: InMemoryMessage, delay_seconds: float) -> None:
        entry = self._in_flight.pop(message.id, None)
        if entry is None:
            return

        if self.max_deliveries is not None and entry.attempts >= self.max_deliveries:
            logger.error(
                f"Message {message.id} exhausted {self.max_deliveries} deliveries, "
                f"moving to dead letters"
            )
            self.dead_letters.append(message)
            return

        entry.available_at = self._clock() + max(0.0, delay_seconds)
        self._pending.append(entry)
        logger.debug(f"Requeued message {message.id} with {delay_seconds}s delay")
