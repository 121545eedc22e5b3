"""
Domain models for the outbound message queue.

A QueueItem lives only while it is pending; nothing about it is kept after
its single delivery attempt except the delivered/failed counters.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class QueueItem:
    """A pending chat notification."""

    id: str
    recipient: str
    body: str
    enqueued_at: datetime

    def preview(self) -> dict:
        return {
            "id": self.id,
            "recipient": self.recipient,
            "enqueued_at": self.enqueued_at.isoformat(),
        }


@dataclass(slots=True)
class DeliveryOutcome:
    """Result of one delivery attempt for a queue item."""

    item_id: str
    success: bool
    error: str | None = None

    @classmethod
    def failed(cls, item_id: str, error: str) -> "DeliveryOutcome":
        return cls(item_id=item_id, success=False, error=error)
