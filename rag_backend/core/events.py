"""
Document status change notifications.

In-process publish/subscribe for lifecycle transitions. Subscribers are
plain callables; a failing subscriber is logged and never affects the
transition that was already committed.

Dependencies: pydantic
System role: Change notification fan-out (UI push, cache invalidation, audit)
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class StatusChangeEvent(BaseModel):
    """Published after every committed status transition."""

    document_id: uuid.UUID
    old_status: str
    new_status: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


StatusSubscriber = Callable[[StatusChangeEvent], None]


class StatusEventBus:
    """Synchronous fan-out of StatusChangeEvents to registered subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[StatusSubscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, subscriber: StatusSubscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Args:
            subscriber: Callable receiving each event

        Returns:
            Callable that removes the subscription
        """
        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: StatusChangeEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        logger.info(
            f"{__name__}:publish - {event.old_status} -> {event.new_status}",
            extra={"document_id": str(event.document_id)},
        )
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.error(
                    f"{__name__}:publish - Subscriber failed: {type(e).__name__}: {e}",
                    exc_info=True,
                    extra={"document_id": str(event.document_id)},
                )
