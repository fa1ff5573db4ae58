"""
Document status state machine.

Legal edges:
    pending    -> processing
    processing -> embedded | error
    embedded   -> processing   (reprocess)
    error      -> processing   (reprocess)

Every transition is a compare-and-swap on the expected current status, so
two workers racing for the same document cannot both move it to
processing: the loser gets ConcurrencyConflict and changes nothing. Events
are published only after the transaction that made the change commits.

Dependencies: sqlalchemy, rag_backend.boundary.db, rag_backend.core.events
System role: Lifecycle gate and mutual exclusion for pipeline runs
"""

import logging
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_backend.boundary.db.base import utcnow
from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.events import StatusChangeEvent, StatusEventBus
from rag_backend.core.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)

LEGAL_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.PROCESSING}),
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.EMBEDDED, DocumentStatus.ERROR}),
    DocumentStatus.EMBEDDED: frozenset({DocumentStatus.PROCESSING}),
    DocumentStatus.ERROR: frozenset({DocumentStatus.PROCESSING}),
}


def is_legal(from_status: DocumentStatus, to_status: DocumentStatus) -> bool:
    return to_status in LEGAL_TRANSITIONS.get(from_status, frozenset())


class StatusTracker:
    """Compare-and-swap status transitions with post-commit notifications."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        event_bus: StatusEventBus | None = None,
        crud: DocumentCRUD = document_crud,
    ) -> None:
        self._session_factory = session_factory
        self._event_bus = event_bus or StatusEventBus()
        self._crud = crud

    @property
    def event_bus(self) -> StatusEventBus:
        return self._event_bus

    async def compare_and_set(
        self,
        session: AsyncSession,
        document_id: UUID,
        expected: DocumentStatus | Iterable[DocumentStatus],
        new_status: DocumentStatus,
        **values: Any,
    ) -> StatusChangeEvent:
        """
        Transition inside the caller's transaction without committing.

        The returned event must be handed to publish() after the caller commits.

        Args:
            session: Async database session
            document_id: Document UUID
            expected: Status (or statuses) the document must currently have
            new_status: Target status
            **values: Extra columns written atomically with the status

        Returns:
            StatusChangeEvent: Describes the transition that was made

        Raises:
            InvalidTransitionError: An expected status has no edge to new_status
            ConcurrencyConflict: Current status is not one of expected
            DocumentNotFoundError: No such document
        """
        if isinstance(expected, DocumentStatus):
            expected = {expected}
        expected = frozenset(expected)
        for status in expected:
            if not is_legal(status, new_status):
                raise InvalidTransitionError(document_id, status.value, new_status.value)

        if new_status == DocumentStatus.PROCESSING:
            values.setdefault("processing_started_at", utcnow())

        old_status = await self._crud.compare_and_set_status(
            session, document_id, expected, new_status, **values
        )
        return StatusChangeEvent(
            document_id=document_id,
            old_status=old_status.value,
            new_status=new_status.value,
        )

    def publish(self, event: StatusChangeEvent) -> None:
        self._event_bus.publish(event)

    async def transition(
        self,
        document_id: UUID,
        expected: DocumentStatus | Iterable[DocumentStatus],
        new_status: DocumentStatus,
        **values: Any,
    ) -> StatusChangeEvent:
        """
        Transition in its own transaction, commit, then publish.

        Raises:
            InvalidTransitionError, ConcurrencyConflict, DocumentNotFoundError
        """
        async with self._session_factory() as session:
            async with session.begin():
                event = await self.compare_and_set(
                    session, document_id, expected, new_status, **values
                )
        logger.info(
            f"{__name__}:transition - Status changed",
            extra={
                "document_id": str(document_id),
                "old_status": event.old_status,
                "new_status": event.new_status,
            },
        )
        self.publish(event)
        return event
