"""
Test suite for the document status state machine.

System role: Verification of lifecycle transitions and notifications
"""

import uuid

import pytest

from rag_backend.boundary.db.models.document_model import DocumentStatus
from rag_backend.core.document_processing.status_tracker import is_legal
from rag_backend.core.exceptions import (
    ConcurrencyConflict,
    DocumentNotFoundError,
    InvalidTransitionError,
)


class TestLegalTransitions:
    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (DocumentStatus.PENDING, DocumentStatus.PROCESSING),
            (DocumentStatus.PROCESSING, DocumentStatus.EMBEDDED),
            (DocumentStatus.PROCESSING, DocumentStatus.ERROR),
            (DocumentStatus.EMBEDDED, DocumentStatus.PROCESSING),
            (DocumentStatus.ERROR, DocumentStatus.PROCESSING),
        ],
    )
    def test_is_legal_should_allow_lifecycle_edges(self, from_status, to_status) -> None:
        assert is_legal(from_status, to_status)

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (DocumentStatus.PENDING, DocumentStatus.EMBEDDED),
            (DocumentStatus.EMBEDDED, DocumentStatus.ERROR),
            (DocumentStatus.ERROR, DocumentStatus.EMBEDDED),
            (DocumentStatus.PROCESSING, DocumentStatus.PENDING),
        ],
    )
    def test_is_legal_should_reject_other_edges(self, from_status, to_status) -> None:
        assert not is_legal(from_status, to_status)


class TestStatusTrackerTransition:
    """Test suite for StatusTracker.transition()."""

    async def test_transition_should_update_status_and_publish(self, status_tracker, event_bus, make_document, load_document) -> None:
        # Arrange
        document = await make_document()
        events = []
        event_bus.subscribe(events.append)

        # Act
        await status_tracker.transition(document.id, DocumentStatus.PENDING, DocumentStatus.PROCESSING)

        # Assert
        stored = await load_document(document.id)
        assert stored.status == DocumentStatus.PROCESSING
        assert stored.processing_started_at is not None
        assert len(events) == 1
        assert events[0].old_status == "pending"
        assert events[0].new_status == "processing"

    async def test_transition_should_raise_conflict_when_status_differs(self, status_tracker, event_bus, make_document, load_document) -> None:
        # Arrange
        document = await make_document(status=DocumentStatus.EMBEDDED)
        events = []
        event_bus.subscribe(events.append)

        # Act / Assert
        with pytest.raises(ConcurrencyConflict):
            await status_tracker.transition(document.id, DocumentStatus.PENDING, DocumentStatus.PROCESSING)
        stored = await load_document(document.id)
        assert stored.status == DocumentStatus.EMBEDDED
        assert events == []

    async def test_transition_should_reject_illegal_edge_before_touching_row(self, status_tracker, make_document) -> None:
        document = await make_document()

        with pytest.raises(InvalidTransitionError):
            await status_tracker.transition(document.id, DocumentStatus.PENDING, DocumentStatus.EMBEDDED)

    async def test_transition_should_raise_not_found_for_missing_document(self, status_tracker) -> None:
        with pytest.raises(DocumentNotFoundError):
            await status_tracker.transition(uuid.uuid4(), DocumentStatus.PENDING, DocumentStatus.PROCESSING)

    async def test_second_claim_should_lose(self, status_tracker, make_document) -> None:
        # Arrange
        document = await make_document()
        await status_tracker.transition(document.id, DocumentStatus.PENDING, DocumentStatus.PROCESSING)

        # Act / Assert
        with pytest.raises(ConcurrencyConflict) as exc_info:
            await status_tracker.transition(document.id, DocumentStatus.PENDING, DocumentStatus.PROCESSING)
        assert exc_info.value.actual == "processing"


class TestStatusEventBus:
    async def test_failing_subscriber_should_not_break_transition(self, status_tracker, event_bus, make_document, load_document) -> None:
        # Arrange
        document = await make_document()
        received = []

        def broken(event):
            raise RuntimeError("subscriber crashed")

        event_bus.subscribe(broken)
        event_bus.subscribe(received.append)

        # Act
        await status_tracker.transition(document.id, DocumentStatus.PENDING, DocumentStatus.PROCESSING)

        # Assert
        assert (await load_document(document.id)).status == DocumentStatus.PROCESSING
        assert len(received) == 1

    def test_unsubscribe_should_stop_delivery(self, event_bus) -> None:
        from rag_backend.core.events import StatusChangeEvent

        received = []
        unsubscribe = event_bus.subscribe(received.append)
        unsubscribe()

        event_bus.publish(StatusChangeEvent(document_id=uuid.uuid4(), old_status="pending", new_status="processing"))

        assert received == []
