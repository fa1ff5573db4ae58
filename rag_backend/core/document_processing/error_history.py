"""
Append-only error history per document.

Rows written before the history format existed hold a single error object
instead of a list. It is read as a one-element history and rewritten as a
list on the next append; the single-object shape is never written back.

Dependencies: sqlalchemy, pydantic, rag_backend.boundary.db
System role: Durable record of failed pipeline attempts
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rag_backend.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_backend.core.document_processing.models import ErrorRecord, ErrorStage
from rag_backend.core.exceptions import DocumentNotFoundError

logger = logging.getLogger(__name__)


def normalize_history(raw: Any) -> list[ErrorRecord]:
    """
    Read a stored error_history value in either format.

    Args:
        raw: None, a list of record dicts, or a legacy single error dict

    Returns:
        list[ErrorRecord]: Chronological records (legacy object becomes attempt 1)
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        legacy = dict(raw)
        legacy.pop("attempt", None)
        legacy.setdefault("message", legacy.get("error") or "Unknown error")
        legacy.setdefault("timestamp", datetime.now(timezone.utc))
        stage = legacy.get("stage")
        if stage not in {s.value for s in ErrorStage}:
            legacy["stage"] = None
        return [ErrorRecord(attempt=1, **legacy)]
    if isinstance(raw, list):
        return [ErrorRecord.model_validate(item) for item in raw]
    raise ValueError(f"Unrecognised error_history shape: {type(raw).__name__}")


def next_attempt(raw: Any) -> int:
    """Attempt number the next failure (or job) will carry."""
    return len(normalize_history(raw)) + 1


def serialize_history(records: list[ErrorRecord]) -> list[dict]:
    return [record.model_dump(mode="json") for record in records]


class ErrorHistoryLog:
    """Read and append error records without ever pruning or reordering them."""

    def __init__(self, crud: DocumentCRUD = document_crud) -> None:
        self._crud = crud

    async def read(self, session: AsyncSession, document_id: UUID) -> list[ErrorRecord]:
        document = await self._crud.get_by_id(session, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return normalize_history(document.error_history)

    async def append(
        self,
        session: AsyncSession,
        document_id: UUID,
        stage: ErrorStage,
        message: str,
        code: str = "PROCESSING_ERROR",
    ) -> tuple[ErrorRecord, list[ErrorRecord]]:
        """
        Append one failure record inside the caller's transaction.

        Args:
            session: Async database session (caller commits)
            document_id: Failed document
            stage: Stage the failure is attributed to
            message: Failure description
            code: Machine-readable error code

        Returns:
            (new record, full updated history)

        Raises:
            DocumentNotFoundError: Document was deleted
        """
        history = await self.read(session, document_id)
        record = ErrorRecord(
            attempt=len(history) + 1,
            stage=stage,
            code=code,
            message=message,
        )
        history.append(record)
        await self._crud.update_by_id(
            session,
            document_id,
            error_history=serialize_history(history),
        )
        logger.info(
            f"{__name__}:append - Error recorded",
            extra={
                "document_id": str(document_id),
                "attempt": record.attempt,
                "stage": stage.value,
            },
        )
        return record, history
