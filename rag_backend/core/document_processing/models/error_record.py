"""
Error record model.

One entry of a document's append-only failure history.

Dependencies: pydantic
System role: Persisted explanation of failed pipeline runs
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorStage(str, Enum):
    """Pipeline stage a failure is attributed to."""

    EXTRACTION = "extraction"
    EMBEDDING = "embedding"
    STORAGE = "storage"
    DATABASE = "database"


class ErrorRecord(BaseModel):
    """
    Single failed attempt.

    stage is None only for records converted from the legacy single-object
    format, which did not carry one. Unknown legacy keys are preserved.
    """

    model_config = ConfigDict(extra="allow")

    attempt: int = Field(ge=1, description="Strictly increasing per document")
    stage: ErrorStage | None = Field(default=None, description="Failing stage")
    code: str = Field(default="PROCESSING_ERROR", description="Machine-readable error code")
    message: str = Field(description="Human-readable failure description")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
