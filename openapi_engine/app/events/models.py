from __future__ import annotations

from typing import Any, Dict, Optional
from enum import Enum
from datetime import datetime, timezone
from uuid import uuid4, UUID

from pydantic import BaseModel, Field, ConfigDict


# ----------------------------------------------------------------------
# Event Types
# ----------------------------------------------------------------------
class GenerationEventType(str, Enum):
    """
    Progression events emitted while a document is generated.

    NOTE:
    New entries must preserve observational semantics.
    """

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------
    DOCUMENT_STARTED = "document_started"
    DOCUMENT_COMPLETED = "document_completed"
    DOCUMENT_FAILED = "document_failed"

    # ------------------------------------------------------------------
    # Schema generation
    # ------------------------------------------------------------------
    SCHEMA_CREATED = "schema_created"

    # ------------------------------------------------------------------
    # Resolution and document transformers
    # ------------------------------------------------------------------
    REFERENCES_RESOLVED = "references_resolved"
    DOCUMENT_TRANSFORMERS_APPLIED = "document_transformers_applied"


# ----------------------------------------------------------------------
# Event Model
# ----------------------------------------------------------------------
class GenerationEvent(BaseModel):
    """
    An immutable observation of a phase transition during generation.

    Events are:
    - strictly observational
    - transport-agnostic
    - never consulted by the engine itself
    """

    event_id: UUID = Field(default_factory=uuid4)
    document_name: str = Field(..., description="The document being generated")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    event_type: GenerationEventType

    # Optional contextual metadata (reference ids, counts, error text, etc.)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
