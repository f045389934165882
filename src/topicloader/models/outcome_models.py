"""
Per-document decisions and outcomes.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class Decision(Enum):
    """What to do with an incoming topic given the stored version."""

    CREATE = "create"
    UPDATE = "update"
    SKIP_EQUAL = "skip_equal"
    SKIP_STALE = "skip_stale"

    @property
    def requires_write(self) -> bool:
        return self in (Decision.CREATE, Decision.UPDATE)


class OutcomeStatus(Enum):
    """Final fate of one document."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_EQUAL = "skipped_equal"
    SKIPPED_STALE = "skipped_stale"
    FAILED = "failed"


@dataclass
class DocumentOutcome:
    """Result record emitted once for every dispatched document."""

    ref: Path
    status: OutcomeStatus
    sequence: int = 0
    topic_id: Optional[int] = None
    decision: Optional[Decision] = None

    # Error information
    error_message: Optional[str] = None
    failed_stage: Optional[str] = None

    worker_id: Optional[str] = None
    processing_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert outcome to dictionary for serialization."""
        return {
            "ref": str(self.ref),
            "sequence": self.sequence,
            "topic_id": self.topic_id,
            "decision": self.decision.value if self.decision else None,
            "status": self.status.value,
            "error_message": self.error_message,
            "failed_stage": self.failed_stage,
            "worker_id": self.worker_id,
            "processing_time": self.processing_time,
        }
