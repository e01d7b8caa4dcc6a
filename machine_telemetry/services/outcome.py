"""
Per-event result types.
Lets callers tell data-quality skips apart from infrastructure failures
without parsing log output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EventStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(str, Enum):
    INVALID_PAYLOAD = "invalid_payload"
    INVALID_INFERENCE_RESPONSE = "invalid_inference_response"


class Stage(str, Enum):
    """Step an event was in when it failed."""
    DECODE = "decode"
    INFERENCE = "inference"
    ARCHIVE = "archive"
    PERSIST = "persist"


@dataclass
class EventOutcome:
    status: EventStatus
    machine_id: Optional[str] = None
    reason: Optional[str] = None     # SkipReason for skips, Stage for failures
    detail: Optional[str] = None
    changed: bool = False            # True when a log row was written
    predicted_class: Optional[str] = None
    blob_path: Optional[str] = None

    @classmethod
    def processed(cls, machine_id: str, changed: bool, **extra) -> "EventOutcome":
        return cls(EventStatus.PROCESSED, machine_id=machine_id, changed=changed, **extra)

    @classmethod
    def skipped(cls, reason: SkipReason, detail: str, machine_id: Optional[str] = None) -> "EventOutcome":
        return cls(EventStatus.SKIPPED, machine_id=machine_id, reason=reason.value, detail=detail)

    @classmethod
    def failed(cls, stage: Stage, detail: str, machine_id: Optional[str] = None) -> "EventOutcome":
        return cls(EventStatus.FAILED, machine_id=machine_id, reason=stage.value, detail=detail)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "machine_id": self.machine_id,
            "reason": self.reason,
            "detail": self.detail,
            "changed": self.changed,
            "predicted_class": self.predicted_class,
            "blob_path": self.blob_path,
        }


@dataclass
class BatchSummary:
    outcomes: list[EventOutcome] = field(default_factory=list)

    def count(self, status: EventStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def processed(self) -> int:
        return self.count(EventStatus.PROCESSED)

    @property
    def skipped(self) -> int:
        return self.count(EventStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(EventStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "received": len(self.outcomes),
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "events": [o.to_dict() for o in self.outcomes],
        }
