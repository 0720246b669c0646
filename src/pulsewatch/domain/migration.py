"""Value types passed between detection, planning, running and cleanup.

None of these hold references to collaborators; they are produced by one
phase and handed to the next as arguments.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class MigrationContext:
    """What detection found in the local store.

    Attributes:
        current_version: Effective version of the stored data.
        target_version: Version this build runs.
        marker_found: Whether a version marker was persisted.
        legacy_keys: Keys of records written before version markers existed.
    """

    current_version: str
    target_version: str
    marker_found: bool = False
    legacy_keys: tuple[str, ...] = ()

    @property
    def needs_upgrade(self) -> bool:
        """True when the stored data is not at the target version."""
        return self.current_version != self.target_version

    @property
    def has_legacy_records(self) -> bool:
        """True when pre-marker records are still present."""
        return len(self.legacy_keys) > 0


def _epoch_millis(value: Any) -> int:
    """Convert a stored receipt time into epoch milliseconds."""
    if isinstance(value, bool):
        raise ValueError(f"invalid receipt time {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return int(moment.timestamp() * 1000)
    raise ValueError(f"invalid receipt time {value!r}")


@dataclass(frozen=True)
class MigratedPulse:
    """Minimal transfer shape of one legacy pulse reading.

    arrived_at is when the client received the reading, in epoch
    milliseconds. The sensor's emission time is not carried over.
    """

    old_id: Any
    arrived_at: int

    @classmethod
    def from_legacy_record(cls, record: Any) -> "MigratedPulse":
        """Project a stored legacy record.

        Legacy records look like {"pulse": {"id": 12, ...}, "receivedAt": ...}.

        Raises:
            ValueError: If the record does not have that shape.
        """
        if not isinstance(record, dict):
            raise ValueError("record is not an object")
        pulse = record.get("pulse")
        if not isinstance(pulse, dict) or "id" not in pulse:
            raise ValueError("record has no pulse id")
        if "receivedAt" not in record:
            raise ValueError("record has no receipt time")
        return cls(old_id=pulse["id"], arrived_at=_epoch_millis(record["receivedAt"]))

    def to_dict(self) -> dict[str, Any]:
        return {"old_id": self.old_id, "arrived_at": self.arrived_at}


@dataclass(frozen=True)
class UploadBatch:
    """One step's upload: transformed records plus correlation tags."""

    current_version: str
    target_version: str
    session_id: str
    data: tuple[MigratedPulse, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """JSON body expected by the client-upgrade endpoint."""
        return {
            "currentVersion": self.current_version,
            "targetVersion": self.target_version,
            "sessionId": self.session_id,
            "data": [pulse.to_dict() for pulse in self.data],
        }


@dataclass(frozen=True)
class UploadResponse:
    """Structured answer from the client-upgrade endpoint."""

    success: bool
    message: str = ""

    @classmethod
    def from_json(cls, body: Any) -> "UploadResponse":
        """Build from a decoded response body.

        Raises:
            ValueError: If the body is not an object with a success flag.
        """
        if not isinstance(body, dict) or "success" not in body:
            raise ValueError("response body has no success flag")
        message = body.get("message")
        return cls(success=bool(body["success"]), message="" if message is None else str(message))


class StepOutcome(str, Enum):
    """How a single migration step ended."""

    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Result of running the step for one version."""

    version: str
    outcome: StepOutcome
    message: str = ""
    duration_seconds: float = 0.0

    @classmethod
    def skipped(cls, version: str) -> "StepResult":
        return cls(version=version, outcome=StepOutcome.SKIPPED, message="no transformation required")

    @classmethod
    def succeeded(cls, version: str, duration_seconds: float = 0.0) -> "StepResult":
        return cls(version=version, outcome=StepOutcome.SUCCEEDED, duration_seconds=duration_seconds)

    @classmethod
    def failed(cls, version: str, message: str, duration_seconds: float = 0.0) -> "StepResult":
        return cls(
            version=version,
            outcome=StepOutcome.FAILED,
            message=message,
            duration_seconds=duration_seconds,
        )

    @property
    def is_failure(self) -> bool:
        return self.outcome is StepOutcome.FAILED


@dataclass
class MigrationReport:
    """Outcome of one runner invocation over a plan."""

    plan: tuple[str, ...]
    results: list[StepResult] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        """True only if every planned step ran and none failed."""
        if self.error is not None or len(self.results) != len(self.plan):
            return False
        return not any(result.is_failure for result in self.results)

    @property
    def failed_step(self) -> Optional[StepResult]:
        for result in self.results:
            if result.is_failure:
                return result
        return None

    @property
    def executed_versions(self) -> list[str]:
        """Versions whose step actually ran (not skipped)."""
        return [r.version for r in self.results if r.outcome is not StepOutcome.SKIPPED]


@dataclass
class CleanupReport:
    """Outcome of deleting legacy records."""

    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed
