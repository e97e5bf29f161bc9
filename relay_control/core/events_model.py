"""Event models for the apply pipeline."""

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID
from typing import Any, Dict


@dataclass
class ApplyEvent:
    """Base apply event."""

    event_type: str
    run_id: UUID
    timestamp: datetime
    metadata: Dict[str, Any]

    @staticmethod
    def apply_started(result):
        """Apply run started."""
        return ApplyEvent(
            event_type="apply.started",
            run_id=result.run_id,
            timestamp=datetime.now(timezone.utc),
            metadata={
                "init_lua_path": result.init_lua_path,
            }
        )

    @staticmethod
    def artifact_written(result, path: str, outcome: str):
        """One policy file was created or replaced."""
        return ApplyEvent(
            event_type="apply.artifact_written",
            run_id=result.run_id,
            timestamp=datetime.now(timezone.utc),
            metadata={
                "path": path,
                "outcome": outcome,
            }
        )

    @staticmethod
    def apply_aborted(result, reason: str):
        """Snapshot, generation or write failed."""
        return ApplyEvent(
            event_type="apply.aborted",
            run_id=result.run_id,
            timestamp=datetime.now(timezone.utc),
            metadata={
                "error_message": reason,
                "changed_paths": list(result.changed_paths),
            }
        )

    @staticmethod
    def validation_failed(result):
        """Engine rejected the policy."""
        return ApplyEvent(
            event_type="apply.validation_failed",
            run_id=result.run_id,
            timestamp=datetime.now(timezone.utc),
            metadata={
                "validation_log": result.validation_log,
            }
        )

    @staticmethod
    def restart_failed(result):
        """Service did not come back after a valid policy was written."""
        return ApplyEvent(
            event_type="apply.restart_failed",
            run_id=result.run_id,
            timestamp=datetime.now(timezone.utc),
            metadata={
                "restart_log": result.restart_log,
            }
        )

    @staticmethod
    def applied(result):
        """Policy validated and service restarted."""
        return ApplyEvent(
            event_type="apply.applied",
            run_id=result.run_id,
            timestamp=datetime.now(timezone.utc),
            metadata={
                "changed_paths": list(result.changed_paths),
                "finished_at": result.finished_at.isoformat() if result.finished_at else None,
            }
        )
