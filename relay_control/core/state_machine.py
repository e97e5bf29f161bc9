# relay_control/core/state_machine.py

from datetime import datetime, timezone

from relay_control.core.models import ApplyResult, ApplyState, TERMINAL_STATES


ALLOWED_TRANSITIONS = {
    ApplyState.START: {
        ApplyState.SNAPSHOTTING,
    },
    ApplyState.SNAPSHOTTING: {
        ApplyState.GENERATING,
        ApplyState.ABORTED,
    },
    ApplyState.GENERATING: {
        ApplyState.WRITING,
        ApplyState.ABORTED,
    },
    ApplyState.WRITING: {
        ApplyState.VALIDATING,
        ApplyState.ABORTED,
    },
    ApplyState.VALIDATING: {
        ApplyState.VALIDATION_FAILED,
        ApplyState.RESTARTING,
    },
    ApplyState.RESTARTING: {
        ApplyState.RESTART_FAILED,
        ApplyState.APPLIED,
    },
}


class InvalidStateTransition(Exception):
    pass


class ApplyStateMachine:
    @staticmethod
    def transition(
        result: ApplyResult,
        new_state: ApplyState,
        *,
        now: datetime | None = None,
    ) -> ApplyResult:
        now = now or datetime.now(timezone.utc)

        current = result.state

        allowed = ALLOWED_TRANSITIONS.get(current, set())
        if new_state not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {current} to {new_state}"
            )

        # Timestamp semantics
        if current == ApplyState.START:
            result.started_at = now

        if new_state in TERMINAL_STATES:
            result.finished_at = now

        result.state = new_state
        return result
