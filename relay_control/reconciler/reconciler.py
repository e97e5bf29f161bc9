# relay_control/reconciler/reconciler.py
"""Reconciler - the apply pipeline from database state to a restarted engine."""

import logging
from typing import List, Optional

from relay_control.core.errors import (
    GenerationError,
    RestartFailure,
    SnapshotError,
    ValidationFailure,
    WriteError,
)
from relay_control.core.events import NullEventEmitter
from relay_control.core.events_model import ApplyEvent
from relay_control.core.models import (
    ApplyResult, ApplyState, GeneratedArtifact, PolicyPaths
)
from relay_control.core.repository import ConfigRepository
from relay_control.core.snapshot import load_snapshot
from relay_control.core.state_machine import ApplyStateMachine
from relay_control.engine.controller import EngineController
from relay_control.generator.artifacts import generate_all
from relay_control.reconciler.lock import ApplyLock
from relay_control.updater.file_updater import (
    DEFAULT_FILE_MODE, SmartFileUpdater, UpdateOutcome
)

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Regenerates and applies the engine policy.

    Flow:
    1. Load a fresh snapshot
    2. Generate all five artifacts
    3. Write each one through the smart updater (init.lua last)
    4. Validate the written init.lua with the engine
    5. Restart the engine only when validation passed

    Steps 1-3 failing abort the run. A failed validation never restarts
    the service. Runs are serialized by the apply lock.
    """

    def __init__(
        self,
        repository: ConfigRepository,
        paths: PolicyPaths,
        controller: EngineController,
        updater: Optional[SmartFileUpdater] = None,
        emitters=None,
        lock: Optional[ApplyLock] = None,
        file_mode: int = DEFAULT_FILE_MODE,
        dir_mode: int = 0o755,
    ):
        self._repo = repository
        self._paths = paths
        self._controller = controller
        self._updater = updater or SmartFileUpdater()
        self._emitters = emitters or NullEventEmitter()
        self._lock = lock or ApplyLock.for_path(paths.lock_file)
        self._file_mode = file_mode
        self._dir_mode = dir_mode

    @property
    def paths(self) -> PolicyPaths:
        return self._paths

    def apply(self) -> ApplyResult:
        """
        Run the whole pipeline once and return its result.

        Raises:
            SnapshotError, GenerationError, WriteError: run aborted
            ValidationFailure: policy rejected, service untouched
            RestartFailure: policy valid, service restart failed

        Every raised error carries the run's ApplyResult in ``.result``.
        """
        with self._lock:
            return self._run()

    # -------------------------
    # PIPELINE
    # -------------------------

    def _run(self) -> ApplyResult:
        result = ApplyResult.for_paths(self._paths)

        self._transition(result, ApplyState.SNAPSHOTTING)
        self._emit([ApplyEvent.apply_started(result)])
        logger.info(f"[apply] run {result.run_id} started")

        try:
            snapshot = load_snapshot(self._repo)

            self._transition(result, ApplyState.GENERATING)
            artifacts = generate_all(snapshot, self._paths)

            self._transition(result, ApplyState.WRITING)
            self._write_artifacts(result, artifacts)

        except (SnapshotError, GenerationError, WriteError) as e:
            self._transition(result, ApplyState.ABORTED)
            e.result = result
            logger.error(f"[apply] run {result.run_id} aborted in {type(e).__name__}: {e}")
            self._emit([ApplyEvent.apply_aborted(result, str(e))])
            raise

        self._transition(result, ApplyState.VALIDATING)
        if not self._validate(result):
            self._transition(result, ApplyState.VALIDATION_FAILED)
            self._emit([ApplyEvent.validation_failed(result)])
            raise ValidationFailure(
                f"engine validation failed for {self._paths.init_lua}", result=result
            )

        self._transition(result, ApplyState.RESTARTING)
        if not self._restart(result):
            self._transition(result, ApplyState.RESTART_FAILED)
            self._emit([ApplyEvent.restart_failed(result)])
            raise RestartFailure(
                "engine restart failed after a successful validation", result=result
            )

        self._transition(result, ApplyState.APPLIED)
        self._emit([ApplyEvent.applied(result)])
        logger.info(
            f"[apply] ✅ run {result.run_id} applied "
            f"({len(result.changed_paths)} file(s) changed)"
        )
        return result

    def _write_artifacts(self, result: ApplyResult, artifacts: List[GeneratedArtifact]) -> None:
        try:
            self._paths.policy_dir.mkdir(mode=self._dir_mode, parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"failed to create policy dir {self._paths.policy_dir}: {e}") from e

        for artifact in artifacts:
            outcome = self._updater.update(artifact.path, artifact.content, self._file_mode)
            if outcome is not UpdateOutcome.UNCHANGED:
                result.changed_paths.append(str(artifact.path))
                self._emit([
                    ApplyEvent.artifact_written(result, str(artifact.path), outcome.value)
                ])

    def _validate(self, result: ApplyResult) -> bool:
        # Validates the live file that was just written; there is no staging copy.
        outcome = self._controller.validate(self._paths.init_lua)
        result.validation_log = outcome.log
        result.validation_ok = outcome.ok
        if not outcome.ok:
            logger.warning(
                f"[apply] run {result.run_id} validation failed, service not restarted"
            )
        return outcome.ok

    def _restart(self, result: ApplyResult) -> bool:
        outcome = self._controller.restart()
        result.restart_log = outcome.log
        result.restart_ok = outcome.ok
        if not outcome.ok:
            logger.critical(
                f"[apply] run {result.run_id} restart failed; engine may be down"
            )
        return outcome.ok

    # -------------------------
    # INTERNAL HELPERS
    # -------------------------

    @staticmethod
    def _transition(result: ApplyResult, state: ApplyState) -> None:
        ApplyStateMachine.transition(result, state)

    def _emit(self, events):
        """Emit events via emitters."""
        self._emitters.emit(events)
