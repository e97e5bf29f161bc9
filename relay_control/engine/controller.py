# relay_control/engine/controller.py
"""Mail engine controller - policy validation and service restart."""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutcome:
    """Result of one external command."""
    ok: bool
    log: str
    returncode: Optional[int] = None
    timed_out: bool = False


class EngineController(ABC):
    """Validation and restart of the external mail engine."""

    @abstractmethod
    def validate(self, policy_path: Path) -> CommandOutcome:
        """Run the engine's validate-only mode against ``policy_path``."""
        raise NotImplementedError

    @abstractmethod
    def restart(self) -> CommandOutcome:
        """Restart the engine service."""
        raise NotImplementedError


def _decode(output: Union[bytes, str, None]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class SubprocessEngineController(EngineController):
    """
    Runs kumod and systemctl as child processes.

    stdout and stderr are merged into one log, as the engine prints
    diagnostics on both. Non-zero exit, launch failure and timeout all
    count as failure.
    """

    def __init__(
        self,
        kumod_binary: Union[str, Path] = "/opt/kumomta/sbin/kumod",
        kumod_user: str = "kumod",
        service_name: str = "kumomta",
        systemctl_binary: Union[str, Path] = "systemctl",
        validate_timeout_seconds: float = 30.0,
        restart_timeout_seconds: float = 60.0,
    ):
        self.kumod_binary = str(kumod_binary)
        self.kumod_user = kumod_user
        self.service_name = service_name
        self.systemctl_binary = str(systemctl_binary)
        self.validate_timeout_seconds = validate_timeout_seconds
        self.restart_timeout_seconds = restart_timeout_seconds

    def validate(self, policy_path: Path) -> CommandOutcome:
        argv = [
            self.kumod_binary,
            "--policy", str(policy_path),
            "--validate",
            "--user", self.kumod_user,
        ]
        return self._run(argv, self.validate_timeout_seconds)

    def restart(self) -> CommandOutcome:
        argv = [self.systemctl_binary, "restart", self.service_name]
        return self._run(argv, self.restart_timeout_seconds)

    def _run(self, argv: List[str], timeout: float) -> CommandOutcome:
        logger.info(f"[engine] running: {' '.join(argv)}")

        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            log = _decode(e.output) + f"\n{argv[0]} timed out after {timeout}s"
            logger.error(f"[engine] {argv[0]} timed out after {timeout}s")
            return CommandOutcome(ok=False, log=log, timed_out=True)
        except OSError as e:
            logger.error(f"[engine] failed to launch {argv[0]}: {e}")
            return CommandOutcome(ok=False, log=f"failed to launch {argv[0]}: {e}")

        log = _decode(completed.stdout)
        ok = completed.returncode == 0
        if not ok:
            logger.warning(f"[engine] {argv[0]} exited with {completed.returncode}")
        return CommandOutcome(ok=ok, log=log, returncode=completed.returncode)
