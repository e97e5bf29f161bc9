# relay_control/reconciler/lock.py
"""Single apply lock guarding the policy files and the engine service."""

import fcntl
import threading
from pathlib import Path
from typing import Dict, Optional

from relay_control.core.errors import WriteError


class ApplyLock:
    """
    Serializes apply runs.

    A thread lock covers callers inside one process; an exclusive flock on
    the lock file covers the API and the warmup worker running as
    separate processes.
    """

    _registry: Dict[Path, "ApplyLock"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, lock_path: Optional[Path] = None, dir_mode: int = 0o755):
        self._lock_path = Path(lock_path) if lock_path is not None else None
        self._dir_mode = dir_mode
        self._thread_lock = threading.Lock()
        self._handle = None

    @classmethod
    def for_path(cls, lock_path: Path) -> "ApplyLock":
        """Shared lock instance per lock file."""
        key = Path(lock_path).resolve()
        with cls._registry_lock:
            lock = cls._registry.get(key)
            if lock is None:
                lock = cls(key)
                cls._registry[key] = lock
            return lock

    def __enter__(self) -> "ApplyLock":
        self._thread_lock.acquire()
        try:
            if self._lock_path is not None:
                self._handle = self._acquire_file_lock()
        except BaseException:
            self._thread_lock.release()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._handle is not None:
                fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
                self._handle.close()
                self._handle = None
        finally:
            self._thread_lock.release()

    def _acquire_file_lock(self):
        try:
            self._lock_path.parent.mkdir(mode=self._dir_mode, parents=True, exist_ok=True)
            handle = open(self._lock_path, "a")
        except OSError as e:
            raise WriteError(f"failed to open apply lock {self._lock_path}: {e}") from e

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        except BaseException:
            handle.close()
            raise
        return handle
