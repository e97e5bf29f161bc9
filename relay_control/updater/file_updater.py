# relay_control/updater/file_updater.py
"""Smart file updater - no-op on identical content, backup, atomic replace."""

import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Union

from relay_control.core.errors import WriteError

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644
BACKUP_SUFFIX = ".bak"
TEMP_PREFIX = ".tmp-"


class UpdateOutcome(Enum):
    UNCHANGED = "UNCHANGED"
    CREATED = "CREATED"
    UPDATED = "UPDATED"


def backup_path_for(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


class SmartFileUpdater:
    """
    Writes a live, process-owned file without ever exposing a partial write.

    Flow per update:
    1. Identical bytes on disk -> nothing happens (mtime kept, no backup)
    2. Different bytes -> previous content copied to <path>.bak (best effort)
    3. New content written to a temp file in the same directory,
       chmod'ed, fsync'ed, then renamed over the target
    """

    def update(
        self,
        path: Union[str, Path],
        content: Union[str, bytes],
        mode: int = DEFAULT_FILE_MODE,
    ) -> UpdateOutcome:
        path = Path(path)
        data = content.encode("utf-8") if isinstance(content, str) else content

        try:
            existing = path.read_bytes()
        except FileNotFoundError:
            existing = None
        except OSError as e:
            raise WriteError(f"failed to read {path}: {e}") from e

        if existing == data:
            logger.debug(f"[updater] {path} unchanged")
            return UpdateOutcome.UNCHANGED

        if existing is not None:
            self._backup(path, existing)

        self._write_atomic(path, data, mode)

        if existing is None:
            logger.info(f"[updater] created {path}")
            return UpdateOutcome.CREATED

        logger.info(f"[updater] updated {path}")
        return UpdateOutcome.UPDATED

    # -------------------------
    # INTERNAL HELPERS
    # -------------------------

    def _backup(self, path: Path, existing: bytes) -> None:
        """Copy previous content aside. Failure is logged, never raised."""
        backup = backup_path_for(path)
        try:
            backup.write_bytes(existing)
        except OSError as e:
            logger.warning(f"[updater] could not write backup {backup}: {e}")

    def _write_atomic(self, path: Path, data: bytes, mode: int) -> None:
        # Same directory as the target so the rename never crosses filesystems
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=path.parent)
        except OSError as e:
            raise WriteError(f"failed to create temp file for {path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, path)
        except OSError as e:
            self._discard(tmp_name)
            raise WriteError(f"failed to write {path}: {e}") from e
        except BaseException:
            self._discard(tmp_name)
            raise

    @staticmethod
    def _discard(tmp_name: str) -> None:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[updater] could not remove temp file {tmp_name}: {e}")
