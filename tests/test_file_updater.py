"""Test the smart file updater."""

import os
import stat

import pytest

from relay_control.core.errors import WriteError
from relay_control.updater.file_updater import (
    SmartFileUpdater, TEMP_PREFIX, UpdateOutcome, backup_path_for
)


@pytest.fixture
def updater():
    return SmartFileUpdater()


@pytest.fixture
def target(tmp_path):
    return tmp_path / "queues.toml"


def leftover_temp_files(directory):
    return [p for p in directory.iterdir() if p.name.startswith(TEMP_PREFIX)]


class TestSmartFileUpdater:
    """Test no-op, backup and atomic replace behaviour."""

    # -------------------------
    # CREATE / NO-OP
    # -------------------------

    def test_creates_missing_file(self, updater, target):
        outcome = updater.update(target, "a = 1\n")

        assert outcome is UpdateOutcome.CREATED
        assert target.read_text() == "a = 1\n"
        assert not backup_path_for(target).exists()

    def test_file_mode(self, updater, target):
        updater.update(target, "a = 1\n", mode=0o640)

        assert stat.S_IMODE(target.stat().st_mode) == 0o640

    def test_identical_content_is_noop(self, updater, target):
        target.write_text("a = 1\n")
        before = target.stat().st_mtime_ns

        outcome = updater.update(target, "a = 1\n")

        assert outcome is UpdateOutcome.UNCHANGED
        assert target.stat().st_mtime_ns == before
        assert not backup_path_for(target).exists()

    # -------------------------
    # BACKUP
    # -------------------------

    def test_changed_content_backs_up_previous(self, updater, target):
        target.write_text("old\n")

        outcome = updater.update(target, "new\n")

        assert outcome is UpdateOutcome.UPDATED
        assert target.read_text() == "new\n"
        assert backup_path_for(target).read_text() == "old\n"

    def test_backup_is_overwritten(self, updater, target):
        target.write_text("v1\n")
        updater.update(target, "v2\n")
        updater.update(target, "v3\n")

        assert backup_path_for(target).read_text() == "v2\n"

    def test_backup_failure_does_not_block_write(self, updater, target):
        target.write_text("old\n")
        backup_path_for(target).mkdir()  # a directory cannot be written as a file

        outcome = updater.update(target, "new\n")

        assert outcome is UpdateOutcome.UPDATED
        assert target.read_text() == "new\n"

    # -------------------------
    # ATOMICITY
    # -------------------------

    def test_failed_rename_leaves_target_untouched(self, updater, target, monkeypatch):
        target.write_text("old\n")

        def broken_replace(src, dst):
            raise OSError("disk on fire")

        monkeypatch.setattr(os, "replace", broken_replace)

        with pytest.raises(WriteError):
            updater.update(target, "new\n")

        assert target.read_text() == "old\n"
        assert leftover_temp_files(target.parent) == []

    def test_interrupt_before_rename_leaves_no_temp_file(self, updater, target, monkeypatch):
        target.write_text("old\n")

        def interrupted(src, dst):
            raise KeyboardInterrupt

        monkeypatch.setattr(os, "replace", interrupted)

        with pytest.raises(KeyboardInterrupt):
            updater.update(target, "new\n")

        assert target.read_text() == "old\n"
        assert leftover_temp_files(target.parent) == []

    def test_missing_directory_raises_write_error(self, updater, tmp_path):
        with pytest.raises(WriteError):
            updater.update(tmp_path / "nope" / "init.lua", "x")
