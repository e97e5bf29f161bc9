"""Test the subprocess engine controller against stand-in scripts."""

import pytest

from relay_control.engine.controller import SubprocessEngineController


def write_script(path, body):
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def fake_kumod(tmp_path):
    """Echoes its arguments; fails when the policy contains 'broken'."""
    return write_script(tmp_path / "kumod", (
        'echo "args: $*"\n'
        'if grep -q broken "$2"; then echo "policy error" >&2; exit 1; fi\n'
        "exit 0"
    ))


@pytest.fixture
def fake_systemctl(tmp_path):
    return write_script(tmp_path / "systemctl", 'echo "$1 $2"\nexit 0')


class TestSubprocessEngineController:
    """Test validation and restart commands."""

    def test_validate_success(self, tmp_path, fake_kumod):
        policy = tmp_path / "init.lua"
        policy.write_text("-- fine\n")
        controller = SubprocessEngineController(kumod_binary=fake_kumod)

        outcome = controller.validate(policy)

        assert outcome.ok is True
        assert outcome.returncode == 0
        assert f"args: --policy {policy} --validate --user kumod" in outcome.log

    def test_validate_failure_merges_stderr(self, tmp_path, fake_kumod):
        policy = tmp_path / "init.lua"
        policy.write_text("broken\n")
        controller = SubprocessEngineController(kumod_binary=fake_kumod)

        outcome = controller.validate(policy)

        assert outcome.ok is False
        assert outcome.returncode == 1
        assert "policy error" in outcome.log

    def test_restart(self, fake_systemctl):
        controller = SubprocessEngineController(
            systemctl_binary=fake_systemctl, service_name="kumomta"
        )

        outcome = controller.restart()

        assert outcome.ok is True
        assert "restart kumomta" in outcome.log

    def test_restart_failure(self, tmp_path):
        systemctl = write_script(tmp_path / "systemctl", 'echo "unit failed"\nexit 3')
        controller = SubprocessEngineController(systemctl_binary=systemctl)

        outcome = controller.restart()

        assert outcome.ok is False
        assert outcome.returncode == 3

    def test_timeout_counts_as_failure(self, tmp_path):
        slow = write_script(tmp_path / "kumod", "exec sleep 5")
        controller = SubprocessEngineController(
            kumod_binary=slow, validate_timeout_seconds=0.2
        )

        outcome = controller.validate(tmp_path / "init.lua")

        assert outcome.ok is False
        assert outcome.timed_out is True
        assert "timed out" in outcome.log

    def test_missing_binary_counts_as_failure(self, tmp_path):
        controller = SubprocessEngineController(kumod_binary=tmp_path / "missing")

        outcome = controller.validate(tmp_path / "init.lua")

        assert outcome.ok is False
        assert outcome.returncode is None
        assert "failed to launch" in outcome.log
