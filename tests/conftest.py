#tests\conftest.py

"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from relay_control.core.events import RecordingEventEmitter
from relay_control.core.models import AppSettings, Domain, PolicyPaths, Sender
from relay_control.engine.controller import CommandOutcome, EngineController
from relay_control.infrastructure.memory.repository import InMemoryConfigRepository
from relay_control.infrastructure.sql.database import (
    create_db_engine, drop_db, get_session_factory, init_db
)
from relay_control.infrastructure.sql.repository import SqlConfigRepository
from relay_control.reconciler.reconciler import Reconciler


# ============================================
# FAKES
# ============================================

class FakeEngineController(EngineController):
    """Records calls; outcomes are set per test."""

    def __init__(self, validate_ok: bool = True, restart_ok: bool = True):
        self.validate_ok = validate_ok
        self.restart_ok = restart_ok
        self.validate_calls = []
        self.restart_calls = 0

    def validate(self, policy_path: Path) -> CommandOutcome:
        self.validate_calls.append(Path(policy_path))
        if self.validate_ok:
            return CommandOutcome(ok=True, log="policy ok", returncode=0)
        return CommandOutcome(ok=False, log="syntax error near 'end'", returncode=1)

    def restart(self) -> CommandOutcome:
        self.restart_calls += 1
        if self.restart_ok:
            return CommandOutcome(ok=True, log="", returncode=0)
        return CommandOutcome(ok=False, log="Job for kumomta.service failed", returncode=1)


# ============================================
# PATHS / REPOSITORIES
# ============================================

@pytest.fixture
def policy_paths(tmp_path):
    """Policy and DKIM directories inside the test's temp dir."""
    return PolicyPaths(policy_dir=tmp_path / "policy", dkim_dir=tmp_path / "dkim")


@pytest.fixture
def memory_repository():
    return InMemoryConfigRepository()


@pytest.fixture
def seeded_repository(memory_repository):
    """One domain acme.io with sender info@acme.io."""
    memory_repository.upsert_settings(AppSettings(
        main_hostname="mta.acme.io",
        main_server_ip="203.0.113.10",
        relay_ips="10.0.0.5, 10.0.0.6",
    ))
    domain = memory_repository.create_domain(Domain(name="acme.io"))
    memory_repository.add_sender(domain.id, Sender(local_part="info", ip="203.0.113.20"))
    return memory_repository


@pytest.fixture
def sender(seeded_repository):
    return seeded_repository.get_domain_by_name("acme.io").senders[0]


# ============================================
# PIPELINE
# ============================================

@pytest.fixture
def engine_controller():
    return FakeEngineController()


@pytest.fixture
def recorder():
    return RecordingEventEmitter()


@pytest.fixture
def reconciler(seeded_repository, policy_paths, engine_controller, recorder):
    return Reconciler(
        repository=seeded_repository,
        paths=policy_paths,
        controller=engine_controller,
        emitters=recorder,
    )


# ============================================
# SQL
# ============================================

@pytest.fixture
def sql_engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture
def sql_repository(sql_engine):
    return SqlConfigRepository(session_factory=get_session_factory(sql_engine))
