#tests\test_repository.py

"""Test repository implementations (SQLite-backed SQL and in-memory)."""

from datetime import datetime, timezone

import pytest

from relay_control.core.errors import (
    DomainAlreadyExists, DomainNotFound, RepositoryError, SenderNotFound
)
from relay_control.core.models import AppSettings, Domain, Sender, WarmupPlan


@pytest.fixture(params=["sql", "memory"])
def repository(request, sql_repository, memory_repository):
    return {"sql": sql_repository, "memory": memory_repository}[request.param]


class TestConfigRepository:
    """Test repository operations against both backends."""

    # -------------------------
    # SETTINGS
    # -------------------------

    def test_settings_absent(self, repository):
        assert repository.get_settings() is None

    def test_upsert_settings_keeps_single_record(self, repository):
        repository.upsert_settings(AppSettings(main_hostname="a.example"))
        repository.upsert_settings(AppSettings(main_hostname="b.example", relay_ips="10.0.0.1"))

        settings = repository.get_settings()
        assert settings.main_hostname == "b.example"
        assert settings.relay_ips == "10.0.0.1"
        assert settings.id is not None

    # -------------------------
    # DOMAINS
    # -------------------------

    def test_create_and_get_domain(self, repository):
        created = repository.create_domain(Domain(name="acme.io", dmarc_policy="quarantine"))

        fetched = repository.get_domain_by_name("acme.io")
        assert fetched.id == created.id
        assert fetched.dmarc_policy == "quarantine"
        assert fetched.senders == ()

    def test_duplicate_domain_fails(self, repository):
        repository.create_domain(Domain(name="acme.io"))

        with pytest.raises(DomainAlreadyExists):
            repository.create_domain(Domain(name="acme.io"))

    def test_get_missing_domain(self, repository):
        assert repository.get_domain_by_name("nope.io") is None

    def test_list_domains_sorted_with_senders(self, repository):
        zeta = repository.create_domain(Domain(name="zeta.io"))
        acme = repository.create_domain(Domain(name="acme.io"))
        repository.add_sender(zeta.id, Sender(local_part="sales"))
        repository.add_sender(acme.id, Sender(local_part="news"))
        repository.add_sender(acme.id, Sender(local_part="info"))

        domains = repository.list_domains()

        assert [d.name for d in domains] == ["acme.io", "zeta.io"]
        assert [s.local_part for s in domains[0].senders] == ["info", "news"]

    def test_delete_domain_cascades(self, repository):
        domain = repository.create_domain(Domain(name="acme.io"))
        sender = repository.add_sender(domain.id, Sender(local_part="info"))

        repository.delete_domain(domain.id)

        assert repository.get_domain_by_name("acme.io") is None
        assert repository.get_sender(sender.id) is None

    def test_delete_missing_domain(self, repository):
        with pytest.raises(DomainNotFound):
            repository.delete_domain(12345)

    # -------------------------
    # SENDERS
    # -------------------------

    def test_add_sender_derives_email(self, repository):
        domain = repository.create_domain(Domain(name="acme.io"))

        sender = repository.add_sender(
            domain.id, Sender(local_part="info", email="ignored@elsewhere.io")
        )

        assert sender.email == "info@acme.io"
        assert sender.domain_id == domain.id
        assert sender.warmup_plan is WarmupPlan.STANDARD

    def test_add_sender_to_missing_domain(self, repository):
        with pytest.raises(DomainNotFound):
            repository.add_sender(999, Sender(local_part="info"))

    def test_duplicate_local_part_fails(self, repository):
        domain = repository.create_domain(Domain(name="acme.io"))
        repository.add_sender(domain.id, Sender(local_part="info"))

        with pytest.raises(RepositoryError):
            repository.add_sender(domain.id, Sender(local_part="info"))

    def test_update_sender_warmup(self, repository):
        domain = repository.create_domain(Domain(name="acme.io"))
        sender = repository.add_sender(domain.id, Sender(local_part="info"))
        stamp = datetime(2026, 5, 1, 8, 30, tzinfo=timezone.utc)

        repository.update_sender(Sender(
            id=sender.id,
            domain_id=sender.domain_id,
            local_part=sender.local_part,
            email=sender.email,
            ip="192.0.2.7",
            warmup_enabled=True,
            warmup_plan=WarmupPlan.AGGRESSIVE,
            warmup_day=4,
            warmup_last_update=stamp,
        ))

        updated = repository.get_sender(sender.id)
        assert updated.ip == "192.0.2.7"
        assert updated.warmup_enabled is True
        assert updated.warmup_plan is WarmupPlan.AGGRESSIVE
        assert updated.warmup_day == 4
        assert updated.warmup_last_update == stamp
        assert updated.warmup_last_update.tzinfo is not None

    def test_update_missing_sender(self, repository):
        with pytest.raises(SenderNotFound):
            repository.update_sender(Sender(id=4242, local_part="ghost"))

    def test_delete_sender(self, repository):
        domain = repository.create_domain(Domain(name="acme.io"))
        sender = repository.add_sender(domain.id, Sender(local_part="info"))

        repository.delete_sender(sender.id)

        assert repository.get_sender(sender.id) is None
        with pytest.raises(SenderNotFound):
            repository.delete_sender(sender.id)


class TestSqlSchema:
    """Test the ORM tables against the domain models."""

    def test_sender_columns_match_model(self):
        from dataclasses import fields

        from relay_control.infrastructure.sql.models import SenderORM

        columns = {c.name for c in SenderORM.__table__.columns}

        assert columns == {f.name for f in fields(Sender)}
        assert "smtp_password" not in columns

    def test_database_module_exposes_factories_only(self):
        from relay_control.infrastructure.sql import database

        assert callable(database.get_session_factory)
        assert not hasattr(database, "get_db_session")
