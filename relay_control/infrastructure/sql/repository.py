"""SQL implementation of the configuration repository."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from relay_control.core.errors import (
    DomainAlreadyExists, DomainNotFound, RepositoryError, SenderNotFound
)
from relay_control.core.models import AppSettings, Domain, Sender
from relay_control.core.repository import ConfigRepository
from relay_control.infrastructure.sql.database import SessionLocal
from relay_control.infrastructure.sql.models import DomainORM, SenderORM, SettingsORM

logger = logging.getLogger(__name__)


# ============================================
# MAPPING FUNCTIONS
# ============================================

def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def settings_to_model(orm: SettingsORM) -> AppSettings:
    return AppSettings(
        id=orm.id,
        main_hostname=orm.main_hostname,
        main_server_ip=orm.main_server_ip,
        relay_ips=orm.relay_ips,
        smtp_listen_addr=orm.smtp_listen_addr,
        ai_provider=orm.ai_provider,
        ai_api_key=orm.ai_api_key,
        webhook_url=orm.webhook_url,
        webhook_enabled=orm.webhook_enabled,
    )


def sender_to_model(orm: SenderORM) -> Sender:
    return Sender(
        id=orm.id,
        domain_id=orm.domain_id,
        local_part=orm.local_part,
        email=orm.email,
        ip=orm.ip,
        warmup_enabled=orm.warmup_enabled,
        warmup_plan=orm.warmup_plan,
        warmup_day=orm.warmup_day,
        warmup_last_update=_as_utc(orm.warmup_last_update),
    )


def domain_to_model(orm: DomainORM) -> Domain:
    return Domain(
        id=orm.id,
        name=orm.name,
        mail_host=orm.mail_host,
        bounce_host=orm.bounce_host,
        dmarc_policy=orm.dmarc_policy,
        dmarc_rua=orm.dmarc_rua,
        dmarc_ruf=orm.dmarc_ruf,
        dmarc_percentage=orm.dmarc_percentage,
        senders=tuple(sender_to_model(s) for s in orm.senders),
    )


# ============================================
# REPOSITORY
# ============================================

class SqlConfigRepository(ConfigRepository):
    """Repository for settings, domains and senders."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or SessionLocal

    def _get_session(self):
        return self._session_factory()

    # -------------------------
    # SETTINGS
    # -------------------------

    def get_settings(self) -> Optional[AppSettings]:
        session = self._get_session()
        try:
            orm = session.execute(
                select(SettingsORM).order_by(SettingsORM.id).limit(1)
            ).scalar_one_or_none()
            return settings_to_model(orm) if orm else None
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to load settings: {e}") from e
        finally:
            session.close()

    def upsert_settings(self, settings: AppSettings) -> AppSettings:
        session = self._get_session()
        try:
            orm = session.execute(
                select(SettingsORM).order_by(SettingsORM.id).limit(1)
            ).scalar_one_or_none()
            if orm is None:
                orm = SettingsORM()
                session.add(orm)

            orm.main_hostname = settings.main_hostname
            orm.main_server_ip = settings.main_server_ip
            orm.relay_ips = settings.relay_ips
            orm.smtp_listen_addr = settings.smtp_listen_addr
            orm.ai_provider = settings.ai_provider
            orm.ai_api_key = settings.ai_api_key
            orm.webhook_url = settings.webhook_url
            orm.webhook_enabled = settings.webhook_enabled

            session.commit()
            return settings_to_model(orm)
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(f"failed to save settings: {e}") from e
        finally:
            session.close()

    # -------------------------
    # DOMAINS
    # -------------------------

    def list_domains(self) -> List[Domain]:
        session = self._get_session()
        try:
            rows = session.execute(
                select(DomainORM)
                .options(selectinload(DomainORM.senders))
                .order_by(DomainORM.name)
            ).scalars().all()
            return [domain_to_model(orm) for orm in rows]
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to list domains: {e}") from e
        finally:
            session.close()

    def get_domain_by_name(self, name: str) -> Optional[Domain]:
        session = self._get_session()
        try:
            orm = session.execute(
                select(DomainORM)
                .options(selectinload(DomainORM.senders))
                .where(DomainORM.name == name)
            ).scalar_one_or_none()
            return domain_to_model(orm) if orm else None
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to load domain {name}: {e}") from e
        finally:
            session.close()

    def create_domain(self, domain: Domain) -> Domain:
        session = self._get_session()
        try:
            orm = DomainORM(
                name=domain.name,
                mail_host=domain.mail_host,
                bounce_host=domain.bounce_host,
                dmarc_policy=domain.dmarc_policy,
                dmarc_rua=domain.dmarc_rua,
                dmarc_ruf=domain.dmarc_ruf,
                dmarc_percentage=domain.dmarc_percentage,
            )
            session.add(orm)
            session.commit()
            logger.info(f"[domain_repo] created domain {domain.name}")
            return domain_to_model(orm)
        except IntegrityError as e:
            session.rollback()
            raise DomainAlreadyExists(f"Domain {domain.name} already exists") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(f"failed to create domain {domain.name}: {e}") from e
        finally:
            session.close()

    def delete_domain(self, domain_id: int) -> None:
        session = self._get_session()
        try:
            orm = session.get(DomainORM, domain_id)
            if orm is None:
                raise DomainNotFound(f"Domain {domain_id} not found")
            session.delete(orm)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(f"failed to delete domain {domain_id}: {e}") from e
        finally:
            session.close()

    # -------------------------
    # SENDERS
    # -------------------------

    def add_sender(self, domain_id: int, sender: Sender) -> Sender:
        session = self._get_session()
        try:
            domain = session.get(DomainORM, domain_id)
            if domain is None:
                raise DomainNotFound(f"Domain {domain_id} not found")

            orm = SenderORM(
                domain_id=domain.id,
                local_part=sender.local_part,
                email=f"{sender.local_part}@{domain.name}",
                ip=sender.ip,
                warmup_enabled=sender.warmup_enabled,
                warmup_plan=sender.warmup_plan,
                warmup_day=sender.warmup_day,
                warmup_last_update=sender.warmup_last_update,
            )
            session.add(orm)
            session.commit()
            return sender_to_model(orm)
        except IntegrityError as e:
            session.rollback()
            raise RepositoryError(
                f"Sender {sender.local_part} already exists on domain {domain_id}"
            ) from e
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(f"failed to add sender: {e}") from e
        finally:
            session.close()

    def get_sender(self, sender_id: int) -> Optional[Sender]:
        session = self._get_session()
        try:
            orm = session.get(SenderORM, sender_id)
            return sender_to_model(orm) if orm else None
        except SQLAlchemyError as e:
            raise RepositoryError(f"failed to load sender {sender_id}: {e}") from e
        finally:
            session.close()

    def update_sender(self, sender: Sender) -> None:
        session = self._get_session()
        try:
            orm = session.get(SenderORM, sender.id)
            if orm is None:
                raise SenderNotFound(f"Sender {sender.id} not found")

            orm.ip = sender.ip
            orm.warmup_enabled = sender.warmup_enabled
            orm.warmup_plan = sender.warmup_plan
            orm.warmup_day = sender.warmup_day
            orm.warmup_last_update = sender.warmup_last_update

            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(f"failed to update sender {sender.id}: {e}") from e
        finally:
            session.close()

    def delete_sender(self, sender_id: int) -> None:
        session = self._get_session()
        try:
            orm = session.get(SenderORM, sender_id)
            if orm is None:
                raise SenderNotFound(f"Sender {sender_id} not found")
            session.delete(orm)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RepositoryError(f"failed to delete sender {sender_id}: {e}") from e
        finally:
            session.close()
