"""Snapshot loading - a consistent read of settings + domains + senders."""

import logging

from relay_control.core.errors import RepositoryError, SnapshotError
from relay_control.core.models import Snapshot
from relay_control.core.repository import ConfigRepository

logger = logging.getLogger(__name__)


def load_snapshot(repository: ConfigRepository) -> Snapshot:
    """
    Build a fresh Snapshot from the repository.

    A missing settings record is fine (settings stay None). Storage
    failures and invariant violations raise SnapshotError.
    """
    try:
        settings = repository.get_settings()
        domains = repository.list_domains()
    except RepositoryError as e:
        raise SnapshotError(f"failed to load snapshot: {e}") from e

    snapshot = Snapshot(settings=settings, domains=tuple(domains))
    validate_snapshot(snapshot)

    logger.debug(
        f"[snapshot] loaded {len(snapshot.domains)} domain(s), "
        f"{sum(len(d.senders) for d in snapshot.domains)} sender(s)"
    )
    return snapshot


def validate_snapshot(snapshot: Snapshot) -> None:
    domain_ids = {d.id for d in snapshot.domains}

    for domain in snapshot.domains:
        for sender in domain.senders:
            if sender.domain_id not in domain_ids:
                raise SnapshotError(
                    f"sender {sender.email!r} references unknown domain {sender.domain_id}"
                )
            if sender.domain_id != domain.id:
                raise SnapshotError(
                    f"sender {sender.email!r} is nested under {domain.name!r} "
                    f"but belongs to domain {sender.domain_id}"
                )

            expected = f"{sender.local_part}@{domain.name}"
            if sender.email != expected:
                raise SnapshotError(
                    f"sender email {sender.email!r} does not match {expected!r}"
                )
