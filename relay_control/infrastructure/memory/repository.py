# relay_control/infrastructure/memory/repository.py

from dataclasses import replace
from threading import Lock
from typing import Dict, List, Optional

from relay_control.core.errors import (
    DomainAlreadyExists, DomainNotFound, RepositoryError, SenderNotFound
)
from relay_control.core.models import AppSettings, Domain, Sender
from relay_control.core.repository import ConfigRepository


class InMemoryConfigRepository(ConfigRepository):
    def __init__(self):
        self._settings: Optional[AppSettings] = None
        self._domains: Dict[int, Domain] = {}
        self._senders: Dict[int, Sender] = {}
        self._next_domain_id = 1
        self._next_sender_id = 1
        self._lock = Lock()

    def get_settings(self) -> Optional[AppSettings]:
        return self._settings

    def upsert_settings(self, settings: AppSettings) -> AppSettings:
        with self._lock:
            self._settings = replace(settings, id=1)
            return self._settings

    def _with_senders(self, domain: Domain) -> Domain:
        senders = sorted(
            (s for s in self._senders.values() if s.domain_id == domain.id),
            key=lambda s: s.local_part,
        )
        return replace(domain, senders=tuple(senders))

    def list_domains(self) -> List[Domain]:
        with self._lock:
            domains = sorted(self._domains.values(), key=lambda d: d.name)
            return [self._with_senders(d) for d in domains]

    def get_domain_by_name(self, name: str) -> Optional[Domain]:
        with self._lock:
            for domain in self._domains.values():
                if domain.name == name:
                    return self._with_senders(domain)
            return None

    def create_domain(self, domain: Domain) -> Domain:
        with self._lock:
            if any(d.name == domain.name for d in self._domains.values()):
                raise DomainAlreadyExists(f"Domain {domain.name} already exists")
            stored = replace(domain, id=self._next_domain_id, senders=())
            self._next_domain_id += 1
            self._domains[stored.id] = stored
            return stored

    def delete_domain(self, domain_id: int) -> None:
        with self._lock:
            if domain_id not in self._domains:
                raise DomainNotFound(f"Domain {domain_id} not found")
            del self._domains[domain_id]
            for sender_id in [k for k, s in self._senders.items() if s.domain_id == domain_id]:
                del self._senders[sender_id]

    def add_sender(self, domain_id: int, sender: Sender) -> Sender:
        with self._lock:
            domain = self._domains.get(domain_id)
            if domain is None:
                raise DomainNotFound(f"Domain {domain_id} not found")
            for existing in self._senders.values():
                if existing.domain_id == domain_id and existing.local_part == sender.local_part:
                    raise RepositoryError(
                        f"Sender {sender.local_part} already exists on domain {domain_id}"
                    )
            stored = replace(
                sender,
                id=self._next_sender_id,
                domain_id=domain_id,
                email=f"{sender.local_part}@{domain.name}",
            )
            self._next_sender_id += 1
            self._senders[stored.id] = stored
            return stored

    def get_sender(self, sender_id: int) -> Optional[Sender]:
        return self._senders.get(sender_id)

    def update_sender(self, sender: Sender) -> None:
        with self._lock:
            existing = self._senders.get(sender.id)
            if existing is None:
                raise SenderNotFound(f"Sender {sender.id} not found")
            # identity fields are not updatable
            self._senders[sender.id] = replace(
                sender,
                domain_id=existing.domain_id,
                local_part=existing.local_part,
                email=existing.email,
            )

    def delete_sender(self, sender_id: int) -> None:
        with self._lock:
            if self._senders.pop(sender_id, None) is None:
                raise SenderNotFound(f"Sender {sender_id} not found")
