# relay_control/core/repository.py

from abc import ABC, abstractmethod
from typing import List, Optional

from relay_control.core.models import AppSettings, Domain, Sender


class ConfigRepository(ABC):
    """
    Persistence contract for settings, domains and senders.
    """

    # -------------------------
    # SETTINGS
    # -------------------------

    @abstractmethod
    def get_settings(self) -> Optional[AppSettings]:
        """
        Fetch the global settings record.
        Returns None when none has been saved yet.
        """
        raise NotImplementedError

    @abstractmethod
    def upsert_settings(self, settings: AppSettings) -> AppSettings:
        """
        Create or replace the single settings record.
        """
        raise NotImplementedError

    # -------------------------
    # DOMAINS
    # -------------------------

    @abstractmethod
    def list_domains(self) -> List[Domain]:
        """
        List every domain with its senders loaded.
        """
        raise NotImplementedError

    @abstractmethod
    def get_domain_by_name(self, name: str) -> Optional[Domain]:
        raise NotImplementedError

    @abstractmethod
    def create_domain(self, domain: Domain) -> Domain:
        """
        Persist a new domain (senders on the argument are ignored).
        Must fail if the name already exists.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_domain(self, domain_id: int) -> None:
        """
        Delete a domain and all of its senders.
        """
        raise NotImplementedError

    # -------------------------
    # SENDERS
    # -------------------------

    @abstractmethod
    def add_sender(self, domain_id: int, sender: Sender) -> Sender:
        """
        Attach a sender to a domain.
        The stored email is always local_part@domain.
        """
        raise NotImplementedError

    @abstractmethod
    def get_sender(self, sender_id: int) -> Optional[Sender]:
        raise NotImplementedError

    @abstractmethod
    def update_sender(self, sender: Sender) -> None:
        """
        Persist updated sender fields (IP, password, warmup state).
        """
        raise NotImplementedError

    @abstractmethod
    def delete_sender(self, sender_id: int) -> None:
        raise NotImplementedError
