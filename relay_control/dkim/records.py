# relay_control/dkim/records.py
"""DKIM key locations and DNS TXT records built from existing public keys."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from relay_control.core.models import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DKIMDNSRecord:
    """One DKIM TXT record ready to paste into DNS."""
    domain: str
    selector: str
    dns_name: str   # selector._domainkey.domain
    dns_value: str  # v=DKIM1; k=rsa; p=...


def dkim_key_paths(dkim_dir: Path, domain: str, selector: str) -> Tuple[Path, Path]:
    """
    Private and public key files for (domain, selector).

    Layout: <dkim_dir>/<domain>/<selector>.key and .pub
    """
    base = Path(dkim_dir) / domain
    return base / f"{selector}.key", base / f"{selector}.pub"


def extract_pem_base64(pem_text: str) -> str:
    """Strip PEM armour lines and whitespace, leaving the base64 body."""
    return "".join(
        line.strip()
        for line in pem_text.splitlines()
        if line.strip() and not line.strip().startswith("-----")
    )


def list_dkim_dns_records(snapshot: Snapshot, dkim_dir: Path) -> List[DKIMDNSRecord]:
    """
    Build DNS records for every sender whose public key exists.

    Senders without a readable, non-empty .pub file are skipped.
    """
    records = []

    for domain, sender in snapshot.iter_senders():
        selector = sender.local_part
        if not selector:
            continue

        _, pub_path = dkim_key_paths(dkim_dir, domain.name, selector)
        try:
            pem_text = pub_path.read_text(encoding="utf-8")
        except OSError:
            logger.debug(f"[dkim] no public key at {pub_path}, skipping")
            continue

        body = extract_pem_base64(pem_text)
        if not body:
            continue

        records.append(DKIMDNSRecord(
            domain=domain.name,
            selector=selector,
            dns_name=f"{selector}._domainkey.{domain.name}",
            dns_value=f"v=DKIM1; k=rsa; p={body}",
        ))

    return records
