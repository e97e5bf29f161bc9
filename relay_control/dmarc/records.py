# relay_control/dmarc/records.py
"""DMARC TXT records built from per-domain policy settings."""

from dataclasses import dataclass
from typing import List

from relay_control.core.models import Domain, Snapshot

DEFAULT_POLICY = "none"


@dataclass(frozen=True)
class DMARCRecord:
    """One DMARC TXT record ready to paste into DNS."""
    domain: str
    dns_name: str   # _dmarc.domain
    dns_value: str  # v=DMARC1; p=...; adkim=r; aspf=r
    policy: str


def dmarc_record(domain: Domain) -> DMARCRecord:
    """
    Record for one domain.

    pct is only written for partial enforcement (1-99).
    Alignment is always relaxed for DKIM and SPF.
    """
    policy = domain.dmarc_policy or DEFAULT_POLICY

    parts = ["v=DMARC1", f"p={policy}"]
    if 0 < domain.dmarc_percentage < 100:
        parts.append(f"pct={domain.dmarc_percentage}")
    if domain.dmarc_rua:
        parts.append(f"rua=mailto:{domain.dmarc_rua}")
    if domain.dmarc_ruf:
        parts.append(f"ruf=mailto:{domain.dmarc_ruf}")
    parts.extend(["adkim=r", "aspf=r"])

    return DMARCRecord(
        domain=domain.name,
        dns_name=f"_dmarc.{domain.name}",
        dns_value="; ".join(parts),
        policy=policy,
    )


def list_dmarc_records(snapshot: Snapshot) -> List[DMARCRecord]:
    """One record per named domain, ordered by domain name."""
    return [dmarc_record(d) for d in snapshot.sorted_domains() if d.name]
