# relay_control/generator/toml_files.py
"""TOML data files loaded by the bootstrap policy."""

from pathlib import Path
from typing import Iterator, List, Tuple

from relay_control.core.errors import GenerationError
from relay_control.core.models import Domain, Sender, Snapshot
from relay_control.core.warmup import sender_rate
from relay_control.dkim.records import dkim_key_paths
from relay_control.generator.naming import pool_name, source_name, tenant_key

GENERATED_HEADER = "# Generated by relay-control from the database. Changes are overwritten on apply."

DKIM_SIGNED_HEADERS = ("From", "To", "Subject", "Date", "Message-ID", "List-Unsubscribe")

QUEUE_RETRY_INTERVAL = "1m"
QUEUE_MAX_AGE = "3d"


# ============================================
# HELPERS
# ============================================

def toml_str(value: str) -> str:
    """Render a TOML basic string."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _banner(title: str) -> List[str]:
    return [
        "# ========================================",
        f"# {title}",
        "# ========================================",
        "",
    ]


def _render(lines: List[str]) -> str:
    return "\n".join([GENERATED_HEADER, ""] + lines).rstrip("\n") + "\n"


def require_domain(domain: Domain) -> None:
    if not domain.name:
        raise GenerationError(f"domain {domain.id} has no name")


def sender_groups(snapshot: Snapshot) -> Iterator[Tuple[Domain, List[Sender]]]:
    """
    Domains that have senders, by name, each with its senders by local part.
    """
    for domain in snapshot.sorted_domains():
        require_domain(domain)
        senders = sorted(domain.senders, key=lambda s: s.local_part)
        for sender in senders:
            if not sender.local_part:
                raise GenerationError(
                    f"sender {sender.id} of {domain.name} has no local part"
                )
        if senders:
            yield domain, senders


# ============================================
# sources.toml
# ============================================

def generate_sources(snapshot: Snapshot) -> str:
    """One egress source per sender identity."""
    lines = []

    for domain, senders in sender_groups(snapshot):
        lines += _banner(f"{domain.name} Sources")

        for sender in senders:
            lines.append(f"[{toml_str(source_name(domain.name, sender.local_part))}]")
            if sender.ip:
                lines.append(f"source_address = {toml_str(sender.ip)}")
            lines.append(f"ehlo_domain = {toml_str(f'{sender.local_part}.{domain.name}')}")
            lines.append("")

    return _render(lines)


# ============================================
# queues.toml
# ============================================

def generate_queues(snapshot: Snapshot) -> str:
    """One tenant queue per sender identity, rate limited while warming up."""
    lines = []

    for domain, senders in sender_groups(snapshot):
        lines += _banner(f"{domain.name} Tenants")

        for sender in senders:
            lines.append(f"[{toml_str(tenant_key(domain.name, sender.local_part))}]")
            lines.append(f"egress_pool = {toml_str(pool_name(domain.name, sender.local_part))}")
            lines.append(f"retry_interval = {toml_str(QUEUE_RETRY_INTERVAL)}")
            lines.append(f"max_age = {toml_str(QUEUE_MAX_AGE)}")

            rate = sender_rate(sender)
            if rate:
                lines.append(f"max_message_rate = {toml_str(rate)}")
            lines.append("")

    return _render(lines)


# ============================================
# listener_domains.toml
# ============================================

def generate_listener_domains(snapshot: Snapshot) -> str:
    """Every managed domain is accepted for relay."""
    lines = []

    for domain in snapshot.sorted_domains():
        require_domain(domain)
        lines.append(f"[{toml_str(domain.name)}]")
        lines.append("relay_to = true")
        lines.append("log_oob = true")
        lines.append("log_arf = true")
        lines.append("")

    return _render(lines)


# ============================================
# dkim_data.toml
# ============================================

def generate_dkim_data(snapshot: Snapshot, dkim_dir: Path) -> str:
    """Signing policy per sender; selector is the local part."""
    headers = ", ".join(toml_str(h) for h in DKIM_SIGNED_HEADERS)
    lines = []

    for domain, senders in sender_groups(snapshot):
        quoted_domain = toml_str(domain.name)
        lines += _banner(f"{domain.name} DKIM")

        lines.append(f"[domain.{quoted_domain}]")
        lines.append(f"selector = {toml_str('default')}")
        # no X- headers: relays rewrite them, which would break the signature
        lines.append(f"headers = [{headers}]")
        lines.append("")

        for sender in senders:
            key_path, _ = dkim_key_paths(dkim_dir, domain.name, sender.local_part)
            lines.append(f"[[domain.{quoted_domain}.policy]]")
            lines.append(f"selector = {toml_str(sender.local_part)}")
            lines.append(f"filename = {toml_str(str(key_path))}")
            lines.append(f"match_sender = {toml_str(sender.email)}")
            lines.append("")

    return _render(lines)
