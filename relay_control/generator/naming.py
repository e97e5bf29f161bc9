# relay_control/generator/naming.py
"""Identifiers shared by every generated artifact. Change them here only."""


def source_name(domain: str, local_part: str) -> str:
    """Egress source for one sender identity, e.g. "example.com:info"."""
    return f"{domain}:{local_part}"


def pool_name(domain: str, local_part: str) -> str:
    """Egress pool / tenant for one sender identity, e.g. "example.com-info"."""
    return f"{domain}-{local_part}"


def tenant_key(domain: str, local_part: str) -> str:
    """Key of the tenant's record in queues.toml."""
    return f"tenant:{pool_name(domain, local_part)}"
