"""Core domain models (settings, domains, senders, apply results)."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4


# ============================================
# ENUMS
# ============================================

class WarmupPlan(Enum):
    """Named warmup schedules a sender can be placed on."""

    CONSERVATIVE = "conservative"
    STANDARD = "standard"
    AGGRESSIVE = "aggressive"

    @property
    def rates(self) -> Tuple[str, ...]:
        """Rate per warmup day (day 1 = index 0)."""
        return WARMUP_SCHEDULES[self]


WARMUP_SCHEDULES: Dict[WarmupPlan, Tuple[str, ...]] = {
    WarmupPlan.CONSERVATIVE: (
        "10/hr", "20/hr", "40/hr", "80/hr", "150/hr",
        "300/hr", "600/hr", "1000/hr", "2000/hr", "4000/hr",
    ),
    WarmupPlan.STANDARD: (
        "25/hr", "50/hr", "100/hr", "200/hr", "400/hr",
        "800/hr", "1600/hr", "3200/hr", "6400/hr", "12000/hr",
    ),
    WarmupPlan.AGGRESSIVE: (
        "50/hr", "100/hr", "250/hr", "500/hr", "1000/hr",
        "2500/hr", "5000/hr", "10000/hr", "20000/hr",
    ),
}


class ArtifactKind(Enum):
    """Generated policy files, valued by their file name."""

    SOURCES = "sources.toml"
    QUEUES = "queues.toml"
    LISTENER_DOMAINS = "listener_domains.toml"
    DKIM_DATA = "dkim_data.toml"
    INIT_LUA = "init.lua"


# The bootstrap policy goes last: the validator reads it, and it loads the others.
WRITE_ORDER: Tuple[ArtifactKind, ...] = (
    ArtifactKind.SOURCES,
    ArtifactKind.QUEUES,
    ArtifactKind.LISTENER_DOMAINS,
    ArtifactKind.DKIM_DATA,
    ArtifactKind.INIT_LUA,
)


class ApplyState(Enum):
    """Apply pipeline state machine."""

    START = "START"
    SNAPSHOTTING = "SNAPSHOTTING"
    GENERATING = "GENERATING"
    WRITING = "WRITING"
    VALIDATING = "VALIDATING"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RESTARTING = "RESTARTING"
    RESTART_FAILED = "RESTART_FAILED"
    APPLIED = "APPLIED"
    ABORTED = "ABORTED"


TERMINAL_STATES = frozenset({
    ApplyState.VALIDATION_FAILED,
    ApplyState.RESTART_FAILED,
    ApplyState.APPLIED,
    ApplyState.ABORTED,
})


# ============================================
# CONFIGURATION MODEL
# ============================================

@dataclass(frozen=True)
class AppSettings:
    """Global settings record (zero or one per installation)."""

    id: Optional[int] = None

    main_hostname: str = ""
    main_server_ip: str = ""
    relay_ips: str = ""  # comma separated
    smtp_listen_addr: str = ""

    ai_provider: str = ""
    ai_api_key: str = ""

    webhook_url: str = ""
    webhook_enabled: bool = False

    def relay_hosts(self) -> List[str]:
        """Loopback first, then each configured relay IP once."""
        hosts = ["127.0.0.1"]
        for part in self.relay_ips.split(","):
            part = part.strip()
            if part and part not in hosts:
                hosts.append(part)
        return hosts


@dataclass(frozen=True)
class Sender:
    """A sender identity (local part) under a domain."""

    id: Optional[int] = None
    domain_id: Optional[int] = None

    local_part: str = ""
    email: str = ""
    ip: str = ""

    # Warmup
    warmup_enabled: bool = False
    warmup_plan: WarmupPlan = WarmupPlan.STANDARD
    warmup_day: int = 0
    warmup_last_update: Optional[datetime] = None


@dataclass(frozen=True)
class Domain:
    """A sending domain with its sender identities."""

    id: Optional[int] = None
    name: str = ""

    mail_host: str = ""
    bounce_host: str = ""

    # DMARC
    dmarc_policy: str = ""
    dmarc_rua: str = ""
    dmarc_ruf: str = ""
    dmarc_percentage: int = 100

    senders: Tuple[Sender, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time view of settings + domains used as generation input."""

    settings: Optional[AppSettings]
    domains: Tuple[Domain, ...]

    def sorted_domains(self) -> List[Domain]:
        return sorted(self.domains, key=lambda d: d.name)

    def iter_senders(self):
        """Yield (domain, sender) pairs ordered by domain name then local part."""
        for domain in self.sorted_domains():
            for sender in sorted(domain.senders, key=lambda s: s.local_part):
                yield domain, sender


# ============================================
# POLICY FILES
# ============================================

@dataclass(frozen=True)
class PolicyPaths:
    """Where the engine's policy files and DKIM keys live."""

    policy_dir: Path = Path("/opt/kumomta/etc/policy")
    dkim_dir: Path = Path("/opt/kumomta/etc/dkim")

    def path_for(self, kind: ArtifactKind) -> Path:
        return self.policy_dir / kind.value

    @property
    def sources(self) -> Path:
        return self.path_for(ArtifactKind.SOURCES)

    @property
    def queues(self) -> Path:
        return self.path_for(ArtifactKind.QUEUES)

    @property
    def listener_domains(self) -> Path:
        return self.path_for(ArtifactKind.LISTENER_DOMAINS)

    @property
    def dkim_data(self) -> Path:
        return self.path_for(ArtifactKind.DKIM_DATA)

    @property
    def init_lua(self) -> Path:
        return self.path_for(ArtifactKind.INIT_LUA)

    @property
    def custom_lua(self) -> Path:
        return self.policy_dir / "custom.lua"

    @property
    def lock_file(self) -> Path:
        return self.policy_dir / ".apply.lock"


@dataclass(frozen=True)
class GeneratedArtifact:
    """Generated text for one policy file."""

    kind: ArtifactKind
    path: Path
    content: str


# ============================================
# APPLY RESULT
# ============================================

@dataclass
class ApplyResult:
    """What happened during one apply run."""

    sources_path: str
    queues_path: str
    listener_domains_path: str
    dkim_data_path: str
    init_lua_path: str

    validation_ok: bool = False
    validation_log: str = ""

    restart_ok: bool = False
    restart_log: str = ""

    run_id: UUID = field(default_factory=uuid4)
    state: ApplyState = ApplyState.START
    changed_paths: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def for_paths(cls, paths: PolicyPaths) -> "ApplyResult":
        return cls(
            sources_path=str(paths.sources),
            queues_path=str(paths.queues),
            listener_domains_path=str(paths.listener_domains),
            dkim_data_path=str(paths.dkim_data),
            init_lua_path=str(paths.init_lua),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": str(self.run_id),
            "state": self.state.value,
            "sources_path": self.sources_path,
            "queues_path": self.queues_path,
            "listener_domains_path": self.listener_domains_path,
            "dkim_data_path": self.dkim_data_path,
            "init_lua_path": self.init_lua_path,
            "validation_ok": self.validation_ok,
            "validation_log": self.validation_log,
            "restart_ok": self.restart_ok,
            "restart_log": self.restart_log,
            "changed_paths": list(self.changed_paths),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
