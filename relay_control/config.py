#relay_control\config.py

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from relay_control.core.models import PolicyPaths


class RelaySettings(BaseSettings):
    """Mail engine locations and apply behaviour from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Policy files
    policy_dir: Path = Path("/opt/kumomta/etc/policy")
    dkim_dir: Path = Path("/opt/kumomta/etc/dkim")
    file_mode: int = 0o644
    dir_mode: int = 0o755

    # Engine
    kumod_binary: Path = Path("/opt/kumomta/sbin/kumod")
    kumod_user: str = "kumod"
    service_name: str = "kumomta"
    systemctl_binary: str = "systemctl"

    # Timeouts (a timeout counts as failure)
    validate_timeout_seconds: float = 30.0
    restart_timeout_seconds: float = 60.0

    # Warmup worker
    warmup_poll_interval_seconds: int = 24 * 60 * 60

    @field_validator("file_mode", "dir_mode", mode="before")
    @classmethod
    def parse_octal_mode(cls, value):
        # "0644" in an env file means octal, as with chmod
        if isinstance(value, str):
            return int(value.strip(), 8)
        return value

    def policy_paths(self) -> PolicyPaths:
        return PolicyPaths(policy_dir=self.policy_dir, dkim_dir=self.dkim_dir)


settings = RelaySettings()
