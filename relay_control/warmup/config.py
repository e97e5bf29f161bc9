#relay_control\warmup\config.py
from dataclasses import dataclass


@dataclass(frozen=True)
class WarmupWorkerConfig:
    poll_interval_seconds: float = 24 * 60 * 60

    # Sleep in short slices so a stop signal is honoured promptly
    sleep_slice_seconds: float = 1.0
