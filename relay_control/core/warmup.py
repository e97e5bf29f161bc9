"""Warmup rate rules - pure functions over Sender state."""

from dataclasses import replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Tuple

from relay_control.core.models import Sender

WARMUP_STEP_INTERVAL = timedelta(hours=24)


class WarmupStep(Enum):
    """What one daily pass did to a sender."""

    SKIPPED = "SKIPPED"      # warmup disabled
    WAITING = "WAITING"      # less than 24h since last step
    STAMPED = "STAMPED"      # cold start, timestamp recorded, rate unchanged
    ADVANCED = "ADVANCED"    # moved to the next day of the plan
    COMPLETED = "COMPLETED"  # plan exhausted, warmup disabled


def sender_rate(sender: Sender) -> str:
    """
    Current max message rate for a sender, e.g. "100/hr".

    Empty string means no limit: warmup disabled, or the day is past the
    end of the plan.
    """
    if not sender.warmup_enabled:
        return ""

    rates = sender.warmup_plan.rates
    day_index = max(sender.warmup_day - 1, 0)
    if day_index >= len(rates):
        return ""
    return rates[day_index]


def advance_warmup(sender: Sender, now: datetime) -> Tuple[WarmupStep, Sender]:
    """
    Apply one daily warmup pass to a sender.

    Returns the step taken and the (possibly) updated sender.
    """
    if not sender.warmup_enabled:
        return WarmupStep.SKIPPED, sender

    if sender.warmup_last_update is None:
        return WarmupStep.STAMPED, replace(sender, warmup_last_update=now)

    if now - sender.warmup_last_update < WARMUP_STEP_INTERVAL:
        return WarmupStep.WAITING, sender

    if sender.warmup_day >= len(sender.warmup_plan.rates):
        return WarmupStep.COMPLETED, replace(sender, warmup_enabled=False)

    return WarmupStep.ADVANCED, replace(
        sender,
        warmup_day=sender.warmup_day + 1,
        warmup_last_update=now,
    )
