# relay_control/warmup/scheduler.py
"""Daily warmup pass - advances sender rates and re-applies the policy."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from relay_control.core.errors import RepositoryError
from relay_control.core.models import ApplyResult
from relay_control.core.repository import ConfigRepository
from relay_control.core.warmup import WarmupStep, advance_warmup, sender_rate
from relay_control.reconciler.reconciler import Reconciler

logger = logging.getLogger(__name__)


@dataclass
class WarmupReport:
    """Outcome of one daily pass."""

    steps: Dict[WarmupStep, int] = field(default_factory=dict)
    failed: int = 0
    rate_changes: int = 0
    applied: bool = False
    apply_result: Optional[ApplyResult] = None

    @property
    def rate_changed(self) -> bool:
        return self.rate_changes > 0


class WarmupScheduler:
    """
    Walks every sender once per pass.

    - Cold start (no timestamp): stamp now, keep the rate
    - 24h elapsed: advance a day, or disable warmup once the plan is done
    - Effective rate differs from before the step: run the reconciler
      once at the end of the pass (a day 0 -> 1 step keeps the first rate)

    Failure to persist one sender is logged and the pass continues.
    Errors from the reconciler propagate to the caller.
    """

    def __init__(
        self,
        repository: ConfigRepository,
        reconciler: Reconciler,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repo = repository
        self._reconciler = reconciler
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def process_daily_warmup(self, now: Optional[datetime] = None) -> WarmupReport:
        now = now or self._clock()
        steps = Counter()
        failed = 0
        rate_changes = 0

        for domain in self._repo.list_domains():
            for sender in domain.senders:
                step, updated = advance_warmup(sender, now)

                if step in (WarmupStep.SKIPPED, WarmupStep.WAITING):
                    steps[step] += 1
                    continue

                try:
                    self._repo.update_sender(updated)
                except RepositoryError as e:
                    failed += 1
                    logger.error(f"[warmup] failed to persist {sender.email}: {e}")
                    continue

                steps[step] += 1
                if sender_rate(updated) != sender_rate(sender):
                    rate_changes += 1

                if step is WarmupStep.ADVANCED:
                    logger.info(
                        f"[warmup] {sender.email} advanced to day {updated.warmup_day} "
                        f"({updated.warmup_plan.value})"
                    )
                elif step is WarmupStep.COMPLETED:
                    logger.info(f"[warmup] ✅ {sender.email} completed warmup, now unlimited")
                else:
                    logger.info(f"[warmup] {sender.email} warmup clock started")

        report = WarmupReport(steps=dict(steps), failed=failed, rate_changes=rate_changes)

        if report.rate_changed:
            logger.info("[warmup] rates changed, applying policy")
            report.apply_result = self._reconciler.apply()
            report.applied = True
        else:
            logger.debug("[warmup] no rate changes this pass")

        return report
