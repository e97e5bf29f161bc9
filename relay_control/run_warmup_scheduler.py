# relay_control/run_warmup_scheduler.py
"""Warmup worker - runs the daily warmup pass."""

import logging
import signal
import sys
import time

from relay_control.config import settings
from relay_control.core.errors import ApplyError, RestartFailure, ValidationFailure
from relay_control.warmup.config import WarmupWorkerConfig
from relay_control.warmup.scheduler import WarmupScheduler

logger = logging.getLogger(__name__)


class WarmupWorker:
    """
    Warmup worker - wakes up periodically and advances sender warmup.

    Separate process that:
    - Runs one warmup pass per poll interval (daily by default)
    - Re-applies the engine policy when any rate changed
    - Keeps running after a failed pass
    """

    def __init__(self, scheduler: WarmupScheduler, config: WarmupWorkerConfig):
        self.scheduler = scheduler
        self.config = config
        self._stop_requested = False

        logger.info("Warmup Worker initialized")
        logger.info(f"Poll interval: {config.poll_interval_seconds}s")

    def start(self):
        """Start the warmup worker loop."""
        logger.info("=" * 80)
        logger.info("WARMUP WORKER STARTED")
        logger.info("=" * 80)

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        while not self._stop_requested:
            self.run_once()
            self._sleep()

        logger.info("Warmup Worker stopped")

    def stop(self):
        self._stop_requested = True

    def run_once(self):
        """Single warmup cycle. Never raises."""
        try:
            report = self.scheduler.process_daily_warmup()
            counts = {step.value: n for step, n in report.steps.items()}
            logger.info(
                f"[warmup] pass done: {counts} "
                f"failed={report.failed} applied={report.applied}"
            )
            return report
        except RestartFailure as e:
            logger.critical(f"[warmup] policy valid but engine restart failed: {e}")
        except ValidationFailure as e:
            logger.error(f"[warmup] new policy rejected by engine, not restarted: {e}")
        except ApplyError as e:
            logger.error(f"[warmup] apply aborted: {e}")
        except Exception as e:
            logger.error(f"Error in warmup cycle: {e}", exc_info=True)
        return None

    def _sleep(self):
        remaining = self.config.poll_interval_seconds
        while remaining > 0 and not self._stop_requested:
            step = min(self.config.sleep_slice_seconds, remaining)
            time.sleep(step)
            remaining -= step

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, stopping...")
        self._stop_requested = True


def main():
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    from relay_control.container import warmup_scheduler

    worker = WarmupWorker(
        scheduler=warmup_scheduler,
        config=WarmupWorkerConfig(
            poll_interval_seconds=settings.warmup_poll_interval_seconds
        ),
    )

    try:
        worker.start()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
