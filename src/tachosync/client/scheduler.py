"""Scheduler for automatic sync cycles.

This module provides:
- ScheduleState: Active trigger plus arm/firing times of the periodic timer
- SyncScheduler: Trigger modes, periodic timer and wake-from-sleep
  reconciliation

Trigger modes:
- "" (manual): no timer
- application_start: one cycle when the mode is applied
- 1H / 12H / 24H: one cycle per period

After the host resumes from sleep the periodic timer is no longer
trusted. handle_resume() either runs the missed cycle once and re-arms a
full period, or re-arms a one-shot for the remaining time, after which
the normal interval takes over again.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from tachosync.core.types import ScheduleTrigger, TriggerReason

logger = logging.getLogger(__name__)

PERIODIC_JOB_ID = "periodic_sync"
RESUME_JOB_ID = "resume_sync"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class ScheduleState:
    """Runtime state of the active trigger.

    Attributes:
        trigger: Active trigger mode.
        period: Interval of the periodic timer, None when not periodic.
        armed_at: When the periodic timer was last armed.
        last_fired_at: When a scheduled cycle last fired.
    """

    trigger: ScheduleTrigger = ScheduleTrigger.MANUAL
    period: timedelta | None = None
    armed_at: datetime | None = None
    last_fired_at: datetime | None = None

    @property
    def reference(self) -> datetime | None:
        """Start of the current period: last firing or arm time, whichever is later."""
        times = [t for t in (self.armed_at, self.last_fired_at) if t is not None]
        return max(times) if times else None

    @property
    def due_at(self) -> datetime | None:
        """When the next periodic cycle is due."""
        reference = self.reference
        if self.period is None or reference is None:
            return None
        return reference + self.period


class SyncScheduler:
    """Runs sync cycles according to the saved trigger mode.

    Usage:
        scheduler = SyncScheduler(session.sync_now, session.root_exists)
        scheduler.start()
        scheduler.apply_saved(settings.get_schedule())
        ...
        scheduler.handle_resume()  # from the resume detector
        ...
        scheduler.shutdown()
    """

    def __init__(
        self,
        run_cycle: Callable[[TriggerReason], Any],
        root_exists: Callable[[], bool] | None = None,
        clock: Callable[[], datetime] = _utcnow,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            run_cycle: Runs one sync cycle for a trigger reason.
            root_exists: Checks the sync folder still exists before a
                scheduled cycle.
            clock: Returns the current time, timezone-aware.
            scheduler: APScheduler instance (one is created if omitted).
        """
        self._run_cycle = run_cycle
        self._root_exists = root_exists or (lambda: True)
        self._clock = clock
        self._scheduler = scheduler or BackgroundScheduler(timezone=UTC)
        self._state = ScheduleState()
        self._lock = threading.RLock()

    @property
    def state(self) -> ScheduleState:
        """Copy of the current schedule state."""
        with self._lock:
            return dataclasses.replace(self._state)

    @property
    def scheduler(self) -> BackgroundScheduler:
        """Underlying APScheduler instance."""
        return self._scheduler

    # === Trigger modes ===

    def set_trigger(self, trigger: ScheduleTrigger) -> None:
        """Switch to a trigger mode, replacing any armed timer."""
        run_now = False
        with self._lock:
            self._cancel_jobs()
            self._state = ScheduleState(trigger=trigger)

            period = trigger.period
            if period is not None:
                self._arm_interval(period, self._clock())
                logger.info(f"Periodic sync armed every {period}")
            elif trigger is ScheduleTrigger.APPLICATION_START:
                run_now = True
            else:
                logger.info("Automatic sync disabled")

        if run_now:
            logger.info("Running sync on application start")
            self._run(TriggerReason.STARTUP)

    def apply_saved(self, trigger: ScheduleTrigger) -> None:
        """Restore the trigger saved by a previous run."""
        logger.info(f"Restoring saved schedule: {trigger.value or 'manual'}")
        self.set_trigger(trigger)

    def sync_now(self) -> None:
        """Run a manual cycle without touching the timer phase."""
        self._run(TriggerReason.MANUAL)

    # === Timers ===

    def _cancel_jobs(self) -> None:
        for job_id in (PERIODIC_JOB_ID, RESUME_JOB_ID):
            if self._scheduler.get_job(job_id) is not None:
                self._scheduler.remove_job(job_id)

    def _arm_interval(self, period: timedelta, now: datetime) -> None:
        """Arm the periodic job with its first firing one period from now."""
        self._state.period = period
        self._state.armed_at = now
        # Missed runs are coalesced and dropped; handle_resume() reconciles them
        self._scheduler.add_job(
            self._on_periodic_fire,
            trigger=IntervalTrigger(
                seconds=int(period.total_seconds()),
                start_date=now + period,
                timezone=UTC,
            ),
            id=PERIODIC_JOB_ID,
            name="Periodic sync",
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )

    def _arm_one_shot(self, run_date: datetime) -> None:
        """Arm the one-shot job that bridges a resume back to the interval."""
        self._scheduler.add_job(
            self._on_resume_fire,
            trigger=DateTrigger(run_date=run_date, timezone=UTC),
            id=RESUME_JOB_ID,
            name="Resume sync",
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )

    # === Job functions ===

    def _on_periodic_fire(self) -> None:
        """Job function for the periodic timer."""
        with self._lock:
            self._state.last_fired_at = self._clock()
        self._fire(TriggerReason.SCHEDULED)

    def _on_resume_fire(self) -> None:
        """Job function for the one-shot timer armed after a resume."""
        with self._lock:
            period = self._state.period
            if period is None:
                return
            now = self._clock()
            self._state.last_fired_at = now
            self._arm_interval(period, now)
        self._fire(TriggerReason.SCHEDULED)

    def _fire(self, reason: TriggerReason) -> None:
        if not self._root_exists():
            # The timer stays armed; the folder may come back
            logger.error("Sync folder no longer exists, skipping scheduled sync")
            return
        self._run(reason)

    def _run(self, reason: TriggerReason) -> None:
        try:
            self._run_cycle(reason)
        except Exception:
            logger.exception(f"Error during {reason.value} sync")

    # === Sleep/wake ===

    def handle_resume(self) -> None:
        """Reconcile the periodic timer after the host woke up.

        If at least one full period elapsed since the last firing (or arm
        time), exactly one cycle runs now and a full period is re-armed.
        Otherwise a one-shot timer fires after the remaining time.
        """
        with self._lock:
            period = self._state.period
            reference = self._state.reference
            if period is None or reference is None:
                logger.debug("Resume detected, no periodic sync armed")
                return

            now = self._clock()
            elapsed = now - reference
            self._cancel_jobs()

            if elapsed < period:
                remaining = period - elapsed
                self._arm_one_shot(now + remaining)
                logger.info(f"Resume detected, next sync in {remaining}")
                return

            logger.info(f"Resume detected, missed sync ({elapsed} since last), running now")
            self._state.last_fired_at = now
            self._arm_interval(period, now)

        self._fire(TriggerReason.RESUME)

    # === Lifecycle ===

    def start(self) -> None:
        """Start the scheduler thread."""
        if self._scheduler.running:
            return
        self._scheduler.start()
        logger.info("Sync scheduler started")

    def shutdown(self) -> None:
        """Cancel timers, clear the state and stop the scheduler thread."""
        with self._lock:
            self._cancel_jobs()
            self._state = ScheduleState()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Sync scheduler stopped")
