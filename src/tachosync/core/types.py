"""Shared types for tachosync.

This module defines the enums used by the sync engine, the scheduler and
the command-line front-end.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum


class SyncStatus(str, Enum):
    """Per-file status reported to the front-end.

    Values are the exact strings displayed to the user.
    """

    NOT_SYNCED = "Not Synced"
    SYNCHRONIZING = "Synchronizing"
    SYNCED = "Synced"

    @property
    def is_terminal(self) -> bool:
        """Whether this status ends a file's cycle."""
        return self is not SyncStatus.SYNCHRONIZING


class ScheduleTrigger(str, Enum):
    """Persisted sync trigger mode.

    The values are stored as-is in the settings store.
    """

    MANUAL = ""
    APPLICATION_START = "application_start"
    EVERY_1H = "1H"
    EVERY_12H = "12H"
    EVERY_24H = "24H"

    @property
    def period(self) -> timedelta | None:
        """Interval between periodic cycles, None for non-periodic modes."""
        return _PERIODS.get(self)

    @classmethod
    def parse(cls, value: str | None) -> ScheduleTrigger:
        """Parse a stored trigger value, falling back to MANUAL.

        Args:
            value: Stored value (may be None or unknown).

        Returns:
            The matching trigger, or MANUAL for anything unrecognized.
        """
        if not value:
            return cls.MANUAL
        try:
            return cls(value)
        except ValueError:
            return cls.MANUAL


_PERIODS = {
    ScheduleTrigger.EVERY_1H: timedelta(hours=1),
    ScheduleTrigger.EVERY_12H: timedelta(hours=12),
    ScheduleTrigger.EVERY_24H: timedelta(hours=24),
}


class TriggerReason(str, Enum):
    """Why a sync cycle was started."""

    MANUAL = "manual"
    SCHEDULED = "scheduled"
    STARTUP = "startup"
    RESUME = "resume"
