"""Detection of host resume from sleep.

This module provides:
- ResumeDetector: Background thread that notices suspend gaps

The detector ticks every few seconds and compares how far the wall clock
moved with how far the monotonic clock moved and with the tick interval.
A gap larger than the threshold means the host was suspended in between.
Front-ends with access to OS power events can call notify_resume()
directly instead.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL = 10.0  # seconds
DEFAULT_THRESHOLD = 30.0  # seconds


class ResumeDetector:
    """Calls on_resume once per detected suspend gap."""

    def __init__(
        self,
        on_resume: Callable[[], None],
        check_interval: float = DEFAULT_CHECK_INTERVAL,
        threshold: float = DEFAULT_THRESHOLD,
        wall_clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the detector.

        Args:
            on_resume: Called after a suspend gap was detected.
            check_interval: Seconds between ticks.
            threshold: Smallest gap, in seconds, treated as a suspend.
            wall_clock: Wall clock source.
            monotonic: Monotonic clock source.
        """
        self._on_resume = on_resume
        self._check_interval = check_interval
        self._threshold = threshold
        self._wall_clock = wall_clock
        self._monotonic = monotonic

        self._last: tuple[float, float] | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        """Whether the detector thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the detector thread."""
        with self._lock:
            if self.running:
                logger.warning("Resume detector already running")
                return
            self._stop_event.clear()
            self._last = None
            self._check_once()
            self._thread = threading.Thread(
                target=self._run,
                name="ResumeDetector",
                daemon=True,
            )
            self._thread.start()
            logger.debug("Resume detector started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the detector thread.

        Args:
            timeout: Maximum time to wait for thread to stop
        """
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.debug("Resume detector stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self._check_interval):
            self._check_once()

    def _check_once(self) -> bool:
        """Take one sample and compare it with the previous one.

        Returns:
            True if a suspend gap was detected.
        """
        sample = (self._wall_clock(), self._monotonic())
        previous, self._last = self._last, sample
        if previous is None:
            return False

        wall_delta = sample[0] - previous[0]
        mono_delta = sample[1] - previous[1]
        # The monotonic clock stops during suspend on some platforms only
        gap = max(wall_delta - mono_delta, wall_delta - self._check_interval)
        if gap < self._threshold:
            return False

        logger.info(f"Host resume detected ({gap:.0f}s gap)")
        self.notify_resume()
        return True

    def notify_resume(self) -> None:
        """Report a resume; exceptions from the callback are logged."""
        try:
            self._on_resume()
        except Exception:
            logger.exception("Error handling host resume")
