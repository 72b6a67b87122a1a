"""Cancellable delayed calls used for reconnect attempts."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol


class ScheduledCall(Protocol):
    def cancel(self) -> None:
        """Prevent the call from running if it has not started yet."""


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledCall:
        """Run ``callback`` once after ``delay_s`` seconds."""


class TimerScheduler:
    """Runs each delayed call on its own daemon ``threading.Timer``."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer
