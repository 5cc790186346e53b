"""
Round timer scheduling.

The quiz engine only needs "call me every N seconds until I cancel". The
interactive CLI has no background thread: it fires its ManualTimer before
each prompt, and the tests fire it whenever they want a tick.
"""

from abc import ABC, abstractmethod
from typing import Callable


class TimerHandle:
    """A scheduled repeating callback. cancel() is idempotent."""

    def __init__(self, interval_s: float, callback: Callable[[], None]):
        self.interval_s = interval_s
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class TimerService(ABC):
    """Schedules repeating callbacks for the round countdown."""

    @abstractmethod
    def schedule_repeating(
        self, interval_s: float, callback: Callable[[], None]
    ) -> TimerHandle:
        """Call `callback` every `interval_s` seconds until the handle is cancelled."""
        pass


class ManualTimer(TimerService):
    """Timer whose callbacks run only when fire() is called."""

    def __init__(self):
        self.handles: list[TimerHandle] = []

    def schedule_repeating(
        self, interval_s: float, callback: Callable[[], None]
    ) -> TimerHandle:
        self.handles = self.active
        handle = TimerHandle(interval_s, callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> list[TimerHandle]:
        return [h for h in self.handles if not h.cancelled]

    def fire(self) -> int:
        """Run every active callback once. Returns how many ran."""
        self.handles = self.active
        fired = 0
        for handle in list(self.handles):
            # a callback may cancel later handles
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        return fired
