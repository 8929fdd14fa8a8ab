"""Discrete-event simulation clock for the LEO energy engine.

The clock wraps a :class:`simpy.Environment` and exposes callback-style
scheduling with cancellable handles.  Every callback runs on the single
simulation thread in timestamp order; callbacks sharing a timestamp fire
in the order they were scheduled.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import simpy

logger = logging.getLogger(__name__)


class EventHandle:
    """Cancellable reference to a scheduled callback.

    Attributes:
        time: Absolute simulation time at which the callback is due.
    """

    __slots__ = ("time", "_callback", "_args", "_clock", "_cancelled", "_fired")

    def __init__(
        self,
        clock: SimulationClock,
        time: float,
        callback: Callable[..., Any],
        args: tuple[Any, ...],
    ) -> None:
        self.time: float = time
        self._callback = callback
        self._args = args
        self._clock = clock
        self._cancelled: bool = False
        self._fired: bool = False

    @property
    def is_running(self) -> bool:
        """``True`` while the callback is still pending."""
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        """Prevent the callback from firing.  Cancelling twice is harmless."""
        if self.is_running:
            self._cancelled = True
            self._clock._forget(self)

    def _fire(self, _event: simpy.Event) -> None:
        if not self.is_running:
            return
        self._fired = True
        self._clock._forget(self)
        self._callback(*self._args)

    def __repr__(self) -> str:
        name = getattr(self._callback, "__qualname__", repr(self._callback))
        state = "pending" if self.is_running else "done"
        return f"EventHandle(time={self.time!r}, callback={name}, {state})"


class SimulationClock:
    """Single-threaded event scheduler backed by SimPy.

    Args:
        initial_time: Simulation time at construction (seconds).
    """

    def __init__(self, initial_time: float = 0.0) -> None:
        self._env = simpy.Environment(initial_time=initial_time)
        self._pending: set[EventHandle] = set()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def now(self) -> float:
        """Return the current simulation time in seconds."""
        return float(self._env.now)

    @property
    def pending_count(self) -> int:
        """Number of callbacks that are scheduled and not yet cancelled."""
        return len(self._pending)

    def is_running(self, handle: EventHandle | None) -> bool:
        """Return ``True`` if *handle* refers to a pending callback."""
        return handle is not None and handle.is_running

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule_after(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> EventHandle:
        """Schedule *callback* to run *delay* seconds from now.

        Raises:
            ValueError: If delay is negative.
        """
        if delay < 0.0:
            raise ValueError(f"delay must be >= 0, got {delay}.")
        handle = EventHandle(self, self.now() + delay, callback, args)
        timeout = self._env.timeout(delay)
        timeout.callbacks.append(handle._fire)
        self._pending.add(handle)
        return handle

    def schedule_at(
        self, time: float, callback: Callable[..., Any], *args: Any
    ) -> EventHandle:
        """Schedule *callback* at absolute simulation time *time*.

        Raises:
            ValueError: If time lies in the past.
        """
        now = self.now()
        if time < now:
            raise ValueError(f"cannot schedule at t={time} before now (t={now}).")
        handle = self.schedule_after(time - now, callback, *args)
        # Keep the exact requested timestamp; the delay round-trip may lose an ulp.
        handle.time = time
        return handle

    def schedule_now(self, callback: Callable[..., Any], *args: Any) -> EventHandle:
        """Schedule *callback* at the current time, after already-queued events."""
        return self.schedule_after(0.0, callback, *args)

    def cancel(self, handle: EventHandle | None) -> None:
        """Cancel *handle* if it is still pending."""
        if handle is not None:
            handle.cancel()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, until: float) -> None:
        """Process events with timestamps strictly before *until*.

        Events scheduled exactly at *until* stay pending.  Exceptions raised
        by callbacks propagate to the caller.

        Raises:
            ValueError: If until is not later than the current time.
        """
        if until <= self.now():
            raise ValueError(
                f"until ({until}) must be later than the current time ({self.now()})."
            )
        logger.debug("Running simulation from t=%.3fs to t=%.3fs", self.now(), until)
        self._env.run(until=until)

    def destroy(self) -> None:
        """Cancel every pending callback (simulation teardown)."""
        count = len(self._pending)
        for handle in list(self._pending):
            handle.cancel()
        if count:
            logger.debug("Cancelled %d pending events at t=%.3fs", count, self.now())

    def _forget(self, handle: EventHandle) -> None:
        self._pending.discard(handle)
