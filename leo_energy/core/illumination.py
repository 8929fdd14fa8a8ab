"""Illumination/eclipse state machine.

The machine alternates between ``ILLUMINATED`` and ``ECLIPSED``.  On
entering a phase it schedules its own toggle after that phase's duration;
there is no terminal state, so it runs until :meth:`stop` is called.  It
only tracks the phase; harvesting is done by the scheduler.
"""

from __future__ import annotations

import enum
import logging

from leo_energy.core.clock import EventHandle, SimulationClock

logger = logging.getLogger(__name__)


class IlluminationPhase(enum.Enum):
    ILLUMINATED = "illuminated"
    ECLIPSED = "eclipsed"


class IlluminationStateMachine:
    """Binary light/shadow cycle driven by the simulation clock.

    Attributes:
        illumination_s: Duration of each illuminated phase in s.
        eclipse_s: Duration of each eclipse phase in s.
        toggle_count: Number of phase changes so far.
    """

    def __init__(
        self, clock: SimulationClock, illumination_s: float, eclipse_s: float
    ) -> None:
        if illumination_s <= 0.0:
            raise ValueError("illumination_s must be > 0.")
        if eclipse_s <= 0.0:
            raise ValueError("eclipse_s must be > 0.")
        self._clock = clock
        self.illumination_s: float = illumination_s
        self.eclipse_s: float = eclipse_s
        self.phase: IlluminationPhase = IlluminationPhase.ILLUMINATED
        self.toggle_count: int = 0
        self._toggle_event: EventHandle | None = None

    @property
    def is_illuminated(self) -> bool:
        return self.phase is IlluminationPhase.ILLUMINATED

    @property
    def is_running(self) -> bool:
        return self._clock.is_running(self._toggle_event)

    @property
    def next_toggle_time(self) -> float | None:
        """Absolute time of the pending toggle, or ``None`` when stopped."""
        if not self.is_running:
            return None
        return self._toggle_event.time

    def start(self) -> None:
        """Enter the illuminated phase now and schedule the first toggle."""
        self.stop()
        self.phase = IlluminationPhase.ILLUMINATED
        self._schedule_toggle(self._clock.now())
        logger.debug("Illumination cycle started at t=%.3fs", self._clock.now())

    def stop(self) -> None:
        """Cancel the pending toggle."""
        self._clock.cancel(self._toggle_event)
        self._toggle_event = None

    def advance_to(self, now: float) -> None:
        """Apply every toggle due at or before *now* immediately.

        Lets a harvest tick landing on a phase boundary observe the new
        phase no matter which event the clock fires first.
        """
        if not self.is_running or self._toggle_event.time > now:
            return
        boundary = self._toggle_event.time
        self._toggle_event.cancel()
        while boundary <= now:
            self._flip(boundary)
            boundary += self._phase_duration()
        self._toggle_event = self._clock.schedule_at(boundary, self._on_toggle)

    def _on_toggle(self) -> None:
        boundary = self._toggle_event.time
        self._flip(boundary)
        self._schedule_toggle(boundary)

    def _flip(self, at: float) -> None:
        if self.is_illuminated:
            self.phase = IlluminationPhase.ECLIPSED
        else:
            self.phase = IlluminationPhase.ILLUMINATED
        self.toggle_count += 1
        logger.debug("Entered %s phase at t=%.3fs", self.phase.value, at)

    def _phase_duration(self) -> float:
        return self.illumination_s if self.is_illuminated else self.eclipse_s

    def _schedule_toggle(self, entered_at: float) -> None:
        # Anchored on the previous boundary so the cycle does not drift.
        self._toggle_event = self._clock.schedule_at(
            entered_at + self._phase_duration(), self._on_toggle
        )
