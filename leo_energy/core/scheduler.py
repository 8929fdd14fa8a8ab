"""Periodic harvest scheduler.

Ticks fire at absolute times ``origin + k * step_s``.  On each tick the
scheduler decides how much energy the active policy yields for the step
starting now and forwards it to the reservoir:

- Illumination cycle: ``power_w * step_s`` while illuminated, nothing in
  eclipse.  The loop reschedules every step regardless of phase.  Any phase
  toggle due at the tick's timestamp is applied before the harvest.
- Fixed window: ``rate_w * step_s`` while ``now`` is inside the window.
  The loop stops once the next tick would reach ``window_end_s``.

The rate valid at the start of a step applies to the whole step; there is
no interpolation across a phase boundary inside a step.
"""

from __future__ import annotations

import logging
from typing import Callable

from leo_energy.core.clock import EventHandle, SimulationClock
from leo_energy.core.illumination import IlluminationStateMachine
from leo_energy.core.policy import (
    FixedWindowPolicy,
    HarvestPolicyConfig,
    IlluminationCyclePolicy,
)

logger = logging.getLogger(__name__)


class HarvestScheduler:
    """Drives periodic energy injection for one policy.

    Args:
        clock: Simulation clock.
        policy: Harvest policy configuration.
        sink: Callable receiving the energy for a tick and returning the
            amount actually accepted.
        illumination: State machine consulted in cycle mode.  Required for
            :class:`IlluminationCyclePolicy`.

    Attributes:
        tick_count: Number of ticks processed.
        harvested_j: Energy offered to the sink.
        accepted_j: Energy the sink accepted.
    """

    def __init__(
        self,
        clock: SimulationClock,
        policy: HarvestPolicyConfig,
        sink: Callable[[float], float],
        illumination: IlluminationStateMachine | None = None,
    ) -> None:
        if isinstance(policy, IlluminationCyclePolicy) and illumination is None:
            raise ValueError("illumination cycle policy requires a state machine.")
        self._clock = clock
        self.policy: HarvestPolicyConfig = policy
        self._sink = sink
        self._illumination = illumination
        self._origin: float = 0.0
        self._tick_index: int = 0
        self._tick_event: EventHandle | None = None
        self.tick_count: int = 0
        self.harvested_j: float = 0.0
        self.accepted_j: float = 0.0

    @property
    def is_running(self) -> bool:
        return self._clock.is_running(self._tick_event)

    def start(self) -> None:
        """Schedule the first tick.

        Cycle mode ticks immediately.  Window mode ticks at the window
        start, or now if the start has already passed; a window that has
        fully elapsed schedules nothing.
        """
        now = self._clock.now()
        first = now
        if isinstance(self.policy, FixedWindowPolicy):
            if now >= self.policy.window_end_s:
                logger.warning(
                    "Harvest window [%.3f, %.3f) already elapsed at t=%.3fs; "
                    "nothing scheduled",
                    self.policy.window_start_s,
                    self.policy.window_end_s,
                    now,
                )
                return
            if now > self.policy.window_start_s:
                logger.warning(
                    "Harvest window opened at t=%.3fs, before start at t=%.3fs",
                    self.policy.window_start_s,
                    now,
                )
            else:
                first = self.policy.window_start_s
        self._origin = first
        self._tick_index = 0
        self._tick_event = self._clock.schedule_at(first, self._tick)

    def stop(self) -> None:
        """Cancel the pending tick."""
        self._clock.cancel(self._tick_event)
        self._tick_event = None

    def _tick(self) -> None:
        now = self._tick_event.time
        amount = self._energy_for_step(now)
        self.tick_count += 1
        if amount > 0.0:
            accepted = self._sink(amount)
            self.harvested_j += amount
            self.accepted_j += accepted
            logger.debug(
                "Harvested %.3f J (accepted %.3f J) at t=%.3fs", amount, accepted, now
            )

        self._tick_index += 1
        next_time = self._origin + self._tick_index * self.policy.step_s
        if self._continues(next_time):
            self._tick_event = self._clock.schedule_at(next_time, self._tick)
        else:
            self._tick_event = None
            logger.debug("Harvest loop finished at t=%.3fs", now)

    def _energy_for_step(self, now: float) -> float:
        if isinstance(self.policy, IlluminationCyclePolicy):
            self._illumination.advance_to(now)
            if not self._illumination.is_illuminated:
                return 0.0
            return self.policy.energy_per_step_j
        if not self.policy.is_active(now):
            return 0.0
        return self.policy.energy_per_step_j

    def _continues(self, next_time: float) -> bool:
        if isinstance(self.policy, FixedWindowPolicy):
            return next_time < self.policy.window_end_s
        return True
