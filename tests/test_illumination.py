"""Tests for the illumination state machine and harvest scheduler."""

import pytest

from leo_energy.core.clock import SimulationClock
from leo_energy.core.illumination import IlluminationPhase, IlluminationStateMachine
from leo_energy.core.policy import FixedWindowPolicy, IlluminationCyclePolicy
from leo_energy.core.scheduler import HarvestScheduler


class _Sink:
    """Records every amount offered and accepts all of it."""

    def __init__(self) -> None:
        self.calls: list[tuple[float, float]] = []
        self._clock: SimulationClock | None = None

    def bind(self, clock: SimulationClock) -> "_Sink":
        self._clock = clock
        return self

    def __call__(self, joules: float) -> float:
        self.calls.append((self._clock.now(), joules))
        return joules


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


def test_phase_alternates_on_durations() -> None:
    clock = SimulationClock()
    machine = IlluminationStateMachine(clock, illumination_s=10.0, eclipse_s=5.0)
    machine.start()
    assert machine.phase is IlluminationPhase.ILLUMINATED
    assert machine.next_toggle_time == 10.0

    clock.run(until=10.5)
    assert not machine.is_illuminated
    assert machine.next_toggle_time == 15.0

    clock.run(until=15.5)
    assert machine.is_illuminated
    assert machine.next_toggle_time == 25.0
    assert machine.toggle_count == 2


def test_stop_cancels_toggle() -> None:
    clock = SimulationClock()
    machine = IlluminationStateMachine(clock, illumination_s=1.0, eclipse_s=1.0)
    machine.start()
    machine.stop()
    assert not machine.is_running
    clock.run(until=10.0)
    assert machine.toggle_count == 0


def test_advance_to_applies_multiple_due_toggles() -> None:
    clock = SimulationClock()
    machine = IlluminationStateMachine(clock, illumination_s=2.0, eclipse_s=1.0)
    machine.start()
    machine.advance_to(5.0)
    # Boundaries at 2 (eclipse), 3 (lit), 5 (eclipse).
    assert machine.toggle_count == 3
    assert not machine.is_illuminated
    assert machine.next_toggle_time == 6.0


def test_invalid_durations_rejected() -> None:
    with pytest.raises(ValueError, match="eclipse_s"):
        IlluminationStateMachine(SimulationClock(), illumination_s=1.0, eclipse_s=0.0)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


def test_window_ticks_only_inside_window() -> None:
    clock = SimulationClock()
    sink = _Sink().bind(clock)
    policy = FixedWindowPolicy(rate_w=2.0, window_start_s=3.0, window_end_s=6.0)
    scheduler = HarvestScheduler(clock, policy, sink)
    scheduler.start()
    clock.run(until=20.0)
    assert sink.calls == [(3.0, 2.0), (4.0, 2.0), (5.0, 2.0)]
    assert not scheduler.is_running
    assert scheduler.harvested_j == 6.0


def test_window_already_open_starts_immediately() -> None:
    clock = SimulationClock()
    clock.run(until=4.0)
    sink = _Sink().bind(clock)
    policy = FixedWindowPolicy(rate_w=1.0, window_start_s=2.0, window_end_s=6.0)
    HarvestScheduler(clock, policy, sink).start()
    clock.run(until=20.0)
    assert [t for t, _ in sink.calls] == [4.0, 5.0]


def test_window_fully_elapsed_schedules_nothing() -> None:
    clock = SimulationClock()
    clock.run(until=10.0)
    sink = _Sink().bind(clock)
    policy = FixedWindowPolicy(rate_w=1.0, window_start_s=2.0, window_end_s=6.0)
    scheduler = HarvestScheduler(clock, policy, sink)
    scheduler.start()
    assert not scheduler.is_running
    assert clock.pending_count == 0


def test_zero_rate_never_reaches_sink() -> None:
    """Zero-energy ticks must not be forwarded."""
    clock = SimulationClock()
    sink = _Sink().bind(clock)
    policy = FixedWindowPolicy(rate_w=0.0, window_start_s=0.0, window_end_s=5.0)
    scheduler = HarvestScheduler(clock, policy, sink)
    scheduler.start()
    clock.run(until=10.0)
    assert sink.calls == []
    assert scheduler.tick_count == 5


def test_cycle_harvests_only_while_illuminated() -> None:
    clock = SimulationClock()
    sink = _Sink().bind(clock)
    policy = IlluminationCyclePolicy(
        panel_area_m2=1.0,
        panel_efficiency=0.5,
        solar_constant_wm2=2.0,
        illumination_s=2.0,
        eclipse_s=2.0,
    )
    machine = IlluminationStateMachine(clock, 2.0, 2.0)
    machine.start()
    HarvestScheduler(clock, policy, sink, machine).start()
    clock.run(until=8.0)
    assert [t for t, _ in sink.calls] == [0.0, 1.0, 4.0, 5.0]


def test_toggle_resolves_before_harvest_on_same_timestamp() -> None:
    """A tick sharing a timestamp with a toggle must see the new phase.

    The tick at t=4 is queued before the toggle at t=4, so the clock fires
    it first; the scheduler must still apply the toggle before harvesting.
    """
    clock = SimulationClock()
    sink = _Sink().bind(clock)
    policy = IlluminationCyclePolicy(
        panel_area_m2=1.0,
        panel_efficiency=1.0,
        solar_constant_wm2=1.0,
        illumination_s=4.0,
        eclipse_s=4.0,
        step_s=4.0,
    )
    machine = IlluminationStateMachine(clock, 4.0, 4.0)
    HarvestScheduler(clock, policy, sink, machine).start()
    clock.schedule_now(machine.start)

    clock.run(until=4.5)

    assert sink.calls == [(0.0, 4.0)]
    assert not machine.is_illuminated
    assert machine.toggle_count == 1
    assert machine.next_toggle_time == 8.0


def test_cycle_requires_state_machine() -> None:
    with pytest.raises(ValueError, match="state machine"):
        HarvestScheduler(SimulationClock(), IlluminationCyclePolicy(), lambda j: j)


def test_stop_cancels_pending_tick() -> None:
    clock = SimulationClock()
    sink = _Sink().bind(clock)
    policy = FixedWindowPolicy(rate_w=1.0, window_start_s=0.0, window_end_s=100.0)
    scheduler = HarvestScheduler(clock, policy, sink)
    scheduler.start()
    clock.run(until=2.5)
    scheduler.stop()
    clock.run(until=50.0)
    assert len(sink.calls) == 3
