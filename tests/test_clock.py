"""Tests for the discrete-event simulation clock."""

import pytest

from leo_energy.core.clock import SimulationClock

# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


def test_schedule_after_fires_at_offset() -> None:
    """A callback scheduled after a delay must see the clock at that time."""
    clock = SimulationClock()
    seen: list[float] = []
    clock.schedule_after(2.5, lambda: seen.append(clock.now()))
    clock.run(until=10.0)
    assert seen == [2.5]


def test_schedule_at_passes_arguments() -> None:
    clock = SimulationClock()
    seen: list[tuple[str, int]] = []
    clock.schedule_at(3.0, lambda a, b: seen.append((a, b)), "x", 7)
    clock.run(until=5.0)
    assert seen == [("x", 7)]


def test_same_timestamp_fires_in_scheduling_order() -> None:
    """Callbacks sharing a timestamp must fire FIFO."""
    clock = SimulationClock()
    order: list[str] = []
    for label in ("a", "b", "c"):
        clock.schedule_at(1.0, order.append, label)
    clock.run(until=2.0)
    assert order == ["a", "b", "c"]


def test_events_at_until_do_not_fire() -> None:
    """run(until) must stop before events scheduled exactly at *until*."""
    clock = SimulationClock()
    seen: list[float] = []
    clock.schedule_at(10.0, lambda: seen.append(clock.now()))
    clock.run(until=10.0)
    assert seen == []
    assert clock.now() == 10.0
    clock.run(until=11.0)
    assert seen == [10.0]


def test_negative_delay_rejected() -> None:
    clock = SimulationClock()
    with pytest.raises(ValueError, match="delay"):
        clock.schedule_after(-1.0, lambda: None)


def test_schedule_in_past_rejected() -> None:
    clock = SimulationClock()
    clock.run(until=5.0)
    with pytest.raises(ValueError, match="before now"):
        clock.schedule_at(4.0, lambda: None)


def test_run_until_must_advance() -> None:
    clock = SimulationClock(initial_time=3.0)
    with pytest.raises(ValueError, match="later than"):
        clock.run(until=3.0)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


def test_cancelled_callback_never_fires() -> None:
    clock = SimulationClock()
    seen: list[int] = []
    handle = clock.schedule_after(1.0, seen.append, 1)
    assert clock.is_running(handle)
    clock.cancel(handle)
    assert not clock.is_running(handle)
    clock.run(until=5.0)
    assert seen == []


def test_handle_not_running_after_fire() -> None:
    clock = SimulationClock()
    handle = clock.schedule_after(1.0, lambda: None)
    clock.run(until=2.0)
    assert not handle.is_running
    assert clock.pending_count == 0


def test_destroy_cancels_everything() -> None:
    """destroy() must leave no pending callback behind."""
    clock = SimulationClock()
    seen: list[int] = []
    for i in range(5):
        clock.schedule_after(float(i + 1), seen.append, i)
    assert clock.pending_count == 5
    clock.destroy()
    assert clock.pending_count == 0
    clock.run(until=10.0)
    assert seen == []


def test_callback_exception_propagates() -> None:
    clock = SimulationClock()

    def boom() -> None:
        raise RuntimeError("boom")

    clock.schedule_after(1.0, boom)
    with pytest.raises(RuntimeError, match="boom"):
        clock.run(until=2.0)
