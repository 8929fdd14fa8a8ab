"""End-to-end tests for the UAV + satellite scenario and status monitor."""

from dataclasses import replace

import pytest

from leo_energy.config import load_scenario
from leo_energy.core.battery import LiIonBattery, LiIonBatteryParams
from leo_energy.core.clock import SimulationClock
from leo_energy.core.composite import CompositeEnergySource
from leo_energy.core.monitor import EnergyMonitor
from leo_energy.core.policy import IlluminationCyclePolicy
from leo_energy.scenario import FleetConfig, LoadProfile, ScenarioConfig, build_scenario

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_config(duration_s: float = 60.0) -> ScenarioConfig:
    battery = LiIonBatteryParams(capacity_j=5000.0, initial_energy_j=2500.0)
    load = LoadProfile(
        active_current_a=1.0, idle_current_a=0.0, start_s=10.0, end_s=40.0
    )
    return ScenarioConfig(
        duration_s=duration_s,
        monitor_interval_s=20.0,
        fleets=(
            FleetConfig(name="uav", count=2, battery=battery, load=load),
            FleetConfig(
                name="sat",
                count=1,
                battery=battery,
                load=load,
                harvest=IlluminationCyclePolicy(
                    panel_area_m2=0.1,
                    panel_efficiency=0.3,
                    solar_constant_wm2=1361.0,
                    illumination_s=30.0,
                    eclipse_s=30.0,
                ),
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Scenario
# ---------------------------------------------------------------------------


def test_scenario_builds_all_nodes() -> None:
    scenario = build_scenario(_sample_config())
    names = [node.name for node in scenario.nodes]
    assert names == ["uav-0", "uav-1", "sat-0"]
    assert scenario.nodes[0].composite is None
    assert scenario.nodes[2].composite is not None
    assert scenario.nodes[2].source is scenario.nodes[2].composite


def test_scenario_run_summary() -> None:
    """Satellites must end with more energy than UAVs under the same load."""
    scenario = build_scenario(_sample_config())
    summary = scenario.run()

    assert list(summary["node"]) == ["uav-0", "uav-1", "sat-0"]
    uav = summary[summary["fleet"] == "uav"].iloc[0]
    sat = summary[summary["fleet"] == "sat"].iloc[0]
    assert uav["remaining_j"] < 2500.0
    assert uav["consumed_j"] > 0.0
    assert sat["harvested_j"] == pytest.approx(1361.0 * 0.1 * 0.3 * 30.0)
    assert sat["remaining_j"] > uav["remaining_j"]
    assert (summary["remaining_j"] <= summary["capacity_j"]).all()


def test_scenario_teardown_leaves_no_events() -> None:
    scenario = build_scenario(_sample_config())
    scenario.run()
    assert scenario.clock.pending_count == 0


def test_scenario_traces_sample_harvesting_nodes() -> None:
    scenario = build_scenario(_sample_config())
    scenario.run()
    traces = scenario.traces()
    assert set(traces["node"]) == {"sat-0"}
    assert list(traces["time_s"]) == [0.0, 20.0, 40.0]


def test_bundled_scenario_runs() -> None:
    config = replace(load_scenario(), duration_s=120.0)
    summary = build_scenario(config).run()
    assert len(summary) == 12
    assert (summary["remaining_j"] >= 0.0).all()
    sats = summary[summary["fleet"] == "satellite"]
    assert (sats["harvested_j"] > 0.0).all()


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------


def test_monitor_frame_columns_and_stop() -> None:
    clock = SimulationClock()
    battery = LiIonBattery(clock, LiIonBatteryParams(capacity_j=7200.0))
    monitor = EnergyMonitor(clock, battery, label="sat-0", interval_s=5.0)
    monitor.start()
    clock.run(until=12.0)
    monitor.stop()
    clock.run(until=30.0)

    frame = monitor.to_frame()
    assert list(frame.columns) == [
        "time_s",
        "voltage_v",
        "remaining_j",
        "remaining_wh",
        "soc",
    ]
    assert list(frame["time_s"]) == [0.0, 5.0, 10.0]
    assert frame["remaining_wh"].iloc[0] == pytest.approx(2.0)
    assert frame["soc"].iloc[0] == pytest.approx(1.0)


def test_monitor_rejects_bad_interval() -> None:
    clock = SimulationClock()
    battery = LiIonBattery(clock)
    with pytest.raises(ValueError, match="interval_s"):
        EnergyMonitor(clock, battery, label="sat-0", interval_s=0.0)


def test_monitor_soc_through_composite() -> None:
    """State of charge comes from the reservoir interface, not the battery type."""
    clock = SimulationClock()
    source = CompositeEnergySource(clock, name="sat-0")
    monitor = EnergyMonitor(clock, source, label="sat-0")
    assert monitor.sample()["soc"] == 0.0

    source.attach_battery(
        LiIonBattery(
            clock, LiIonBatteryParams(capacity_j=4000.0, initial_energy_j=1000.0)
        )
    )
    assert monitor.sample()["soc"] == pytest.approx(0.25)
