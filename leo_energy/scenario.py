"""UAV and satellite energy scenario.

UAVs run on a battery alone.  Satellites wrap their battery in a
:class:`CompositeEnergySource` that harvests solar energy.  Every node
carries one constant-current device that switches to a high load at
``load.start_s`` and back to idle at ``load.end_s``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pandas as pd

from leo_energy.core.battery import LiIonBattery, LiIonBatteryParams
from leo_energy.core.clock import SimulationClock
from leo_energy.core.composite import CompositeEnergySource
from leo_energy.core.device import DeviceLoad
from leo_energy.core.monitor import EnergyMonitor
from leo_energy.core.policy import HarvestPolicyConfig
from leo_energy.core.reservoir import EnergyReservoir

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoadProfile:
    """Two-level current profile for a node's device.

    Attributes:
        active_current_a: Current drawn inside ``[start_s, end_s)`` (A).
        idle_current_a: Current drawn outside it (A).
        start_s: Time the active load begins (s).
        end_s: Time the device returns to idle (s).
    """

    active_current_a: float
    idle_current_a: float = 1e-3
    start_s: float = 10.0
    end_s: float = 1701.0

    def __post_init__(self) -> None:
        """Validate load parameters."""
        if self.active_current_a < 0.0:
            raise ValueError("active_current_a must be >= 0.")
        if self.idle_current_a < 0.0:
            raise ValueError("idle_current_a must be >= 0.")
        if self.start_s < 0.0:
            raise ValueError("start_s must be >= 0.")
        if self.end_s < self.start_s:
            raise ValueError("end_s must be >= start_s.")


@dataclass(frozen=True)
class FleetConfig:
    """A group of identical nodes.

    Attributes:
        name: Fleet label, used as the node name prefix.
        count: Number of nodes (>= 0).
        battery: Battery parameters for every node.
        load: Device load profile for every node.
        harvest: Harvest policy; ``None`` for battery-only nodes.
    """

    name: str
    count: int
    battery: LiIonBatteryParams
    load: LoadProfile
    harvest: HarvestPolicyConfig | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Fleet name must not be empty.")
        if self.count < 0:
            raise ValueError("count must be >= 0.")


@dataclass(frozen=True)
class ScenarioConfig:
    """Complete scene description.

    Attributes:
        duration_s: Simulated horizon (s, > 0).
        monitor_interval_s: Status sampling period for harvesting nodes.
        fleets: Node groups to build.
    """

    duration_s: float
    monitor_interval_s: float = 20.0
    fleets: tuple[FleetConfig, ...] = ()

    def __post_init__(self) -> None:
        if self.duration_s <= 0.0:
            raise ValueError("duration_s must be > 0.")
        if self.monitor_interval_s <= 0.0:
            raise ValueError("monitor_interval_s must be > 0.")
        names = [f.name for f in self.fleets]
        if len(set(names)) != len(names):
            raise ValueError("fleet names must be unique.")


# ---------------------------------------------------------------------------
# Scene
# ---------------------------------------------------------------------------


@dataclass
class Node:
    """One simulated node and its energy components."""

    name: str
    fleet: str
    battery: LiIonBattery
    device: DeviceLoad
    source: EnergyReservoir
    composite: CompositeEnergySource | None = None
    monitor: EnergyMonitor | None = None


@dataclass
class Scenario:
    """Built scene ready to run."""

    config: ScenarioConfig
    clock: SimulationClock
    nodes: list[Node] = field(default_factory=list)

    def run(self) -> pd.DataFrame:
        """Run to ``duration_s``, tear down, and return the node summary."""
        logger.info(
            "Running %d nodes for %.1fs", len(self.nodes), self.config.duration_s
        )
        self.clock.run(until=self.config.duration_s)
        for node in self.nodes:
            node.battery.update_energy_source()
        summary = self.summary()
        self.teardown()
        return summary

    def teardown(self) -> None:
        """Cancel every pending event owned by the scene."""
        for node in self.nodes:
            if node.monitor is not None:
                node.monitor.stop()
            if node.composite is not None:
                node.composite.dispose()
            node.battery.dispose()
        self.clock.destroy()

    def summary(self) -> pd.DataFrame:
        """One row per node with its current energy state."""
        rows: list[dict[str, object]] = []
        for node in self.nodes:
            rows.append(
                {
                    "node": node.name,
                    "fleet": node.fleet,
                    "voltage_v": node.source.get_supply_voltage(),
                    "remaining_j": node.source.get_remaining_energy(),
                    "capacity_j": node.source.get_total_energy(),
                    "consumed_j": node.device.total_energy_consumption_j,
                    "harvested_j": (
                        node.composite.harvested_energy_j
                        if node.composite is not None
                        else 0.0
                    ),
                    "depleted": node.battery.depleted,
                }
            )
        return pd.DataFrame(rows)

    def traces(self) -> pd.DataFrame:
        """Concatenated monitor samples of every monitored node."""
        frames = [
            node.monitor.to_frame().assign(node=node.name)
            for node in self.nodes
            if node.monitor is not None
        ]
        if not frames:
            return pd.DataFrame()
        return pd.concat(frames, ignore_index=True)


def build_scenario(
    config: ScenarioConfig, clock: SimulationClock | None = None
) -> Scenario:
    """Create every node of *config* and schedule its load and harvesting.

    Args:
        config: Scene description.
        clock: Clock to build on.  A fresh one starting at t=0 by default.

    Returns:
        A :class:`Scenario` whose events are scheduled but not yet run.
    """
    clock = clock or SimulationClock()
    scenario = Scenario(config=config, clock=clock)

    for fleet in config.fleets:
        for idx in range(fleet.count):
            name = f"{fleet.name}-{idx}"
            battery = LiIonBattery(clock, fleet.battery)
            composite: CompositeEnergySource | None = None
            monitor: EnergyMonitor | None = None
            source: EnergyReservoir = battery

            if fleet.harvest is not None:
                composite = CompositeEnergySource(clock, name=name)
                composite.attach_battery(battery)
                composite.configure(fleet.harvest)
                source = composite
                monitor = EnergyMonitor(
                    clock, composite, label=name, interval_s=config.monitor_interval_s
                )

            device = DeviceLoad(
                f"{name}/device", source, current_a=fleet.load.idle_current_a
            )
            clock.schedule_at(
                fleet.load.start_s, device.set_current_a, fleet.load.active_current_a
            )
            clock.schedule_at(
                fleet.load.end_s, device.set_current_a, fleet.load.idle_current_a
            )

            battery.start()
            if composite is not None:
                composite.start()
            if monitor is not None:
                monitor.start()

            scenario.nodes.append(
                Node(
                    name=name,
                    fleet=fleet.name,
                    battery=battery,
                    device=device,
                    source=source,
                    composite=composite,
                    monitor=monitor,
                )
            )

    logger.info("Built scenario with %d nodes", len(scenario.nodes))
    return scenario
