"""Core simulation modules for the LEO energy engine."""

from leo_energy.core.battery import LiIonBattery, LiIonBatteryParams
from leo_energy.core.clock import EventHandle, SimulationClock
from leo_energy.core.composite import CompositeEnergySource
from leo_energy.core.device import DeviceLoad
from leo_energy.core.illumination import IlluminationPhase, IlluminationStateMachine
from leo_energy.core.monitor import EnergyMonitor
from leo_energy.core.policy import (
    FixedWindowPolicy,
    HarvestPolicy,
    HarvestPolicyConfig,
    IlluminationCyclePolicy,
)
from leo_energy.core.reservoir import EnergyConsumer, EnergyReservoir
from leo_energy.core.scheduler import HarvestScheduler

__all__ = [
    "CompositeEnergySource",
    "DeviceLoad",
    "EnergyConsumer",
    "EnergyMonitor",
    "EnergyReservoir",
    "EventHandle",
    "FixedWindowPolicy",
    "HarvestPolicy",
    "HarvestPolicyConfig",
    "HarvestScheduler",
    "IlluminationCyclePolicy",
    "IlluminationPhase",
    "IlluminationStateMachine",
    "LiIonBattery",
    "LiIonBatteryParams",
    "SimulationClock",
]
