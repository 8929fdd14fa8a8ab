"""Battery-capable interface shared by batteries and composite sources."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EnergyConsumer(Protocol):
    """A device drawing current from an :class:`EnergyReservoir`."""

    name: str

    def get_current_a(self) -> float: ...

    def record_consumption(self, joules: float) -> None: ...

    def handle_energy_depletion(self) -> None: ...

    def handle_energy_recharged(self) -> None: ...


@runtime_checkable
class EnergyReservoir(Protocol):
    """Anything a device can draw from and a harvester can charge.

    Energies are in joules, voltages in volts.  ``add_energy`` returns the
    amount actually accepted after the capacity clamp.
    """

    def add_energy(self, joules: float) -> float: ...

    def get_remaining_energy(self) -> float: ...

    def get_total_energy(self) -> float: ...

    def get_supply_voltage(self) -> float: ...

    def update_energy_source(self) -> None: ...

    def add_device(self, device: EnergyConsumer) -> None: ...
