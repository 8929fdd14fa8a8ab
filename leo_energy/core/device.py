"""Constant-current device load drawing from an energy reservoir."""

from __future__ import annotations

import logging

from leo_energy.core.reservoir import EnergyReservoir

logger = logging.getLogger(__name__)


class DeviceLoad:
    """A device that draws a settable constant current.

    The device registers itself on *source* at construction.  Changing the
    current first settles the source's accounting so the energy used at the
    previous current is charged for the elapsed interval.

    Attributes:
        name: Label used in logs and summaries.
        total_energy_consumption_j: Energy consumed so far in J.
        depleted: ``True`` while the source reports depletion.
    """

    __slots__ = (
        "name",
        "_source",
        "_current_a",
        "total_energy_consumption_j",
        "depleted",
    )

    def __init__(self, name: str, source: EnergyReservoir, current_a: float = 0.0):
        if not name:
            raise ValueError("name must not be empty.")
        if current_a < 0.0:
            raise ValueError("current_a must be >= 0.")
        self.name: str = name
        self._source: EnergyReservoir = source
        self._current_a: float = current_a
        self.total_energy_consumption_j: float = 0.0
        self.depleted: bool = False
        source.add_device(self)

    @property
    def source(self) -> EnergyReservoir:
        return self._source

    def get_current_a(self) -> float:
        return self._current_a

    def set_current_a(self, current_a: float) -> None:
        """Switch the current draw (A, >= 0)."""
        if current_a < 0.0:
            raise ValueError("current_a must be >= 0.")
        self._source.update_energy_source()
        logger.debug(
            "%s: current %.4f A -> %.4f A", self.name, self._current_a, current_a
        )
        self._current_a = current_a

    def record_consumption(self, joules: float) -> None:
        self.total_energy_consumption_j += joules

    def handle_energy_depletion(self) -> None:
        self.depleted = True
        logger.info("%s: energy source depleted", self.name)

    def handle_energy_recharged(self) -> None:
        self.depleted = False
        logger.info("%s: energy source recharged", self.name)

    def __repr__(self) -> str:
        return f"DeviceLoad(name={self.name!r}, current_a={self._current_a})"
