"""Li-ion battery reservoir for the LEO energy engine.

The battery stores energy in joules, clamped to ``[0, capacity_j]``, and
derives its supply voltage from a Shepherd-style discharge curve evaluated
on the drained charge (Ah).  Attached devices are drained periodically at
``update_interval_s`` and whenever a device changes its current draw.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from leo_energy.core.clock import EventHandle, SimulationClock
from leo_energy.core.reservoir import EnergyConsumer

logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR: float = 3600.0

_CELL_VOLTAGE_FIELDS: tuple[str, ...] = (
    "initial_cell_voltage",
    "nominal_cell_voltage",
    "exp_cell_voltage",
)


@dataclass(frozen=True)
class LiIonBatteryParams:
    """Electrical parameters of a single Li-ion cell pack.

    Attributes:
        capacity_j: Maximum stored energy in J (> 0).
        initial_energy_j: Stored energy at construction.  Defaults to
            ``capacity_j``.
        initial_cell_voltage: Fully charged cell voltage (V).
        nominal_cell_voltage: Voltage at the end of the nominal zone (V).
        exp_cell_voltage: Voltage at the end of the exponential zone (V).
        internal_resistance: Cell internal resistance (Ohm, >= 0).
        threshold_voltage: Voltage at or below which the battery counts as
            depleted (V).
        rated_capacity_ah: Rated charge capacity (Ah).
        nom_capacity_ah: Charge removed at the end of the nominal zone (Ah).
        exp_capacity_ah: Charge removed at the end of the exponential zone (Ah).
        update_interval_s: Period of the discharge accounting loop (s, > 0).
    """

    capacity_j: float = 31752.0
    initial_energy_j: float | None = None
    initial_cell_voltage: float = 4.05
    nominal_cell_voltage: float = 3.6
    exp_cell_voltage: float = 3.75
    internal_resistance: float = 0.083
    threshold_voltage: float = 3.3
    rated_capacity_ah: float = 2.45
    nom_capacity_ah: float = 1.1
    exp_capacity_ah: float = 1.2
    update_interval_s: float = 1.0

    def __post_init__(self) -> None:
        """Validate battery parameters."""
        if self.capacity_j <= 0.0:
            raise ValueError("capacity_j must be > 0.")
        if self.initial_energy_j is not None:
            if self.initial_energy_j < 0.0:
                raise ValueError("initial_energy_j must be >= 0.")
            if self.initial_energy_j > self.capacity_j:
                raise ValueError("initial_energy_j must be <= capacity_j.")
        for field in _CELL_VOLTAGE_FIELDS:
            if getattr(self, field) <= 0.0:
                raise ValueError(f"{field} must be > 0.")
        if self.internal_resistance < 0.0:
            raise ValueError("internal_resistance must be >= 0.")
        if not 0.0 <= self.threshold_voltage < self.initial_cell_voltage:
            raise ValueError(
                "threshold_voltage must be in [0, initial_cell_voltage)."
            )
        if self.exp_capacity_ah <= 0.0:
            raise ValueError("exp_capacity_ah must be > 0.")
        if not 0.0 < self.nom_capacity_ah < self.rated_capacity_ah:
            raise ValueError("nom_capacity_ah must be in (0, rated_capacity_ah).")
        if self.update_interval_s <= 0.0:
            raise ValueError("update_interval_s must be > 0.")

    @property
    def starting_energy_j(self) -> float:
        """Energy held at construction time."""
        if self.initial_energy_j is None:
            return self.capacity_j
        return self.initial_energy_j


class LiIonBattery:
    """Rechargeable battery with periodic discharge accounting.

    Attributes:
        params: Immutable electrical parameters.
        depleted: ``True`` once the voltage has fallen to the threshold
            (or the energy to zero) and has not yet recovered.
    """

    def __init__(
        self,
        clock: SimulationClock,
        params: LiIonBatteryParams | None = None,
    ) -> None:
        self.params: LiIonBatteryParams = params or LiIonBatteryParams()
        self._clock = clock
        self._remaining_j: float = self.params.starting_energy_j
        self._drained_ah: float = 0.0
        self._devices: list[EnergyConsumer] = []
        self._last_update: float = clock.now()
        self._update_event: EventHandle | None = None
        self._started: bool = False
        self.depleted: bool = False
        self._supply_voltage: float = self.voltage_at(0.0)

    # ------------------------------------------------------------------
    # EnergyReservoir
    # ------------------------------------------------------------------

    def get_remaining_energy(self) -> float:
        """Stored energy in J."""
        return self._remaining_j

    def get_total_energy(self) -> float:
        """Capacity in J."""
        return self.params.capacity_j

    def get_supply_voltage(self) -> float:
        """Terminal voltage computed at the last accounting update (V)."""
        return self._supply_voltage

    def add_energy(self, joules: float) -> float:
        """Charge the battery, clamped at capacity.

        Args:
            joules: Energy offered in J (>= 0).

        Returns:
            Energy actually stored in J.

        Raises:
            ValueError: If joules is negative.
        """
        if joules < 0.0:
            raise ValueError("joules must be >= 0.")
        headroom = self.params.capacity_j - self._remaining_j
        accepted = min(joules, headroom)
        self._remaining_j += accepted
        if accepted > 0.0:
            voltage = self._supply_voltage or self.params.nominal_cell_voltage
            restored_ah = accepted / (_SECONDS_PER_HOUR * voltage)
            self._drained_ah = max(0.0, self._drained_ah - restored_ah)
            self._supply_voltage = self.voltage_at(self._total_current())
        self._check_thresholds()
        return accepted

    def add_device(self, device: EnergyConsumer) -> None:
        """Register a device drawing current from this battery."""
        if device not in self._devices:
            self._devices.append(device)

    @property
    def devices(self) -> tuple[EnergyConsumer, ...]:
        return tuple(self._devices)

    def update_energy_source(self) -> None:
        """Drain the energy consumed since the last update.

        Uses the currents the devices draw *now*, so devices must call
        this before changing their current.
        """
        now = self._clock.now()
        dt = now - self._last_update
        if dt > 0.0:
            current = self._total_current()
            voltage = self._supply_voltage
            drained_j = min(current * dt * voltage, self._remaining_j)
            if current > 0.0:
                # Split what was actually drained in proportion to current.
                for device in self._devices:
                    share = device.get_current_a() / current
                    device.record_consumption(drained_j * share)
            self._remaining_j -= drained_j
            self._drained_ah += current * dt / _SECONDS_PER_HOUR
            self._supply_voltage = self.voltage_at(current)
            self._last_update = now
        self._check_thresholds()

        if self._started:
            self._clock.cancel(self._update_event)
            self._update_event = self._clock.schedule_after(
                self.params.update_interval_s, self.update_energy_source
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin periodic discharge accounting."""
        if self._started:
            return
        self._started = True
        self._last_update = self._clock.now()
        self._update_event = self._clock.schedule_after(
            self.params.update_interval_s, self.update_energy_source
        )

    def dispose(self) -> None:
        """Cancel the periodic update."""
        self._started = False
        self._clock.cancel(self._update_event)
        self._update_event = None

    # ------------------------------------------------------------------
    # Voltage model
    # ------------------------------------------------------------------

    def voltage_at(self, current_a: float) -> float:
        """Terminal voltage at the present drained charge and *current_a*.

        Returns 0.0 once the drained charge reaches the rated capacity.
        """
        p = self.params
        it = self._drained_ah
        if it >= p.rated_capacity_ah:
            return 0.0
        a = p.initial_cell_voltage - p.exp_cell_voltage
        b = 3.0 / p.exp_capacity_ah
        # Polarisation slope fitted through the nominal-zone end point.
        nominal_drop: float = (
            p.initial_cell_voltage
            - p.nominal_cell_voltage
            + a * (math.exp(-b * p.nom_capacity_ah) - 1.0)
        )
        k = abs(
            nominal_drop
            * (p.rated_capacity_ah - p.nom_capacity_ah)
            / p.nom_capacity_ah
        )
        e0 = p.initial_cell_voltage + k - a
        open_circuit: float = (
            e0
            - k * p.rated_capacity_ah / (p.rated_capacity_ah - it)
            + a * math.exp(-b * it)
        )
        return max(0.0, open_circuit - p.internal_resistance * current_a)

    def _total_current(self) -> float:
        return sum(device.get_current_a() for device in self._devices)

    def _check_thresholds(self) -> None:
        exhausted = (
            self._remaining_j <= 0.0
            or self._supply_voltage <= self.params.threshold_voltage
        )
        if exhausted and not self.depleted:
            self.depleted = True
            logger.info(
                "Battery depleted at t=%.3fs (V=%.3f, E=%.3f J)",
                self._clock.now(),
                self._supply_voltage,
                self._remaining_j,
            )
            for device in self._devices:
                device.handle_energy_depletion()
        elif not exhausted and self.depleted:
            self.depleted = False
            logger.info("Battery recharged at t=%.3fs", self._clock.now())
            for device in self._devices:
                device.handle_energy_recharged()
