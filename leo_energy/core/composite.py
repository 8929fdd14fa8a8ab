"""Composite energy source: a battery plus a solar harvester.

To any consumer the composite behaves like the battery it wraps: energy
and voltage queries, device registration and discharge accounting are
delegated.  On top of that it runs one harvesting policy that periodically
injects energy into the battery.

Lifecycle::

    source = CompositeEnergySource(clock)
    source.attach_battery(battery)
    source.configure(IlluminationCyclePolicy(...))
    source.start()
    clock.run(until=...)
    source.dispose()

Without a battery every query returns 0.0 and harvesting is a no-op, so a
partly wired scene never fails.
"""

from __future__ import annotations

import logging

from leo_energy.core.clock import SimulationClock
from leo_energy.core.illumination import IlluminationStateMachine
from leo_energy.core.policy import (
    FixedWindowPolicy,
    HarvestPolicy,
    HarvestPolicyConfig,
    IlluminationCyclePolicy,
)
from leo_energy.core.reservoir import EnergyConsumer, EnergyReservoir
from leo_energy.core.scheduler import HarvestScheduler

logger = logging.getLogger(__name__)


class CompositeEnergySource:
    """Battery-capable source that also harvests energy.

    Args:
        clock: Simulation clock driving harvest ticks and phase toggles.
        name: Label used in logs.
    """

    def __init__(self, clock: SimulationClock, name: str = "composite") -> None:
        self.name: str = name
        self._clock = clock
        self._battery: EnergyReservoir | None = None
        self._pending_devices: list[EnergyConsumer] = []
        self._policy: HarvestPolicyConfig | None = None
        self._illumination: IlluminationStateMachine | None = None
        self._scheduler: HarvestScheduler | None = None
        self._started: bool = False
        self._disposed: bool = False

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def battery(self) -> EnergyReservoir | None:
        """The attached battery, or ``None``."""
        return self._battery

    def attach_battery(self, battery: EnergyReservoir) -> None:
        """Bind the battery this source wraps.

        The reference is non-owning: the caller keeps the battery alive.
        Re-attaching the same battery is a no-op.

        Raises:
            RuntimeError: If a different battery is already attached.
        """
        if self._battery is battery:
            return
        if self._battery is not None:
            raise RuntimeError(f"{self.name}: a battery is already attached.")
        self._battery = battery
        for device in self._pending_devices:
            battery.add_device(device)
        self._pending_devices.clear()
        logger.debug("%s: battery attached", self.name)

    def add_device(self, device: EnergyConsumer) -> None:
        """Register a consumer on the wrapped battery.

        Devices registered before a battery is attached are handed over
        when it is.
        """
        if self._battery is None:
            self._pending_devices.append(device)
        else:
            self._battery.add_device(device)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def policy(self) -> HarvestPolicyConfig | None:
        return self._policy

    @property
    def policy_kind(self) -> HarvestPolicy | None:
        return None if self._policy is None else self._policy.kind

    def configure(self, policy: HarvestPolicyConfig) -> None:
        """Select the harvesting policy and its parameters.

        The policy object is validated when it is built; calling this again
        before :meth:`start` replaces the previous choice.

        Raises:
            RuntimeError: If the source has already started.
            TypeError: If *policy* is not a supported policy object.
        """
        if self._started:
            raise RuntimeError(f"{self.name}: cannot configure after start().")
        if not isinstance(policy, (FixedWindowPolicy, IlluminationCyclePolicy)):
            raise TypeError(f"unsupported harvest policy: {type(policy).__name__}")
        self._policy = policy

    def add_solar_panel(
        self, rate_w: float, window_start_s: float, window_end_s: float
    ) -> None:
        """Shorthand for a one-second-step :class:`FixedWindowPolicy`."""
        self.configure(FixedWindowPolicy(rate_w, window_start_s, window_end_s))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start harvesting with the configured policy.

        An unconfigured source runs the default illumination cycle.

        Raises:
            RuntimeError: If called twice or after :meth:`dispose`.
        """
        if self._disposed:
            raise RuntimeError(f"{self.name}: source has been disposed.")
        if self._started:
            raise RuntimeError(f"{self.name}: start() called twice.")
        if self._policy is None:
            self._policy = IlluminationCyclePolicy()
            logger.info("%s: no policy configured, using default cycle", self.name)
        self._started = True

        if isinstance(self._policy, IlluminationCyclePolicy):
            self._illumination = IlluminationStateMachine(
                self._clock, self._policy.illumination_s, self._policy.eclipse_s
            )
            self._illumination.start()
        self._scheduler = HarvestScheduler(
            self._clock, self._policy, self.add_energy, self._illumination
        )
        self._scheduler.start()
        if self._scheduler.is_running:
            logger.info(
                "%s: harvesting started at t=%.3fs (%s)",
                self.name,
                self._clock.now(),
                self._policy.kind.value,
            )

    def dispose(self) -> None:
        """Cancel the pending harvest tick and phase toggle."""
        if self._scheduler is not None:
            self._scheduler.stop()
        if self._illumination is not None:
            self._illumination.stop()
        if not self._disposed:
            self._disposed = True
            logger.debug("%s: disposed at t=%.3fs", self.name, self._clock.now())

    @property
    def is_harvesting(self) -> bool:
        """``True`` while a harvest tick is pending."""
        return self._scheduler is not None and self._scheduler.is_running

    @property
    def is_illuminated(self) -> bool:
        """Current phase; ``False`` unless an illumination cycle is running."""
        return self._illumination is not None and self._illumination.is_illuminated

    @property
    def harvested_energy_j(self) -> float:
        """Energy accepted by the battery from harvesting so far."""
        return 0.0 if self._scheduler is None else self._scheduler.accepted_j

    # ------------------------------------------------------------------
    # EnergyReservoir delegation
    # ------------------------------------------------------------------

    def add_energy(self, joules: float) -> float:
        if self._battery is None:
            return 0.0
        return self._battery.add_energy(joules)

    def get_remaining_energy(self) -> float:
        if self._battery is None:
            return 0.0
        return self._battery.get_remaining_energy()

    def get_total_energy(self) -> float:
        if self._battery is None:
            return 0.0
        return self._battery.get_total_energy()

    def get_supply_voltage(self) -> float:
        if self._battery is None:
            return 0.0
        return self._battery.get_supply_voltage()

    def update_energy_source(self) -> None:
        if self._battery is not None:
            self._battery.update_energy_source()

    def __repr__(self) -> str:
        kind = self.policy_kind.value if self._policy is not None else None
        return f"CompositeEnergySource(name={self.name!r}, policy={kind!r})"
