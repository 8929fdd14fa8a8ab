"""Periodic energy status sampling."""

from __future__ import annotations

import logging

import pandas as pd

from leo_energy.core.clock import EventHandle, SimulationClock
from leo_energy.core.reservoir import EnergyReservoir

logger = logging.getLogger(__name__)

_JOULES_PER_WH: float = 3600.0

_COLUMNS: list[str] = ["time_s", "voltage_v", "remaining_j", "remaining_wh", "soc"]


class EnergyMonitor:
    """Samples a reservoir's voltage and remaining energy at a fixed interval.

    The first sample is taken when :meth:`start` is called.  Each sample is
    logged at INFO level and kept for :meth:`to_frame`.

    Attributes:
        label: Node label used in logs.
        interval_s: Sampling period in s (> 0).
    """

    def __init__(
        self,
        clock: SimulationClock,
        source: EnergyReservoir,
        label: str,
        interval_s: float = 20.0,
    ) -> None:
        if interval_s <= 0.0:
            raise ValueError("interval_s must be > 0.")
        self._clock = clock
        self._source = source
        self.label: str = label
        self.interval_s: float = interval_s
        self._rows: list[dict[str, float]] = []
        self._event: EventHandle | None = None

    def start(self) -> None:
        self.stop()
        self._event = self._clock.schedule_now(self._sample)

    def stop(self) -> None:
        self._clock.cancel(self._event)
        self._event = None

    def sample(self) -> dict[str, float]:
        """Record one sample now and return it."""
        total = self._source.get_total_energy()
        remaining = self._source.get_remaining_energy()
        row: dict[str, float] = {
            "time_s": self._clock.now(),
            "voltage_v": self._source.get_supply_voltage(),
            "remaining_j": remaining,
            "remaining_wh": remaining / _JOULES_PER_WH,
            "soc": remaining / total if total > 0.0 else 0.0,
        }
        self._rows.append(row)
        logger.info(
            "%s t=%.1fs V=%.3f E=%.1f J (%.4f Wh)",
            self.label,
            row["time_s"],
            row["voltage_v"],
            row["remaining_j"],
            row["remaining_wh"],
        )
        return row

    def to_frame(self) -> pd.DataFrame:
        """All samples so far, one row per sample."""
        return pd.DataFrame(self._rows, columns=_COLUMNS)

    def _sample(self) -> None:
        self.sample()
        self._event = self._clock.schedule_after(self.interval_s, self._sample)
