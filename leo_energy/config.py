"""Configuration loader for the LEO energy scenario."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from leo_energy.core.battery import LiIonBatteryParams
from leo_energy.core.policy import (
    FixedWindowPolicy,
    HarvestPolicy,
    HarvestPolicyConfig,
    IlluminationCyclePolicy,
)
from leo_energy.scenario import FleetConfig, LoadProfile, ScenarioConfig

DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data"
SCENARIO_PATH: Path = DATA_DIR / "composite_scenario.yaml"

_FLEET_FIELDS: tuple[str, ...] = ("name", "count", "battery", "load")

_LOAD_FIELDS: tuple[str, ...] = ("active_current_a",)

_WINDOW_FIELDS: tuple[str, ...] = ("rate_w", "window_start_s", "window_end_s")


def load_scenario(path: Path | None = None) -> ScenarioConfig:
    """Load a scenario description from a YAML file.

    Args:
        path: Optional override for the scenario file path.

    Returns:
        The validated :class:`ScenarioConfig`.

    Raises:
        FileNotFoundError: If the scenario file does not exist.
        ValueError: If a section is missing or a value is out of range.
    """
    scenario_path = path or SCENARIO_PATH
    if not scenario_path.exists():
        raise FileNotFoundError(f"Scenario file not found: {scenario_path}")

    with open(scenario_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if not isinstance(data, dict):
        raise ValueError(f"{scenario_path}: top level must be a mapping")
    if "duration_s" not in data:
        raise ValueError(f"{scenario_path}: missing required field 'duration_s'")

    fleets: list[FleetConfig] = []
    for idx, entry in enumerate(data.get("fleets") or []):
        fleets.append(_build_fleet(idx, entry))

    return ScenarioConfig(
        duration_s=_number("duration_s", data["duration_s"]),
        monitor_interval_s=_number(
            "monitor_interval_s", data.get("monitor_interval_s", 20.0)
        ),
        fleets=tuple(fleets),
    )


def build_policy(entry: dict[str, Any]) -> HarvestPolicyConfig:
    """Convert a ``harvest`` mapping into a policy object.

    The ``policy`` key selects ``fixed_window`` or ``illumination_cycle``;
    remaining keys are the policy's fields.

    Raises:
        ValueError: If the policy name is unknown, a window field is
            missing, a key is not a policy field, or a value is invalid.
    """
    fields = dict(entry)
    name = fields.pop("policy", None)
    try:
        kind = HarvestPolicy(name)
    except ValueError:
        raise ValueError(
            f"unknown harvest policy {name!r}; expected one of "
            f"{[p.value for p in HarvestPolicy]}"
        ) from None

    values = {key: _number(key, val) for key, val in fields.items()}
    try:
        if kind is HarvestPolicy.FIXED_WINDOW:
            for key in _WINDOW_FIELDS:
                if key not in values:
                    raise ValueError(f"fixed_window policy is missing '{key}'")
            return FixedWindowPolicy(**values)
        return IlluminationCyclePolicy(**values)
    except TypeError as exc:
        raise ValueError(f"invalid {kind.value} policy fields: {exc}") from exc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_fleet(idx: int, entry: dict[str, Any]) -> FleetConfig:
    if not isinstance(entry, dict):
        raise ValueError(f"Fleet entry {idx} must be a mapping")
    for key in _FLEET_FIELDS:
        if key not in entry:
            raise ValueError(
                f"Fleet entry {idx} ({entry.get('name', '<unknown>')}) "
                f"is missing required field '{key}'"
            )
    label = f"Fleet entry {idx} ({entry['name']})"
    for key in ("battery", "load"):
        if not isinstance(entry[key], dict):
            raise ValueError(f"{label}: '{key}' must be a mapping")
    harvest_entry = entry.get("harvest")
    if harvest_entry is not None and not isinstance(harvest_entry, dict):
        raise ValueError(f"{label}: 'harvest' must be a mapping")

    load_entry = entry["load"]
    for key in _LOAD_FIELDS:
        if key not in load_entry:
            raise ValueError(f"{label}: load is missing required field '{key}'")

    try:
        battery = LiIonBatteryParams(
            **{key: _number(key, val) for key, val in entry["battery"].items()}
        )
        load = LoadProfile(
            **{key: _number(key, val) for key, val in load_entry.items()}
        )
        harvest = build_policy(harvest_entry) if harvest_entry else None
        return FleetConfig(
            name=str(entry["name"]),
            count=_whole("count", entry["count"]),
            battery=battery,
            load=load,
            harvest=harvest,
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label}: {exc}") from exc


def _number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' must be numeric, got {type(value).__name__}")
    return float(value)


def _whole(key: str, value: Any) -> int:
    number = _number(key, value)
    if not number.is_integer():
        raise ValueError(f"'{key}' must be a whole number, got {value!r}")
    return int(number)
