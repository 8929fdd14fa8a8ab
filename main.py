"""CLI entrypoint for the LEO composite energy simulation."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from leo_energy import __version__
from leo_energy.config import load_scenario
from leo_energy.scenario import build_scenario


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not a number") from None
    if value <= 0.0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {text}")
    return value


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate battery-only UAVs and solar-harvesting satellites."
    )
    parser.add_argument(
        "--scenario",
        type=Path,
        default=None,
        help="Scenario YAML file (default: data/composite_scenario.yaml).",
    )
    parser.add_argument(
        "--duration",
        type=_positive_float,
        default=None,
        help="Override the simulated horizon in seconds.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the configured scenario and print a per-node summary."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"LEO Composite Energy Simulation v{__version__}")
    print("=" * 56)

    # -- Load scenario --------------------------------------------------------
    config = load_scenario(args.scenario)
    if args.duration is not None:
        config = replace(config, duration_s=args.duration)
    for fleet in config.fleets:
        mode = fleet.harvest.kind.value if fleet.harvest is not None else "battery only"
        print(f"  {fleet.name:<10s} x{fleet.count:<3d} {mode}")

    # -- Run ------------------------------------------------------------------
    scenario = build_scenario(config)
    summary = scenario.run()
    traces = scenario.traces()

    print(f"\nState at t={config.duration_s:.0f}s:\n")
    print(f"  {'Node':<14}  {'Voltage':>8}  {'Energy (J)':>11}  {'Harvested':>10}")
    print(f"  {'----':<14}  {'-------':>8}  {'----------':>11}  {'---------':>10}")
    for row in summary.itertuples(index=False):
        print(
            f"  {row.node:<14}  {row.voltage_v:8.3f}  "
            f"{row.remaining_j:11.1f}  {row.harvested_j:10.1f}"
        )

    if not traces.empty:
        print(f"\n{len(traces)} status samples recorded for harvesting nodes.")
    print("\nSimulation complete.")


if __name__ == "__main__":
    sys.exit(main() or 0)
