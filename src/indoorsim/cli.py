"""Command-line interface for IndoorSim."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from indoorsim.config import SimulationConfig
from indoorsim.engine.metrics import Measurement
from indoorsim.engine.simulation import Simulation, run_simulation
from indoorsim.logging_config import configure_logging
from indoorsim.model.floorplan import FloorPlan, FloorPlanError
from indoorsim.model.graph import DegenerateGeometryError
from indoorsim.rng import init_random

logger = logging.getLogger(__name__)

# argparse destination → SimulationConfig field
_OVERRIDES = {
    "objects": "num_object",
    "particles": "num_particle",
    "duration": "duration",
    "radius": "radius",
    "success_rate": "success_rate",
    "threshold": "threshold",
    "min_observations": "min_observations",
    "timestamps": "num_timestamp",
    "trials": "num_test_per_timestamp",
    "query_time_min": "query_time_min",
    "window_sizes": "window_sizes",
    "seed": "seed",
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Options left unset fall back to INDOORSIM_* environment settings.
    """
    parser = argparse.ArgumentParser(
        prog="indoorsim",
        description="IndoorSim - location inference accuracy under partial observation",
    )
    parser.add_argument("--objects", type=int, help="Number of simulated objects")
    parser.add_argument("--particles", type=int, help="Provisional particles per prediction")
    parser.add_argument("--duration", type=int, help="Number of simulated timesteps")
    parser.add_argument("--radius", type=float, help="Detector coverage radius")
    parser.add_argument("--success-rate", type=float, help="Probability a reading is kept")
    parser.add_argument("--threshold", type=float, help="Mass needed to count a prediction")
    parser.add_argument(
        "--min-observations", type=int, help="Distinct readings required to predict"
    )
    parser.add_argument("--timestamps", type=int, help="Query times per sweep")
    parser.add_argument("--trials", type=int, help="Windows per query time and size")
    parser.add_argument("--query-time-min", type=float, help="Earliest query time")
    parser.add_argument(
        "--window-sizes",
        type=lambda s: [float(part) for part in s.split(",") if part.strip()],
        help="Comma separated window ratios, e.g. 0.01,0.05",
    )
    parser.add_argument("--seed", type=int, help="Seed for the shared random source")
    parser.add_argument(
        "--floorplan",
        help="JSON floor plan to simulate on (default: synthetic office floor)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Merge command-line overrides on top of environment settings."""
    overrides: dict[str, Any] = {}
    for dest, field_name in _OVERRIDES.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[field_name] = value
    return SimulationConfig(**overrides)


def results_table(simulation: Simulation, window_sizes: Sequence[float]) -> dict[str, Any]:
    """Collect (mean, stddev) per metric per window size."""
    results: dict[str, Any] = {"window_sizes": list(window_sizes)}
    for measurement in Measurement:
        results[measurement.value] = [list(pair) for pair in simulation.measure(measurement)]
    return results


def format_table(results: dict[str, Any]) -> str:
    """Render results as a fixed-width text table."""
    metrics = [m.value for m in Measurement]
    header = f"{'window':>8}  " + "  ".join(f"{m:>17}" for m in metrics)
    lines = [header, "-" * len(header)]
    for i, size in enumerate(results["window_sizes"]):
        cells = []
        for metric in metrics:
            mean, std = results[metric][i]
            cells.append(f"{mean:8.3f} ± {std:6.3f}")
        lines.append(f"{size:>8g}  " + "  ".join(cells))
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Run one full simulation and print the accuracy table.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success, 2 for invalid input).
    """
    args = parse_args(argv)
    configure_logging()

    try:
        config = build_config(args)
        if args.floorplan:
            graph = FloorPlan.load(args.floorplan).to_graph()
        else:
            from indoorsim.corpora.office_floor import create_graph

            graph = create_graph()
    except (ValidationError, FloorPlanError, DegenerateGeometryError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    rng = init_random(config.seed)
    logger.info(
        "Running: objects=%d, particles=%d, duration=%d, window_sizes=%s",
        config.num_object,
        config.num_particle,
        config.duration,
        config.window_sizes,
    )
    simulation = run_simulation(graph, config, rng)
    results = results_table(simulation, config.window_sizes)

    if args.json:
        print(json.dumps(results, indent=2))
    else:
        print(format_table(results))
    return 0


if __name__ == "__main__":
    sys.exit(main())
