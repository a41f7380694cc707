"""Profile the simulation pipeline to identify performance bottlenecks."""

import cProfile
import pstats
import time
from io import StringIO

from indoorsim.config import SimulationConfig
from indoorsim.corpora.office_floor import create_graph
from indoorsim.engine.predictor import AnchorMap, Predictor
from indoorsim.engine.simulation import Simulation
from indoorsim.rng import init_random


def create_test_simulation(num_object: int = 200, duration: int = 200) -> Simulation:
    """Create a simulation on the office floor corpus."""
    config = SimulationConfig(
        num_object=num_object,
        duration=duration,
        num_timestamp=2,
        num_test_per_timestamp=50,
        seed=42,
    )
    return Simulation(graph=create_graph(), config=config, rng=init_random(config.seed))


def measure_trajectory_rate(simulation: Simulation) -> tuple[float, int]:
    """Measure ticks per second and history events generated."""
    start_time = time.perf_counter()
    simulation.run()
    elapsed = time.perf_counter() - start_time

    ticks_per_sec = simulation.tick / elapsed if elapsed > 0 else 0
    events = sum(len(obj.history) for obj in simulation.objects)
    return ticks_per_sec, events


def measure_predict_rate(simulation: Simulation, t: float = 150.0) -> tuple[float, int]:
    """Measure predictions per second and how many succeed."""
    predictor = Predictor.from_config(simulation.config)
    anchors: AnchorMap = {}

    start_time = time.perf_counter()
    succeeded = 0
    for obj, readings in zip(simulation.objects, simulation.readings, strict=True):
        if predictor.predict(simulation.graph, obj.id, readings, t, anchors, simulation.rng):
            succeeded += 1
    elapsed = time.perf_counter() - start_time

    rate = len(simulation.objects) / elapsed if elapsed > 0 else 0
    return rate, succeeded


def profile_sweep(simulation: Simulation) -> str:
    """Profile the window sweep and return profiling results."""
    profiler = cProfile.Profile()

    profiler.enable()
    simulation.evaluate()
    profiler.disable()

    stats_stream = StringIO()
    stats = pstats.Stats(profiler, stream=stats_stream)
    stats.sort_stats("cumulative")
    stats.print_stats(30)  # Top 30 functions

    return stats_stream.getvalue()


def main():
    print("=" * 60)
    print("Performance Profiling: simulation pipeline")
    print("=" * 60)

    simulation = create_test_simulation()
    print(f"\nGraph: {simulation.graph.graph.number_of_nodes()} nodes, "
          f"{len(simulation.graph.detectors)} detectors, {simulation.graph.num_anchors} anchors")

    print("\n--- Trajectory Generation ---")
    ticks_per_sec, events = measure_trajectory_rate(simulation)
    print(f"Tick rate: {ticks_per_sec:.1f} ticks/sec")
    print(f"History events: {events}")

    simulation.detect()

    print("\n--- Prediction ---")
    rate, succeeded = measure_predict_rate(simulation)
    print(f"Prediction rate: {rate:.1f} objects/sec")
    print(f"Succeeded: {succeeded}/{len(simulation.objects)}")

    print("\n--- Profiling Breakdown (window sweep) ---")
    print(profile_sweep(simulation))


if __name__ == "__main__":
    main()
