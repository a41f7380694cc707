"""Simulation driver: ground-truth trajectories, readings and the evaluation sweep.

Pipeline:
1. Populate objects at random positions
2. Advance every object by config.unit time per tick (ground truth)
3. Sample detector readings over the simulated ticks
4. Run the windowed range-query sweep and expose its statistics
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from indoorsim.engine.detection import detect
from indoorsim.engine.index import PointIndex
from indoorsim.engine.query import RangeQueryEvaluator
from indoorsim.model.particle import Particle

if TYPE_CHECKING:
    import random

    from indoorsim.config import SimulationConfig
    from indoorsim.engine.metrics import Measurement
    from indoorsim.model.graph import WalkingGraph
    from indoorsim.model.position import LandmarkPosition

logger = logging.getLogger(__name__)


@dataclass
class Simulation:
    """Container holding the state of one simulation run.

    All state is in memory and belongs to this run only.
    """

    graph: WalkingGraph
    config: SimulationConfig
    rng: random.Random

    objects: list[Particle] = field(default_factory=list)
    readings: list[list[int]] = field(default_factory=list)
    tick: int = 0
    evaluator: RangeQueryEvaluator | None = None

    def populate(self) -> None:
        """Create config.num_object objects at random positions (ids 0..n-1)."""
        self.objects = [
            Particle.create(
                self.graph,
                i,
                self.rng,
                velocity_mean=self.config.velocity_mean,
                velocity_sd=self.config.velocity_sd,
            )
            for i in range(self.config.num_object)
        ]
        self.readings = []
        self.tick = 0
        logger.debug("Populated %d objects", len(self.objects))

    def step(self) -> None:
        """Advance every object by config.unit time and increment the tick."""
        for obj in self.objects:
            obj.advance(self.graph, self.rng, unit=self.config.unit)
        self.tick += 1

        if self.tick % 100 == 0:
            logger.debug("Simulation tick %d: objects=%d", self.tick, len(self.objects))

    def run(self, duration: int | None = None) -> None:
        """Generate ground-truth trajectories for `duration` ticks (config.duration by default)."""
        if duration is None:
            duration = self.config.duration
        if duration < 1:
            msg = f"duration must be at least 1, got {duration}"
            raise ValueError(msg)
        if not self.objects:
            self.populate()
        for _ in range(duration):
            self.step()
        logger.info("Simulated %d objects for %d ticks", len(self.objects), self.tick)

    def detect(self) -> list[list[int]]:
        """Sample readings for every object, one per simulated tick at time tick * unit."""
        if self.tick == 0:
            raise RuntimeError("No trajectories yet - call run() first")
        self.readings = detect(
            self.graph,
            self.objects,
            self.rng,
            duration=self.tick,
            success_rate=self.config.success_rate,
            radius=self.config.radius,
            unit=self.config.unit,
        )
        return self.readings

    def snapshot(self, t: float = -1.0) -> PointIndex[int]:
        """Index the true object positions at time t (live positions if t < 0)."""
        index: PointIndex[int] = PointIndex()
        index.insert((obj.point(self.graph, t), obj.id) for obj in self.objects)
        return index

    def nearest_neighbors(self, object_id: int, k: int, t: float = -1.0) -> list[int]:
        """Ids of the k objects nearest to `object_id` at time t, itself excluded."""
        by_id = {obj.id: obj for obj in self.objects}
        if object_id not in by_id:
            msg = f"Object {object_id} not found in simulation"
            raise ValueError(msg)
        index = self.snapshot(t)
        neighbors = index.nearest(by_id[object_id].point(self.graph, t), k + 1)
        return [i for i in neighbors if i != object_id][:k]

    def random_inside_detector(self, detector_id: int) -> LandmarkPosition:
        """Random network position covered by the detector."""
        return self.graph.random_position_near(detector_id, self.config.radius, self.rng)

    def evaluate(self, window_sizes: Sequence[float] | None = None) -> RangeQueryEvaluator:
        """Run the windowed range-query sweep over the current readings."""
        if not self.readings:
            self.detect()
        if window_sizes is None:
            window_sizes = self.config.window_sizes
        if not window_sizes:
            raise ValueError("At least one window size is required")

        evaluator = RangeQueryEvaluator.from_config(
            self.graph, self.objects, self.readings, self.config
        )
        evaluator.run(window_sizes, self.rng)
        self.evaluator = evaluator
        return evaluator

    def measure(self, measurement: Measurement) -> list[tuple[float, float]]:
        """(mean, stddev) per window size of a metric from the last sweep."""
        if self.evaluator is None:
            raise RuntimeError("No sweep yet - call evaluate() first")
        return self.evaluator.measure(measurement)


def run_simulation(
    graph: WalkingGraph,
    config: SimulationConfig,
    rng: random.Random,
) -> Simulation:
    """Run the whole pipeline: trajectories, readings and the evaluation sweep.

    Args:
        graph: Walking graph to simulate on.
        config: Run configuration.
        rng: Shared random source.

    Returns:
        Simulation: The finished run, with statistics available via measure().
    """
    simulation = Simulation(graph=graph, config=config, rng=rng)
    simulation.run()
    simulation.detect()
    simulation.evaluate()
    return simulation
