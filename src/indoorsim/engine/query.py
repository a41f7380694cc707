"""Windowed range-query sweep: true vs. predicted occupancy scored per window size."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from indoorsim.engine.index import PointIndex
from indoorsim.engine.metrics import DEFAULT_THRESHOLD, Measurement, WindowStatistics
from indoorsim.engine.predictor import AnchorMap, Predictor

if TYPE_CHECKING:
    import random

    from indoorsim.config import SimulationConfig
    from indoorsim.model.graph import WalkingGraph
    from indoorsim.model.particle import Particle
    from indoorsim.model.position import Box

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """True and predicted occupancy of the whole floor at one query time."""

    time: float
    truth: PointIndex[int]
    anchors: AnchorMap
    predicted_objects: int = 0


@dataclass
class RangeQueryEvaluator:
    """Runs the window sweep and keeps the resulting statistics.

    For each random query time, every object's true position is indexed and
    its anchors are predicted from its readings. Random windows of each size
    are then queried on both, and trials whose window truly holds at least
    one object are scored.
    """

    graph: WalkingGraph
    objects: Sequence[Particle]
    readings: Sequence[Sequence[int]]
    predictor: Predictor = field(default_factory=Predictor)
    num_timestamp: int = 10
    num_test_per_timestamp: int = 100
    query_time_min: float = 50.0
    threshold: float = DEFAULT_THRESHOLD
    statistics: WindowStatistics | None = None

    def __post_init__(self) -> None:
        if not self.objects:
            raise ValueError("No objects to evaluate")
        if len(self.objects) != len(self.readings):
            msg = (
                f"Got {len(self.objects)} objects but {len(self.readings)} reading sequences"
            )
            raise ValueError(msg)
        if self.query_time_min >= self.time_span:
            msg = (
                f"query_time_min ({self.query_time_min}) must be below "
                f"the time covered by the readings ({self.time_span})"
            )
            raise ValueError(msg)

    @classmethod
    def from_config(
        cls,
        graph: WalkingGraph,
        objects: Sequence[Particle],
        readings: Sequence[Sequence[int]],
        config: SimulationConfig,
    ) -> RangeQueryEvaluator:
        return cls(
            graph=graph,
            objects=objects,
            readings=readings,
            predictor=Predictor.from_config(config),
            num_timestamp=config.num_timestamp,
            num_test_per_timestamp=config.num_test_per_timestamp,
            query_time_min=config.query_time_min,
            threshold=config.threshold,
        )

    @property
    def duration(self) -> int:
        return len(self.readings[0])

    @property
    def time_span(self) -> float:
        """Time covered by the readings; query times are drawn below it."""
        return self.duration * self.predictor.unit

    def snapshot(self, t: float, rng: random.Random) -> Snapshot:
        """Index true positions at t and predict every object's anchors."""
        truth: PointIndex[int] = PointIndex()
        anchors: AnchorMap = {}
        predicted = 0
        points = []
        for obj, readings in zip(self.objects, self.readings, strict=True):
            if self.predictor.predict(self.graph, obj.id, readings, t, anchors, rng):
                predicted += 1
            points.append((obj.point(self.graph, t), obj.id))
        truth.insert(points)
        return Snapshot(time=t, truth=truth, anchors=anchors, predicted_objects=predicted)

    def occupancy(
        self, snapshot: Snapshot, window: Sequence[tuple[Box, float]]
    ) -> tuple[set[int], dict[int, float]]:
        """True ids and predicted id → mass inside a (multi-piece) window."""
        real: set[int] = set()
        enclosed: set[int] = set()
        for box, _ in window:
            real.update(snapshot.truth.range_query(box))
            # Pieces may share a border; count each anchor once.
            enclosed.update(self.graph.anchors_in(box))

        predicted: dict[int, float] = {}
        for anchor in sorted(enclosed):
            for object_id, mass in snapshot.anchors.get(anchor, {}).items():
                predicted[object_id] = predicted.get(object_id, 0.0) + mass
        return real, predicted

    def run(self, window_sizes: Sequence[float], rng: random.Random) -> WindowStatistics:
        """Run the sweep over all window sizes.

        Args:
            window_sizes: Window areas as ratios of the total room/hall area.
            rng: Shared random source.

        Returns:
            WindowStatistics: Scored samples for every metric and window size.
        """
        stats = WindowStatistics(window_sizes=list(window_sizes), threshold=self.threshold)

        for i in range(self.num_timestamp):
            t = min(rng.uniform(self.query_time_min, self.time_span), self.time_span - 1e-9)
            snapshot = self.snapshot(t, rng)
            logger.debug(
                "Query time %d/%d t=%.2f: predicted %d of %d objects",
                i + 1,
                self.num_timestamp,
                t,
                snapshot.predicted_objects,
                len(self.objects),
            )

            for j, size in enumerate(window_sizes):
                for _ in range(self.num_test_per_timestamp):
                    window = self.graph.random_window(size, rng)
                    real, predicted = self.occupancy(snapshot, window)
                    if real:
                        stats.add(j, real, predicted)

        for j, size in enumerate(window_sizes):
            logger.info("Window size %s: %d scored trials", size, stats.count(j))

        self.statistics = stats
        return stats

    def measure(self, measurement: Measurement) -> list[tuple[float, float]]:
        """(mean, stddev) of a metric per window size from the last run.

        Raises:
            RuntimeError: If run() has not completed yet.
        """
        if self.statistics is None:
            raise RuntimeError("No statistics yet - call run() first")
        return self.statistics.summary(measurement)
