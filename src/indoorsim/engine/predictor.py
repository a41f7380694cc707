"""Position inference from partial readings.

For one object and one query time, a population of provisional particles is
seeded at the detector of an earlier reading, walked forward one step at a
time, and filtered against every later reading. Whenever filtering thins the
population it is refilled by resampling survivors. The surviving particles
are finally snapped to anchors, each carrying 1/N of the object's mass.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from indoorsim.engine.detection import MISS
from indoorsim.model.particle import JITTER_SD, UNIT, VELOCITY_MEAN, VELOCITY_SD, Particle

if TYPE_CHECKING:
    import random

    from indoorsim.config import SimulationConfig
    from indoorsim.model.graph import WalkingGraph

logger = logging.getLogger(__name__)

# anchor id → object id → probability mass
AnchorMap = dict[int, dict[int, float]]


def find_start(readings: Sequence[int], end: int, min_observations: int) -> int | None:
    """Earliest index such that [start, end] holds min_observations distinct readings.

    Scanning backward from `end`, a reading counts only if it is not a miss
    and differs from the previously counted one, so a long dwell at a single
    detector counts once.

    Returns:
        The start index, or None when the prefix does not hold enough readings.
    """
    count = 0
    last = MISS
    start = end
    while start >= 0 and count < min_observations:
        reading = readings[start]
        if reading != MISS and reading != last:
            count += 1
            last = reading
        start -= 1
    if count < min_observations:
        return None
    return start + 1


@dataclass
class Predictor:
    """Reconstructs candidate anchors for an object from its reading sequence."""

    num_particle: int = 64
    radius: float = 100.0
    min_observations: int = 2
    unit: float = UNIT
    resample_jitter: bool = False
    velocity_mean: float = VELOCITY_MEAN
    velocity_sd: float = VELOCITY_SD
    jitter_sd: float = JITTER_SD

    def __post_init__(self) -> None:
        if self.num_particle < 1:
            msg = f"num_particle must be at least 1, got {self.num_particle}"
            raise ValueError(msg)
        if self.min_observations < 1:
            msg = f"min_observations must be at least 1, got {self.min_observations}"
            raise ValueError(msg)
        if self.radius < 0:
            msg = f"radius must be non-negative, got {self.radius}"
            raise ValueError(msg)
        if self.unit <= 0:
            msg = f"unit must be positive, got {self.unit}"
            raise ValueError(msg)

    @classmethod
    def from_config(cls, config: SimulationConfig) -> Predictor:
        return cls(
            num_particle=config.num_particle,
            radius=config.radius,
            min_observations=config.min_observations,
            unit=config.unit,
            resample_jitter=config.resample_jitter,
            velocity_mean=config.velocity_mean,
            velocity_sd=config.velocity_sd,
            jitter_sd=config.jitter_sd,
        )

    def predict(
        self,
        graph: WalkingGraph,
        object_id: int,
        readings: Sequence[int],
        t: float,
        anchors: AnchorMap,
        rng: random.Random,
    ) -> bool:
        """Add the object's predicted anchor mass at time t to `anchors`.

        Args:
            graph: Walking graph the object moves on.
            object_id: Id credited with the predicted mass.
            readings: The object's reading sequence.
            t: Query time, within [0, len(readings) * unit). Reading i was
                taken at time i * unit.
            anchors: Anchor map updated in place on success.
            rng: Shared random source.

        Returns:
            True on success. False when there are too few distinct readings
            before t, or when every provisional particle was filtered out;
            `anchors` is left untouched in both cases.
        """
        end = math.floor(t / self.unit)
        if t < 0 or end >= len(readings):
            msg = f"Query time {t} outside reading range [0, {len(readings) * self.unit})"
            raise ValueError(msg)

        start = find_start(readings, end, self.min_observations)
        if start is None:
            logger.debug("Object %d at t=%.2f: insufficient evidence", object_id, t)
            return False

        population = [
            Particle.near_detector(
                graph,
                object_id,
                readings[start],
                self.radius,
                rng,
                velocity_mean=self.velocity_mean,
                velocity_sd=self.velocity_sd,
            )
            for _ in range(self.num_particle)
        ]

        for i in range(start + 1, end + 1):
            reading = readings[i]
            survivors = []
            for particle in population:
                position = particle.advance(graph, rng, unit=self.unit)
                if reading == MISS or graph.covers(position, self.radius, reading):
                    survivors.append(particle)

            if not survivors:
                logger.debug(
                    "Object %d at t=%.2f: filter collapsed at step %d", object_id, t, i
                )
                return False

            population = self._refill(survivors, rng)

        remain = t - end * self.unit
        if remain > 0:
            for particle in population:
                particle.advance(graph, rng, duration=remain, unit=self.unit)

        mass = 1.0 / len(population)
        for particle in population:
            anchor = graph.align(particle.position)
            by_object = anchors.setdefault(anchor, {})
            by_object[object_id] = by_object.get(object_id, 0.0) + mass

        return True

    def _refill(self, survivors: list[Particle], rng: random.Random) -> list[Particle]:
        """Top the population back up to num_particle by resampling survivors.

        Resampling is uniform with replacement among the survivors only.
        Duplicates are exact copies unless resample_jitter is set.
        """
        count = len(survivors)
        for _ in range(self.num_particle - count):
            parent = survivors[rng.randrange(count)]
            if self.resample_jitter:
                survivors.append(Particle.derive_with_jitter(parent, rng, self.jitter_sd))
            else:
                survivors.append(parent.clone())
        return survivors


def predict(
    graph: WalkingGraph,
    object_id: int,
    readings: Sequence[int],
    t: float,
    anchors: AnchorMap,
    rng: random.Random,
    min_observations: int = 2,
    num_particle: int = 64,
    radius: float = 100.0,
) -> bool:
    """Predict one object's anchors at time t with default inference settings.

    Convenience function that creates a Predictor and runs it.
    """
    predictor = Predictor(
        num_particle=num_particle, radius=radius, min_observations=min_observations
    )
    return predictor.predict(graph, object_id, readings, t, anchors, rng)
