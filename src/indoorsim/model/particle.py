"""Particle: a mobile object walking the graph with a compact event history.

The history records (time, node) events: the moment the particle is (or is
scheduled to be) at a node. Any past position is recovered by interpolating
between consecutive events, so a trajectory never has to be stored densely.
"""

from __future__ import annotations

import sys
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TextIO

from indoorsim.model.graph import DegenerateGeometryError
from indoorsim.model.position import LandmarkPosition, Point

if TYPE_CHECKING:
    import random

    from indoorsim.model.graph import WalkingGraph

VELOCITY_MEAN = 80.0
VELOCITY_SD = 10.0
JITTER_SD = 5.0
UNIT = 1.0  # default advance duration when none is given

UNASSIGNED_ID = -1


def draw_velocity(rng: random.Random, mean: float, sd: float) -> float:
    """Draw a strictly positive velocity from Normal(mean, sd)."""
    velocity = rng.gauss(mean, sd)
    while velocity <= 0:
        velocity = rng.gauss(mean, sd)
    return velocity


@dataclass
class Particle:
    """One object moving along the walking graph at constant velocity.

    The history is append-only, non-empty and chronologically non-decreasing.
    It is owned by this particle; copies get their own list.
    """

    id: int
    velocity: float
    position: LandmarkPosition
    history: list[tuple[float, int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.velocity <= 0:
            msg = f"Particle {self.id} has non-positive velocity {self.velocity}"
            raise DegenerateGeometryError(msg)
        if not self.history:
            msg = f"Particle {self.id} needs at least one history event"
            raise ValueError(msg)

    @classmethod
    def create(
        cls,
        graph: WalkingGraph,
        id: int,
        rng: random.Random,
        start: LandmarkPosition | None = None,
        velocity_mean: float = VELOCITY_MEAN,
        velocity_sd: float = VELOCITY_SD,
    ) -> Particle:
        """Create a particle, at a random position unless `start` is given.

        The velocity is drawn before the position. The history is seeded with
        the time the particle would have been exactly at `start.source`, so
        that time 0 corresponds to the starting position.
        """
        velocity = draw_velocity(rng, velocity_mean, velocity_sd)
        position = start if start is not None else graph.random_position(rng)
        return cls._starting_at(graph, id, velocity, position)

    @classmethod
    def near_detector(
        cls,
        graph: WalkingGraph,
        id: int,
        detector_id: int,
        radius: float,
        rng: random.Random,
        velocity_mean: float = VELOCITY_MEAN,
        velocity_sd: float = VELOCITY_SD,
    ) -> Particle:
        """Create a particle somewhere inside a detector's coverage."""
        velocity = draw_velocity(rng, velocity_mean, velocity_sd)
        position = graph.random_position_near(detector_id, radius, rng)
        return cls._starting_at(graph, id, velocity, position)

    @classmethod
    def _starting_at(
        cls, graph: WalkingGraph, id: int, velocity: float, position: LandmarkPosition
    ) -> Particle:
        w = graph.weight(position.source, position.target)
        history = [(-position.fraction * w / velocity, position.source)]
        return cls(id=id, velocity=velocity, position=position, history=history)

    @classmethod
    def derive_with_jitter(
        cls, parent: Particle, rng: random.Random, sd: float = JITTER_SD
    ) -> Particle:
        """Copy the parent with a velocity redrawn from Normal(parent.velocity, sd).

        The copied history keeps the parent's scheduled arrival at the current
        target, timed with the parent's velocity, so position_at() mixes both
        velocities until the copy passes that node.
        """
        velocity = draw_velocity(rng, parent.velocity, sd)
        return cls(
            id=parent.id,
            velocity=velocity,
            position=parent.position,
            history=list(parent.history),
        )

    def clone(self) -> Particle:
        """Identical duplicate with its own history list."""
        return Particle(
            id=self.id,
            velocity=self.velocity,
            position=self.position,
            history=list(self.history),
        )

    def advance(
        self,
        graph: WalkingGraph,
        rng: random.Random,
        duration: float = 0.0,
        unit: float = UNIT,
    ) -> LandmarkPosition:
        """Move the particle forward in time, hopping across as many edges as needed.

        A non-positive duration advances by `unit`. At every node reached the
        next edge is chosen by the graph, excluding the edge just traversed.
        The arrival at the final target is recorded ahead of time, so the last
        history event may lie in the future of the live position.

        Args:
            graph: Walking graph the particle moves on.
            rng: Shared random source used for branch choices.
            duration: Time to advance by.
            unit: Step used when duration <= 0.

        Returns:
            The new live position.
        """
        source = self.position.source
        target = self.position.target
        fraction = self.position.fraction

        w = graph.weight(source, target)
        left = w * (1 - fraction)
        travel = (duration if duration > 0 else unit) * self.velocity
        dist = travel - left

        last_time, last_node = self.history[-1]
        if last_node == target:
            # Arrival at target already scheduled by a previous advance.
            elapsed = last_time
        else:
            elapsed = last_time + w / self.velocity
            self.history.append((elapsed, target))

        while dist >= 0:
            predecessor = source
            source = target
            target = graph.random_next(source, predecessor, rng)
            w = graph.weight(source, target)
            elapsed += w / self.velocity
            self.history.append((elapsed, target))
            dist -= w

        # The loop exits with -w <= dist < 0, so the fraction stays in [0, 1).
        self.position = LandmarkPosition(source, target, 1 + dist / w)
        return self.position

    def position_at(self, graph: WalkingGraph, t: float = -1.0) -> LandmarkPosition:
        """Reconstruct the position at time t; a negative t means the live position.

        Between two events the particle is interpolated along the edge joining
        their nodes. Past the last event it is extrapolated along the live
        edge. Once that edge is used up the particle rests at the live target,
        not at the last recorded node; the two differ only when the live edge
        starts at the last recorded node.
        """
        if t < 0:
            return self.position

        i = bisect_right(self.history, t, key=lambda event: event[0])
        if i == 0:
            return LandmarkPosition.at_rest(self.history[0][1])

        if i < len(self.history):
            pre_time, source = self.history[i - 1]
            _, target = self.history[i]
            fraction = (t - pre_time) * self.velocity / graph.weight(source, target)
            return LandmarkPosition(source, target, fraction)

        last_time, last_node = self.history[-1]
        live = self.position
        if live.is_at_rest or last_node != live.source:
            return LandmarkPosition.at_rest(last_node)

        w = graph.weight(live.source, live.target)
        traveled = (t - last_time) * self.velocity
        if traveled > w:
            return LandmarkPosition.at_rest(live.target)
        return LandmarkPosition(live.source, live.target, traveled / w)

    def point(self, graph: WalkingGraph, t: float = -1.0) -> Point:
        """Coordinates of the particle at time t."""
        return graph.point_of(self.position_at(graph, t))

    def print_history(self, stream: TextIO | None = None) -> None:
        """Write one `time node` line per history event."""
        out = stream if stream is not None else sys.stdout
        for time, node in self.history:
            out.write(f"{time} {node}\n")
