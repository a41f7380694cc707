"""Detection sampling: noisy, possibly missing detector readings for each object."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from indoorsim.model.particle import UNIT

if TYPE_CHECKING:
    import random

    from indoorsim.model.graph import WalkingGraph
    from indoorsim.model.particle import Particle

logger = logging.getLogger(__name__)

MISS = -1  # no reading at this timestep


def detect(
    graph: WalkingGraph,
    objects: Sequence[Particle],
    rng: random.Random,
    duration: int,
    success_rate: float,
    radius: float,
    unit: float = UNIT,
) -> list[list[int]]:
    """Sample one reading per object per timestep in [0, duration).

    Timestep j is taken at time j * unit on the objects' trajectories.

    A reading is MISS with probability 1 - success_rate; otherwise it is the
    detector covering the object's position at that timestep, or MISS when
    no detector covers it.

    Args:
        graph: Walking graph holding the detectors.
        objects: Objects whose trajectories cover [0, duration * unit).
        rng: Shared random source.
        duration: Number of timesteps.
        success_rate: Probability a reading is not dropped.
        radius: Detector coverage radius.
        unit: Time between consecutive timesteps.

    Returns:
        list[list[int]]: readings[i][t] for objects[i] at timestep t.
    """
    if not 0.0 <= success_rate <= 1.0:
        msg = f"success_rate must be in [0, 1], got {success_rate}"
        raise ValueError(msg)
    if radius < 0:
        msg = f"radius must be non-negative, got {radius}"
        raise ValueError(msg)
    if unit <= 0:
        msg = f"unit must be positive, got {unit}"
        raise ValueError(msg)

    readings = []
    for obj in objects:
        sequence = []
        for t in range(duration):
            if rng.random() > success_rate:
                sequence.append(MISS)
                continue
            detector = graph.detected_by(obj.position_at(graph, t * unit), radius)
            sequence.append(MISS if detector is None else detector)
        readings.append(sequence)

    logger.debug(
        "Sampled readings: objects=%d, duration=%d, hits=%d",
        len(objects),
        duration,
        sum(r != MISS for sequence in readings for r in sequence),
    )
    return readings
