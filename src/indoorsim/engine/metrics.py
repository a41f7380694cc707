"""Accuracy metrics for predicted occupancy against true occupancy.

Each metric follows the signature:
    metric(real: set[int], predicted: dict[int, float], threshold: float) -> float

`real` holds the ids truly inside a window; `predicted` maps ids to the
probability mass predicted inside it. An id counts as predicted once its
mass reaches the threshold.
"""

from __future__ import annotations

import logging
import math
import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5


class Measurement(StrEnum):
    """Scored metrics."""

    RECALL = "recall"
    PRECISION = "precision"
    F1 = "f1"


def hit(real: set[int], predicted: Mapping[int, float], threshold: float) -> tuple[int, int]:
    """Count (true positives, predicted positives) at the threshold."""
    true_positives = 0
    positives = 0
    for object_id, mass in predicted.items():
        if mass >= threshold:
            positives += 1
            if object_id in real:
                true_positives += 1
    return true_positives, positives


def recall(
    real: set[int], predicted: Mapping[int, float], threshold: float = DEFAULT_THRESHOLD
) -> float:
    """Fraction of the real ids that were predicted. 0 when nothing is real."""
    if not real:
        return 0.0
    return hit(real, predicted, threshold)[0] / len(real)


def precision(
    real: set[int], predicted: Mapping[int, float], threshold: float = DEFAULT_THRESHOLD
) -> float:
    """Fraction of the predicted ids that are real. 0 when nothing is real or predicted."""
    if not real:
        return 0.0
    true_positives, positives = hit(real, predicted, threshold)
    if positives == 0:
        return 0.0
    return true_positives / positives


def f1_score(
    real: set[int], predicted: Mapping[int, float], threshold: float = DEFAULT_THRESHOLD
) -> float:
    """Harmonic mean of recall and precision."""
    r = recall(real, predicted, threshold)
    p = precision(real, predicted, threshold)
    return harmonic_mean(r, p)


def harmonic_mean(a: float, b: float) -> float:
    """2ab / (a + b), or 0 when both are (numerically) zero."""
    if a + b < sys.float_info.epsilon:
        return 0.0
    return 2.0 * a * b / (a + b)


MEASURES: dict[Measurement, Callable[[set[int], Mapping[int, float], float], float]] = {
    Measurement.RECALL: recall,
    Measurement.PRECISION: precision,
    Measurement.F1: f1_score,
}


@dataclass
class WindowStatistics:
    """Per-metric, per-window-size samples with mean/stddev summaries."""

    window_sizes: Sequence[float]
    threshold: float = DEFAULT_THRESHOLD
    samples: dict[Measurement, list[list[float]]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.window_sizes:
            raise ValueError("At least one window size is required")
        for measurement in Measurement:
            self.samples.setdefault(measurement, [[] for _ in self.window_sizes])

    def add(self, size_index: int, real: set[int], predicted: Mapping[int, float]) -> None:
        """Score one trial for the window size at size_index."""
        for measurement, metric in MEASURES.items():
            self.samples[measurement][size_index].append(metric(real, predicted, self.threshold))

    def count(self, size_index: int) -> int:
        """Number of scored trials for a window size."""
        return len(self.samples[Measurement.RECALL][size_index])

    def summary(self, measurement: Measurement) -> list[tuple[float, float]]:
        """(mean, population stddev) of the metric for each window size.

        A window size with no scored trial yields (nan, nan).
        """
        results = []
        for size, values in zip(self.window_sizes, self.samples[measurement], strict=True):
            if not values:
                logger.warning("No scored trials for window size %s", size)
                results.append((math.nan, math.nan))
                continue
            data = np.asarray(values, dtype=float)
            results.append((float(data.mean()), float(data.std())))
        return results
