"""Simulation engine: detection, inference, range-query sweep and scoring."""

from indoorsim.engine.detection import MISS, detect
from indoorsim.engine.index import PointIndex
from indoorsim.engine.metrics import (
    Measurement,
    WindowStatistics,
    f1_score,
    precision,
    recall,
)
from indoorsim.engine.predictor import AnchorMap, Predictor, find_start, predict
from indoorsim.engine.query import RangeQueryEvaluator, Snapshot
from indoorsim.engine.simulation import Simulation, run_simulation

__all__ = [
    "MISS",
    "AnchorMap",
    "Measurement",
    "PointIndex",
    "Predictor",
    "RangeQueryEvaluator",
    "Simulation",
    "Snapshot",
    "WindowStatistics",
    "detect",
    "f1_score",
    "find_start",
    "precision",
    "predict",
    "recall",
    "run_simulation",
]
