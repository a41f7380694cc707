"""Shared fixtures: small walking graphs and a seeded random source."""

from __future__ import annotations

import logging
import random

import pytest

from indoorsim.model.graph import Region, WalkingGraph
from indoorsim.model.position import Box, LandmarkPosition


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() so caplog sees records from every test."""
    yield
    for name in ("indoorsim", "py.warnings"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
    logging.captureWarnings(False)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so every test is reproducible."""
    return random.Random(1234)


@pytest.fixture
def two_node_graph() -> WalkingGraph:
    """Nodes 0 and 1 joined by a single passage of length 10."""
    return WalkingGraph.from_passages(
        coordinates={0: (0.0, 0.0), 1: (10.0, 0.0)},
        passages=[(0, 1, 10.0)],
        regions=[Region(name="hall", kind="hall", box=Box(-5.0, -5.0, 15.0, 5.0))],
    )


@pytest.fixture
def line_graph() -> WalkingGraph:
    """Five nodes on the x axis, 100 apart, with a detector on every node.

    Detector i sits on node i. Both ends are dead ends.
    """
    coordinates = {i: (100.0 * i, 0.0) for i in range(5)}
    detectors = {i: LandmarkPosition(i, i + 1, 0.0) for i in range(4)}
    detectors[4] = LandmarkPosition(4, 3, 0.0)
    return WalkingGraph.from_passages(
        coordinates=coordinates,
        passages=[(i, i + 1) for i in range(4)],
        regions=[Region(name="hall", kind="hall", box=Box(-50.0, -50.0, 450.0, 50.0))],
        detectors=detectors,
    )


@pytest.fixture
def junction_graph() -> WalkingGraph:
    """Node 0 joined to 1, 2 and 3; the branch to 3 has zero preference."""
    return WalkingGraph.from_passages(
        coordinates={0: (0.0, 0.0), 1: (-100.0, 0.0), 2: (100.0, 0.0), 3: (0.0, 100.0)},
        passages=[(0, 1, None, 1.0), (0, 2, None, 1.0), (0, 3, None, 0.0)],
    )
