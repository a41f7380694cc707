"""WalkingGraph: weighted topology of rooms and halls plus the geometry queries on it.

Nodes carry planar coordinates; every walkable passage is stored as two
directed edges with a `weight` (length) and a `preference` (branch weight
used when a walker picks its next edge). Detectors sit at landmark positions
on the network; anchors are discrete points along the passages onto which
inferred positions are snapped.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from itertools import accumulate
from typing import TYPE_CHECKING, Any

import networkx as nx
import numpy as np
from scipy.spatial import cKDTree

from indoorsim.model.position import Box, LandmarkPosition, Point, linear_interpolate

if TYPE_CHECKING:
    import random

logger = logging.getLogger(__name__)

DEFAULT_ANCHOR_SPACING = 50.0


class DegenerateGeometryError(ValueError):
    """Raised for geometry that violates the model: zero-length edges, dead nodes, etc."""

    pass


@dataclass(frozen=True)
class Region:
    """A room or hall: an axis-aligned area windows are drawn from."""

    name: str
    kind: str  # "room" or "hall"
    box: Box


@dataclass(frozen=True)
class Detector:
    """A fixed sensor located on the network."""

    id: int
    position: LandmarkPosition
    point: Point


class WalkingGraph:
    """Weighted directed graph with the geometry oracles the simulator needs."""

    def __init__(
        self,
        graph: nx.DiGraph,
        regions: Sequence[Region] = (),
        detectors: Mapping[int, LandmarkPosition] | None = None,
        anchor_spacing: float = DEFAULT_ANCHOR_SPACING,
    ) -> None:
        if graph.number_of_edges() == 0:
            raise DegenerateGeometryError("Walking graph has no edges")
        if anchor_spacing <= 0:
            msg = f"anchor_spacing must be positive, got {anchor_spacing}"
            raise ValueError(msg)

        for node, data in graph.nodes(data=True):
            if "x" not in data or "y" not in data:
                msg = f"Node {node} has no coordinates"
                raise DegenerateGeometryError(msg)
        for source, target, data in graph.edges(data=True):
            if data.get("weight", 0.0) <= 0:
                msg = f"Edge {source}->{target} has non-positive weight {data.get('weight')}"
                raise DegenerateGeometryError(msg)
            data.setdefault("preference", 1.0)

        self._graph = graph
        self.regions = list(regions)
        self.anchor_spacing = anchor_spacing

        # Length-weighted sampling table for uniform positions on the network
        self._edges: list[tuple[int, int]] = list(graph.edges())
        self._edge_cum_weights = list(
            accumulate(graph[s][t]["weight"] for s, t in self._edges)
        )

        self.detectors: dict[int, Detector] = {}
        for detector_id, position in (detectors or {}).items():
            self.weight(position.source, position.target)
            self.detectors[detector_id] = Detector(
                id=detector_id, position=position, point=self.point_of(position)
            )
        self._detector_ids = list(self.detectors)
        self._detector_tree = (
            cKDTree(np.array([d.point for d in self.detectors.values()]))
            if self.detectors
            else None
        )
        self._coverage: dict[tuple[int, float], list[tuple[int, int, float, float]]] = {}

        self._anchor_points = np.array(self._place_anchors())
        self._anchor_tree = cKDTree(self._anchor_points)

        logger.debug(
            "Walking graph ready: nodes=%d, edges=%d, detectors=%d, anchors=%d",
            graph.number_of_nodes(),
            graph.number_of_edges(),
            len(self.detectors),
            len(self._anchor_points),
        )

    @classmethod
    def from_passages(
        cls,
        coordinates: Mapping[int, Point],
        passages: Iterable[Sequence[Any]],
        regions: Sequence[Region] = (),
        detectors: Mapping[int, LandmarkPosition] | None = None,
        anchor_spacing: float = DEFAULT_ANCHOR_SPACING,
        kinds: Mapping[int, str] | None = None,
    ) -> WalkingGraph:
        """Build a graph from node coordinates and two-way passages.

        Each passage is (a, b), (a, b, weight) or (a, b, weight, preference).
        A missing or None weight means the Euclidean distance between the nodes.
        """
        graph = nx.DiGraph()
        for node, (x, y) in coordinates.items():
            graph.add_node(node, x=float(x), y=float(y), kind=(kinds or {}).get(node, "hall"))

        for passage in passages:
            a, b = passage[0], passage[1]
            if a not in graph or b not in graph:
                msg = f"Passage {a}-{b} references an unknown node"
                raise DegenerateGeometryError(msg)
            weight = passage[2] if len(passage) > 2 and passage[2] is not None else None
            if weight is None:
                weight = math.dist(coordinates[a], coordinates[b])
            preference = passage[3] if len(passage) > 3 else 1.0
            graph.add_edge(a, b, weight=float(weight), preference=float(preference))
            graph.add_edge(b, a, weight=float(weight), preference=float(preference))

        return cls(graph, regions=regions, detectors=detectors, anchor_spacing=anchor_spacing)

    @property
    def graph(self) -> nx.DiGraph:
        return self._graph

    @property
    def total_area(self) -> float:
        return sum(region.box.area for region in self.regions)

    @property
    def num_anchors(self) -> int:
        return len(self._anchor_points)

    # -- topology ---------------------------------------------------------

    def weight(self, source: int, target: int) -> float:
        """Length of the edge source → target."""
        try:
            return self._graph[source][target]["weight"]
        except KeyError:
            msg = f"No edge {source}->{target} in walking graph"
            raise DegenerateGeometryError(msg) from None

    def random_position(self, rng: random.Random) -> LandmarkPosition:
        """Uniformly random point on the network (edges weighted by length)."""
        source, target = rng.choices(self._edges, cum_weights=self._edge_cum_weights)[0]
        return LandmarkPosition(source, target, rng.random())

    def random_next(self, current: int, predecessor: int, rng: random.Random) -> int:
        """Pick the next node after reaching `current`, never going straight back.

        Successors are weighted by edge preference. At a dead end, where the
        predecessor is the only way out, the walker turns back.
        """
        successors = [n for n in self._graph.successors(current) if n != predecessor]
        if not successors:
            if self._graph.has_edge(current, predecessor):
                return predecessor
            msg = f"Node {current} has no outgoing edge"
            raise DegenerateGeometryError(msg)
        if len(successors) == 1:
            return successors[0]
        weights = [self._graph[current][n]["preference"] for n in successors]
        return rng.choices(successors, weights=weights)[0]

    # -- geometry ---------------------------------------------------------

    def coordinate(self, node: int) -> Point:
        data = self._graph.nodes[node]
        return (data["x"], data["y"])

    def point_of(self, position: LandmarkPosition) -> Point:
        """Planar coordinates of a landmark position."""
        return linear_interpolate(
            self.coordinate(position.source),
            self.coordinate(position.target),
            position.fraction,
        )

    # -- detectors --------------------------------------------------------

    def detected_by(self, position: LandmarkPosition, radius: float) -> int | None:
        """Id of the nearest detector within radius of the position, if any."""
        if radius < 0:
            msg = f"radius must be non-negative, got {radius}"
            raise ValueError(msg)
        if self._detector_tree is None:
            return None
        distance, index = self._detector_tree.query(self.point_of(position))
        if distance > radius:
            return None
        return self._detector_ids[int(index)]

    def covers(self, position: LandmarkPosition, radius: float, detector_id: int) -> bool:
        """Whether the given detector would see an object at this position."""
        detector = self._detector(detector_id)
        return math.dist(self.point_of(position), detector.point) <= radius

    def random_position_near(
        self, detector_id: int, radius: float, rng: random.Random
    ) -> LandmarkPosition:
        """Uniformly random network position inside a detector's coverage disc."""
        detector = self._detector(detector_id)
        intervals = self._coverage_intervals(detector, radius)
        lengths = [(f1 - f0) * self.weight(s, t) for s, t, f0, f1 in intervals]
        if sum(lengths) <= 0:
            return detector.position
        source, target, f0, f1 = rng.choices(intervals, weights=lengths)[0]
        return LandmarkPosition(source, target, rng.uniform(f0, f1))

    def _detector(self, detector_id: int) -> Detector:
        try:
            return self.detectors[detector_id]
        except KeyError:
            msg = f"Unknown detector {detector_id}"
            raise ValueError(msg) from None

    def _coverage_intervals(
        self, detector: Detector, radius: float
    ) -> list[tuple[int, int, float, float]]:
        """Fraction intervals [f0, f1] of each directed edge inside the coverage disc."""
        key = (detector.id, radius)
        if key in self._coverage:
            return self._coverage[key]

        cx, cy = detector.point
        intervals = []
        for source, target in self._edges:
            ax, ay = self.coordinate(source)
            bx, by = self.coordinate(target)
            dx, dy = bx - ax, by - ay
            mx, my = ax - cx, ay - cy
            a = dx * dx + dy * dy
            if a == 0:
                continue
            b = 2 * (mx * dx + my * dy)
            c = mx * mx + my * my - radius * radius
            disc = b * b - 4 * a * c
            if disc < 0:
                continue
            root = math.sqrt(disc)
            f0 = max(0.0, (-b - root) / (2 * a))
            f1 = min(1.0, (-b + root) / (2 * a))
            if f1 > f0:
                intervals.append((source, target, f0, f1))

        self._coverage[key] = intervals
        return intervals

    # -- anchors ----------------------------------------------------------

    def _place_anchors(self) -> list[Point]:
        """Every node, plus points every anchor_spacing along each passage."""
        points = [self.coordinate(node) for node in self._graph.nodes]
        seen: set[frozenset[int]] = set()
        for source, target in self._edges:
            pair = frozenset((source, target))
            if pair in seen:
                continue
            seen.add(pair)
            steps = math.ceil(self.weight(source, target) / self.anchor_spacing)
            a, b = self.coordinate(source), self.coordinate(target)
            points.extend(linear_interpolate(a, b, k / steps) for k in range(1, steps))
        return points

    def align(self, position: LandmarkPosition) -> int:
        """Id of the anchor nearest to the position."""
        _, index = self._anchor_tree.query(self.point_of(position))
        return int(index)

    def anchor_point(self, anchor_id: int) -> Point:
        x, y = self._anchor_points[anchor_id]
        return (float(x), float(y))

    def anchors_in(self, box: Box) -> list[int]:
        """Ids of the anchors inside the box."""
        radius = max(box.width, box.height) / 2
        candidates = self._anchor_tree.query_ball_point(box.center, r=radius, p=np.inf)
        return sorted(i for i in candidates if box.contains(self.anchor_point(i)))

    # -- query windows ----------------------------------------------------

    def random_window(self, ratio: float, rng: random.Random) -> list[tuple[Box, float]]:
        """Draw a square query window and split it over the regions it overlaps.

        The window area is `ratio` times the total room/hall area. Its centre
        falls in a region drawn with probability proportional to region area.

        Returns:
            (clipped box, overlap / window area) for every overlapped region.
        """
        if ratio <= 0:
            msg = f"Window ratio must be positive, got {ratio}"
            raise ValueError(msg)
        if not self.regions:
            raise ValueError("Walking graph has no regions to draw windows from")

        side = math.sqrt(ratio * self.total_area)
        region = rng.choices(self.regions, weights=[r.box.area for r in self.regions])[0]
        center = (
            rng.uniform(region.box.xmin, region.box.xmax),
            rng.uniform(region.box.ymin, region.box.ymax),
        )
        window = Box.around(center, side, side)

        pieces = []
        for candidate in self.regions:
            clipped = window.intersection(candidate.box)
            if clipped is not None:
                pieces.append((clipped, clipped.area / window.area))
        return pieces
