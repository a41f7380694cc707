"""PointIndex: planar point set with payloads, for range and nearest-neighbour queries."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Generic, TypeVar

import numpy as np
from scipy.spatial import cKDTree

from indoorsim.model.position import Box, Point

T = TypeVar("T")


class PointIndex(Generic[T]):
    """Points with attached payloads, queried by box or by proximity.

    The k-d tree is rebuilt lazily on the first query after an insert.
    """

    def __init__(self) -> None:
        self._points: list[Point] = []
        self._payloads: list[T] = []
        self._coords: np.ndarray | None = None
        self._tree: cKDTree | None = None

    def __len__(self) -> int:
        return len(self._points)

    def insert(self, items: Iterable[tuple[Point, T]]) -> None:
        """Add a batch of (point, payload) pairs."""
        for point, payload in items:
            self._points.append((float(point[0]), float(point[1])))
            self._payloads.append(payload)
        self._tree = None

    def _build(self) -> cKDTree | None:
        if self._tree is None and self._points:
            self._coords = np.array(self._points)
            self._tree = cKDTree(self._coords)
        return self._tree

    def range_query(self, box: Box) -> list[T]:
        """Payloads of the points inside the box (borders included)."""
        tree = self._build()
        if tree is None:
            return []
        radius = max(box.width, box.height) / 2
        candidates = tree.query_ball_point(box.center, r=radius, p=np.inf)
        return [self._payloads[i] for i in sorted(candidates) if box.contains(self._points[i])]

    def nearest(self, point: Point, k: int = 1) -> list[T]:
        """Payloads of the k points closest to `point`, nearest first."""
        if k < 1:
            msg = f"k must be at least 1, got {k}"
            raise ValueError(msg)
        tree = self._build()
        if tree is None:
            return []
        k = min(k, len(self._points))
        _, indices = tree.query(point, k=k)
        return [self._payloads[int(i)] for i in np.atleast_1d(indices)]
