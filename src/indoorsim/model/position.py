"""Position value types: landmark positions on the walking graph, points and boxes."""

from __future__ import annotations

from dataclasses import dataclass

Point = tuple[float, float]


@dataclass(frozen=True)
class LandmarkPosition:
    """A point on the directed edge source → target.

    fraction 0.0 is at source, 1.0 at target. source == target with
    fraction 0.0 means the object is at rest on that node.
    """

    source: int
    target: int
    fraction: float = 0.0

    @classmethod
    def at_rest(cls, node: int) -> LandmarkPosition:
        """Stationary position on a node."""
        return cls(source=node, target=node, fraction=0.0)

    @property
    def is_at_rest(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle used for query windows and regions."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def __post_init__(self) -> None:
        if self.xmax < self.xmin or self.ymax < self.ymin:
            msg = f"Box has negative extent: {self}"
            raise ValueError(msg)

    @classmethod
    def around(cls, center: Point, width: float, height: float) -> Box:
        """Box of the given size centred on a point."""
        cx, cy = center
        return cls(cx - width / 2, cy - height / 2, cx + width / 2, cy + height / 2)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Point:
        return ((self.xmin + self.xmax) / 2, (self.ymin + self.ymax) / 2)

    def contains(self, point: Point) -> bool:
        x, y = point
        return self.xmin <= x <= self.xmax and self.ymin <= y <= self.ymax

    def intersection(self, other: Box) -> Box | None:
        """Overlapping box, or None when the boxes do not overlap."""
        xmin = max(self.xmin, other.xmin)
        ymin = max(self.ymin, other.ymin)
        xmax = min(self.xmax, other.xmax)
        ymax = min(self.ymax, other.ymax)
        if xmax <= xmin or ymax <= ymin:
            return None
        return Box(xmin, ymin, xmax, ymax)


def linear_interpolate(a: Point, b: Point, fraction: float) -> Point:
    """Point at `fraction` of the way from a to b."""
    return (a[0] + (b[0] - a[0]) * fraction, a[1] + (b[1] - a[1]) * fraction)
