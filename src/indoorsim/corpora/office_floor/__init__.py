"""The Office Floor corpus: one straight hall with rooms on both sides.

Node layout for room column i (n columns):
- hall junction i at (x_i, 0)
- door above at (x_i, hall_width/2), room above at the room centre
- door below and room below mirrored under the hall

Rooms are dead ends, so walkers entering a room turn back at its centre.
Detectors sit on every other hall junction and on every room centre.
"""

from __future__ import annotations

from typing import Any

from indoorsim.model import FloorPlan, WalkingGraph
from indoorsim.model.floorplan import DetectorDef, NodeDef, PassageDef, RegionDef

# Branch weights: walkers prefer staying in the hall over entering a room
HALL_PREFERENCE = 1.0
ROOM_PREFERENCE = 0.5


def create_floor_plan(
    rooms_per_side: int = 8,
    room_width: float = 400.0,
    room_depth: float = 400.0,
    hall_width: float = 200.0,
    anchor_spacing: float = 50.0,
) -> FloorPlan:
    """Create the office floor plan.

    Args:
        rooms_per_side: Number of rooms on each side of the hall.
        room_width: Width of each room along the hall.
        room_depth: Depth of each room away from the hall.
        hall_width: Width of the hall.
        anchor_spacing: Distance between anchors along passages.

    Returns:
        FloorPlan: Validated floor plan.
    """
    if rooms_per_side < 2:
        msg = f"rooms_per_side must be at least 2, got {rooms_per_side}"
        raise ValueError(msg)

    n = rooms_per_side
    half_hall = hall_width / 2
    length = n * room_width

    nodes: list[NodeDef] = []
    passages: list[PassageDef] = []
    regions = [
        RegionDef(name="hall", kind="hall", xmin=0, ymin=-half_hall, xmax=length, ymax=half_hall)
    ]
    detectors: list[DetectorDef] = []

    for i in range(n):
        x = (i + 0.5) * room_width
        hall, door_up, room_up, door_down, room_down = i, n + i, 2 * n + i, 3 * n + i, 4 * n + i

        nodes.extend(
            [
                NodeDef(id=hall, x=x, y=0.0, kind="hall"),
                NodeDef(id=door_up, x=x, y=half_hall, kind="door"),
                NodeDef(id=room_up, x=x, y=half_hall + room_depth / 2, kind="room"),
                NodeDef(id=door_down, x=x, y=-half_hall, kind="door"),
                NodeDef(id=room_down, x=x, y=-half_hall - room_depth / 2, kind="room"),
            ]
        )
        passages.extend(
            [
                PassageDef(a=hall, b=door_up, preference=ROOM_PREFERENCE),
                PassageDef(a=door_up, b=room_up, preference=ROOM_PREFERENCE),
                PassageDef(a=hall, b=door_down, preference=ROOM_PREFERENCE),
                PassageDef(a=door_down, b=room_down, preference=ROOM_PREFERENCE),
            ]
        )
        if i + 1 < n:
            passages.append(PassageDef(a=hall, b=i + 1, preference=HALL_PREFERENCE))

        regions.extend(
            [
                RegionDef(
                    name=f"room_{i}_north",
                    xmin=i * room_width,
                    ymin=half_hall,
                    xmax=(i + 1) * room_width,
                    ymax=half_hall + room_depth,
                ),
                RegionDef(
                    name=f"room_{i}_south",
                    xmin=i * room_width,
                    ymin=-half_hall - room_depth,
                    xmax=(i + 1) * room_width,
                    ymax=-half_hall,
                ),
            ]
        )

        detectors.append(DetectorDef(id=len(detectors), source=room_up, target=door_up))
        detectors.append(DetectorDef(id=len(detectors), source=room_down, target=door_down))
        if i % 2 == 0:
            detectors.append(DetectorDef(id=len(detectors), source=hall, target=door_up))

    return FloorPlan(
        nodes=nodes,
        passages=passages,
        regions=regions,
        detectors=detectors,
        anchor_spacing=anchor_spacing,
    )


def create_graph(**kwargs: Any) -> WalkingGraph:
    """Build the office floor walking graph (see create_floor_plan for options)."""
    return create_floor_plan(**kwargs).to_graph()
