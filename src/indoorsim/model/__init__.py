"""Domain model: LandmarkPosition, Particle, WalkingGraph, FloorPlan."""

from indoorsim.model.floorplan import FloorPlan, FloorPlanError
from indoorsim.model.graph import DegenerateGeometryError, Detector, Region, WalkingGraph
from indoorsim.model.particle import Particle
from indoorsim.model.position import Box, LandmarkPosition, Point, linear_interpolate

__all__ = [
    "Box",
    "DegenerateGeometryError",
    "Detector",
    "FloorPlan",
    "FloorPlanError",
    "LandmarkPosition",
    "Particle",
    "Point",
    "Region",
    "WalkingGraph",
    "linear_interpolate",
]
