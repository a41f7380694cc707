"""Floor-plan definitions: validated description of nodes, passages, regions, detectors.

A FloorPlan is plain data (loadable from JSON) that builds a WalkingGraph.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, model_validator

from indoorsim.model.graph import DEFAULT_ANCHOR_SPACING, Region, WalkingGraph
from indoorsim.model.position import Box, LandmarkPosition

logger = logging.getLogger(__name__)


class FloorPlanError(ValueError):
    """Exception raised when a floor-plan definition is malformed."""

    pass


class NodeDef(BaseModel):
    """A node of the walking graph."""

    id: int
    x: float
    y: float
    kind: Literal["room", "hall", "door"] = "hall"


class PassageDef(BaseModel):
    """A two-way passage between two nodes."""

    a: int
    b: int
    weight: float | None = Field(default=None, gt=0, description="Length; Euclidean if omitted")
    preference: float = Field(default=1.0, gt=0, description="Branch weight at junctions")


class RegionDef(BaseModel):
    """A room or hall rectangle."""

    name: str
    kind: Literal["room", "hall"] = "room"
    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @model_validator(mode="after")
    def check_extent(self) -> RegionDef:
        if self.xmax <= self.xmin or self.ymax <= self.ymin:
            raise ValueError(f"Region '{self.name}' has zero or negative area")
        return self


class DetectorDef(BaseModel):
    """A detector placed at a landmark position on an existing passage."""

    id: int = Field(ge=0)
    source: int
    target: int
    fraction: float = Field(default=0.0, ge=0.0, le=1.0)


class FloorPlan(BaseModel):
    """Complete floor-plan definition."""

    nodes: list[NodeDef] = Field(min_length=2)
    passages: list[PassageDef] = Field(min_length=1)
    regions: list[RegionDef] = Field(
        min_length=1, description="Rooms and halls query windows are drawn from"
    )
    detectors: list[DetectorDef] = Field(default_factory=list)
    anchor_spacing: float = Field(default=DEFAULT_ANCHOR_SPACING, gt=0)

    @model_validator(mode="after")
    def check_references(self) -> FloorPlan:
        node_ids = [node.id for node in self.nodes]
        if len(set(node_ids)) != len(node_ids):
            raise ValueError("Duplicate node ids in floor plan")

        known = set(node_ids)
        pairs = set()
        for passage in self.passages:
            if passage.a not in known or passage.b not in known:
                raise ValueError(f"Passage {passage.a}-{passage.b} references an unknown node")
            if passage.a == passage.b:
                raise ValueError(f"Passage {passage.a}-{passage.b} is a self loop")
            pairs.add(frozenset((passage.a, passage.b)))

        detector_ids = [detector.id for detector in self.detectors]
        if len(set(detector_ids)) != len(detector_ids):
            raise ValueError("Duplicate detector ids in floor plan")
        for detector in self.detectors:
            if frozenset((detector.source, detector.target)) not in pairs:
                raise ValueError(
                    f"Detector {detector.id} is not on a passage "
                    f"({detector.source}-{detector.target})"
                )
        return self

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FloorPlan:
        """Validate a floor plan from a dict.

        Raises:
            FloorPlanError: If the definition is malformed.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FloorPlanError(f"Invalid floor plan: {e}") from e

    @classmethod
    def load(cls, path: str | Path) -> FloorPlan:
        """Load and validate a floor plan from a JSON file.

        Raises:
            FloorPlanError: If the file is missing or the definition is malformed.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise FloorPlanError(f"Cannot read floor plan {path}: {e}") from e
        try:
            plan = cls.model_validate_json(text)
        except ValidationError as e:
            raise FloorPlanError(f"Invalid floor plan {path}: {e}") from e
        logger.info(
            "Loaded floor plan %s: nodes=%d, passages=%d, detectors=%d",
            path,
            len(plan.nodes),
            len(plan.passages),
            len(plan.detectors),
        )
        return plan

    def to_graph(self) -> WalkingGraph:
        """Build the walking graph described by this plan."""
        return WalkingGraph.from_passages(
            coordinates={node.id: (node.x, node.y) for node in self.nodes},
            passages=[(p.a, p.b, p.weight, p.preference) for p in self.passages],
            regions=[
                Region(name=r.name, kind=r.kind, box=Box(r.xmin, r.ymin, r.xmax, r.ymax))
                for r in self.regions
            ],
            detectors={
                d.id: LandmarkPosition(d.source, d.target, d.fraction) for d in self.detectors
            },
            anchor_spacing=self.anchor_spacing,
            kinds={node.id: node.kind for node in self.nodes},
        )
