"""Tests for position value types: LandmarkPosition, Box, linear_interpolate."""

import pytest

from indoorsim.model.position import Box, LandmarkPosition, linear_interpolate


class TestLandmarkPosition:
    """Tests for LandmarkPosition."""

    def test_named_fields(self):
        """Fields should be accessible by name."""
        pos = LandmarkPosition(source=3, target=4, fraction=0.25)

        assert pos.source == 3
        assert pos.target == 4
        assert pos.fraction == 0.25

    def test_default_fraction_is_zero(self):
        """A position without fraction should sit on its source."""
        assert LandmarkPosition(1, 2).fraction == 0.0

    def test_at_rest(self):
        """at_rest should build a stationary position on a node."""
        pos = LandmarkPosition.at_rest(7)

        assert pos == LandmarkPosition(7, 7, 0.0)
        assert pos.is_at_rest

    def test_moving_position_is_not_at_rest(self):
        """A position between two nodes is not at rest."""
        assert not LandmarkPosition(1, 2, 0.5).is_at_rest

    def test_positions_are_immutable(self):
        """LandmarkPosition should be frozen."""
        pos = LandmarkPosition(1, 2, 0.5)

        with pytest.raises(AttributeError):
            pos.fraction = 0.7  # type: ignore[misc]


class TestBox:
    """Tests for Box."""

    def test_dimensions(self):
        """Width, height, area and center should follow from the corners."""
        box = Box(0.0, 0.0, 4.0, 2.0)

        assert box.width == 4.0
        assert box.height == 2.0
        assert box.area == 8.0
        assert box.center == (2.0, 1.0)

    def test_negative_extent_rejected(self):
        """A box with max below min is invalid."""
        with pytest.raises(ValueError, match="negative extent"):
            Box(1.0, 0.0, 0.0, 1.0)

    def test_around(self):
        """around() should center a box on a point."""
        box = Box.around((10.0, 20.0), 4.0, 6.0)

        assert box == Box(8.0, 17.0, 12.0, 23.0)

    def test_contains_inclusive(self):
        """Points on the border are inside."""
        box = Box(0.0, 0.0, 1.0, 1.0)

        assert box.contains((0.5, 0.5))
        assert box.contains((1.0, 0.0))
        assert not box.contains((1.5, 0.5))

    def test_intersection(self):
        """Overlapping boxes should intersect in their common part."""
        a = Box(0.0, 0.0, 2.0, 2.0)
        b = Box(1.0, 1.0, 3.0, 3.0)

        assert a.intersection(b) == Box(1.0, 1.0, 2.0, 2.0)

    def test_touching_boxes_do_not_intersect(self):
        """Boxes that only share an edge have no overlap area."""
        a = Box(0.0, 0.0, 1.0, 1.0)
        b = Box(1.0, 0.0, 2.0, 1.0)

        assert a.intersection(b) is None


class TestLinearInterpolate:
    """Tests for linear_interpolate."""

    def test_endpoints(self):
        """Fraction 0 and 1 should give the endpoints."""
        assert linear_interpolate((0.0, 0.0), (10.0, 20.0), 0.0) == (0.0, 0.0)
        assert linear_interpolate((0.0, 0.0), (10.0, 20.0), 1.0) == (10.0, 20.0)

    def test_midpoint(self):
        """Fraction 0.5 should give the midpoint."""
        assert linear_interpolate((2.0, 2.0), (4.0, 6.0), 0.5) == (3.0, 4.0)
