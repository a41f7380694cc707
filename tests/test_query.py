"""Tests for the point index and the windowed range-query sweep."""

import math

import pytest

from indoorsim.engine.detection import detect
from indoorsim.engine.index import PointIndex
from indoorsim.engine.metrics import Measurement
from indoorsim.engine.predictor import Predictor
from indoorsim.engine.query import RangeQueryEvaluator, Snapshot
from indoorsim.model.particle import Particle
from indoorsim.model.position import Box, LandmarkPosition

RADIUS = 30.0
DURATION = 20


@pytest.fixture
def walked(line_graph, rng):
    """Five objects walked for DURATION ticks, with full-rate readings."""
    objects = [Particle.create(line_graph, i, rng) for i in range(5)]
    for _ in range(DURATION):
        for obj in objects:
            obj.advance(line_graph, rng)
    readings = detect(line_graph, objects, rng, DURATION, success_rate=1.0, radius=RADIUS)
    return objects, readings


def make_evaluator(graph, objects, readings, **kwargs):
    kwargs.setdefault("predictor", Predictor(num_particle=8, radius=RADIUS, min_observations=1))
    kwargs.setdefault("num_timestamp", 2)
    kwargs.setdefault("num_test_per_timestamp", 20)
    kwargs.setdefault("query_time_min", 5.0)
    return RangeQueryEvaluator(graph=graph, objects=objects, readings=readings, **kwargs)


class PerfectEvaluator(RangeQueryEvaluator):
    """Evaluator whose predictions always equal the truth."""

    def occupancy(self, snapshot, window):
        real, _ = super().occupancy(snapshot, window)
        return real, {object_id: 1.0 for object_id in real}


class TestPointIndex:
    """Tests for PointIndex."""

    @pytest.fixture
    def index(self):
        index = PointIndex()
        index.insert([((0.0, 0.0), "a"), ((10.0, 0.0), "b"), ((10.0, 10.0), "c"), ((50.0, 50.0), "d")])
        return index

    def test_len(self, index):
        assert len(index) == 4

    def test_range_query(self, index):
        """Only points inside the box are returned."""
        assert sorted(index.range_query(Box(-1.0, -1.0, 11.0, 5.0))) == ["a", "b"]
        assert index.range_query(Box(20.0, 20.0, 30.0, 30.0)) == []

    def test_nearest(self, index):
        """nearest() orders payloads by distance."""
        assert index.nearest((10.0, 2.0), k=2) == ["b", "c"]
        assert index.nearest((49.0, 49.0)) == ["d"]

    def test_nearest_clamps_k(self, index):
        """Asking for more points than stored returns all of them."""
        assert len(index.nearest((0.0, 0.0), k=10)) == 4

    def test_nearest_invalid_k(self, index):
        with pytest.raises(ValueError, match="k must be at least 1"):
            index.nearest((0.0, 0.0), k=0)

    def test_empty_index(self):
        """An empty index answers every query with nothing."""
        index = PointIndex()

        assert index.range_query(Box(0.0, 0.0, 1.0, 1.0)) == []
        assert index.nearest((0.0, 0.0)) == []

    def test_insert_after_query(self, index):
        """Points inserted after a query are visible to the next query."""
        index.range_query(Box(-1.0, -1.0, 1.0, 1.0))
        index.insert([((0.5, 0.5), "e")])

        assert sorted(index.range_query(Box(-1.0, -1.0, 1.0, 1.0))) == ["a", "e"]


class TestEvaluatorValidation:
    """Tests for RangeQueryEvaluator construction."""

    def test_no_objects(self, line_graph):
        with pytest.raises(ValueError, match="No objects"):
            RangeQueryEvaluator(graph=line_graph, objects=[], readings=[])

    def test_mismatched_readings(self, line_graph, walked):
        objects, readings = walked

        with pytest.raises(ValueError, match="reading sequences"):
            make_evaluator(line_graph, objects, readings[:-1])

    def test_query_time_min_beyond_duration(self, line_graph, walked):
        objects, readings = walked

        with pytest.raises(ValueError, match="query_time_min"):
            make_evaluator(line_graph, objects, readings, query_time_min=float(DURATION))

    def test_query_time_min_against_time_span(self, line_graph, walked):
        """With half-unit readings the evaluator covers half the time."""
        objects, readings = walked
        predictor = Predictor(radius=RADIUS, unit=0.5)

        evaluator = make_evaluator(line_graph, objects, readings, predictor=predictor, query_time_min=9.0)

        assert evaluator.time_span == pytest.approx(10.0)
        with pytest.raises(ValueError, match="query_time_min"):
            make_evaluator(line_graph, objects, readings, predictor=predictor, query_time_min=10.0)

    def test_measure_before_run(self, line_graph, walked):
        objects, readings = walked

        with pytest.raises(RuntimeError, match="call run"):
            make_evaluator(line_graph, objects, readings).measure(Measurement.F1)


class TestOccupancy:
    """Tests for true vs. predicted occupancy inside a window."""

    @pytest.fixture
    def snapshot(self, line_graph):
        truth = PointIndex()
        truth.insert([((50.0, 0.0), 0), ((300.0, 0.0), 1)])
        anchors = {}
        for position, object_id, mass in [
            (LandmarkPosition(0, 1, 0.5), 0, 0.75),
            (LandmarkPosition(1, 2, 0.0), 0, 0.25),
            (LandmarkPosition(3, 4, 0.0), 1, 1.0),
        ]:
            anchors.setdefault(line_graph.align(position), {})[object_id] = mass
        return Snapshot(time=10.0, truth=truth, anchors=anchors, predicted_objects=2)

    def test_single_piece(self, line_graph, walked, snapshot):
        """Masses of the enclosed anchors are summed per object."""
        evaluator = make_evaluator(line_graph, *walked)

        real, predicted = evaluator.occupancy(snapshot, [(Box(0.0, -10.0, 120.0, 10.0), 1.0)])

        assert real == {0}
        assert predicted == {0: pytest.approx(1.0)}

    def test_shared_border_counted_once(self, line_graph, walked, snapshot):
        """An anchor on the border of two pieces contributes once."""
        evaluator = make_evaluator(line_graph, *walked)
        window = [
            (Box(0.0, -200.0, 100.0, 200.0), 0.5),
            (Box(100.0, -200.0, 200.0, 200.0), 0.5),
        ]

        _, predicted = evaluator.occupancy(snapshot, window)

        assert predicted == {0: pytest.approx(1.0)}

    def test_empty_window(self, line_graph, walked, snapshot):
        """A window away from every object is empty on both sides."""
        evaluator = make_evaluator(line_graph, *walked)

        assert evaluator.occupancy(snapshot, [(Box(0.0, 20.0, 400.0, 40.0), 1.0)]) == (set(), {})


class TestSweep:
    """Tests for the full sweep."""

    def test_snapshot(self, line_graph, walked, rng):
        """A snapshot indexes every object and sums predicted masses."""
        objects, readings = walked
        evaluator = make_evaluator(line_graph, objects, readings)

        snapshot = evaluator.snapshot(12.5, rng)

        assert len(snapshot.truth) == len(objects)
        total = sum(mass for by_object in snapshot.anchors.values() for mass in by_object.values())
        assert total == pytest.approx(snapshot.predicted_objects)

    def test_perfect_predictions_score_one(self, line_graph, walked, rng):
        """When predictions equal the truth every metric is exactly 1."""
        objects, readings = walked
        evaluator = PerfectEvaluator(
            graph=line_graph,
            objects=objects,
            readings=readings,
            predictor=Predictor(num_particle=4, radius=RADIUS),
            num_timestamp=2,
            num_test_per_timestamp=20,
            query_time_min=5.0,
        )

        evaluator.run([0.5, 1.0], rng)

        for measurement in Measurement:
            assert evaluator.measure(measurement) == [(1.0, 0.0), (1.0, 0.0)]

    def test_only_non_empty_windows_scored(self, line_graph, walked, rng):
        """Trials count at most num_timestamp * num_test_per_timestamp per size."""
        evaluator = make_evaluator(line_graph, *walked)

        stats = evaluator.run([0.01, 1.0], rng)

        assert 0 <= stats.count(0) <= 40
        assert 0 < stats.count(1) <= 40

    def test_metrics_in_unit_interval(self, line_graph, walked, rng):
        """Scored means and deviations are within [0, 1] (or nan when unscored)."""
        evaluator = make_evaluator(line_graph, *walked)
        evaluator.run([0.2, 1.0], rng)

        for measurement in Measurement:
            for mean, std in evaluator.measure(measurement):
                assert math.isnan(mean) or 0.0 <= mean <= 1.0
                assert math.isnan(std) or 0.0 <= std <= 0.5
