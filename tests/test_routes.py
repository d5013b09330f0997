import pytest

from hazard_watch.errors import ValidationError
from hazard_watch.index import HazardIndex
from hazard_watch.models import GeoPoint, HazardCategory
from hazard_watch.proximity import ProximityQueryService
from hazard_watch.routes import RouteSafetyEvaluator


def _evaluator(*hazards: tuple[float, float]) -> tuple[RouteSafetyEvaluator, list]:
    index = HazardIndex()
    records = [
        index.insert(category=HazardCategory.AGGRESSIVE_DOG, location=GeoPoint(lat, lon), reporter_id="walker-1")
        for lat, lon in hazards
    ]
    return RouteSafetyEvaluator(ProximityQueryService(index)), records


def test_hazard_at_segment_midpoint_is_detected() -> None:
    evaluator, records = _evaluator((37.50, 127.005))
    report = evaluator.evaluate([GeoPoint(37.50, 127.00), GeoPoint(37.50, 127.01)], buffer_m=50)

    assert report.has_hazard
    assert [r.id for r in report.hazards] == [records[0].id]
    assert report.segments_checked == 1


def test_search_circle_covers_half_the_segment_plus_buffer() -> None:
    center, radius = RouteSafetyEvaluator.search_circle(GeoPoint(37.50, 127.00), GeoPoint(37.50, 127.01), 100)
    assert center.longitude == pytest.approx(127.005)
    assert radius == pytest.approx(441.1 + 100, abs=1.0)


def test_hazard_well_off_the_route_is_ignored() -> None:
    evaluator, _ = _evaluator((37.509, 127.005))
    assert not evaluator.has_hazard(GeoPoint(37.50, 127.00), GeoPoint(37.50, 127.01), 100)


def test_single_circle_over_approximates_the_segment_buffer() -> None:
    # ~445 m north of the midpoint: farther than the buffer from the line, inside the circle.
    evaluator, _ = _evaluator((37.504, 127.005))
    assert evaluator.has_hazard(GeoPoint(37.50, 127.00), GeoPoint(37.50, 127.01), 100)


def test_zero_length_route_uses_buffer_as_radius() -> None:
    point = GeoPoint(37.50, 127.00)
    inside, _ = _evaluator((37.5004, 127.00))
    outside, _ = _evaluator((37.5005, 127.00))

    assert RouteSafetyEvaluator.search_circle(point, point, 50)[1] == 50
    assert inside.has_hazard(point, point, 50)
    assert not outside.has_hazard(point, point, 50)


def test_polyline_checks_each_segment_and_unions_results() -> None:
    evaluator, records = _evaluator((37.50, 127.005), (37.505, 127.01), (37.50, 127.01), (37.60, 127.20))
    route = [GeoPoint(37.50, 127.00), GeoPoint(37.50, 127.01), GeoPoint(37.51, 127.01)]

    report = evaluator.evaluate(route, buffer_m=50)

    assert report.has_hazard
    assert report.segments_checked == 2
    assert [r.id for r in report.hazards] == [r.id for r in records[:3]]


def test_invalid_routes_are_rejected() -> None:
    evaluator, _ = _evaluator()
    with pytest.raises(ValidationError):
        evaluator.evaluate([GeoPoint(37.5, 127.0)], buffer_m=50)
    with pytest.raises(ValidationError):
        evaluator.evaluate([GeoPoint(37.5, 127.0), GeoPoint(37.6, 127.0)], buffer_m=0)
    with pytest.raises(ValidationError):
        evaluator.evaluate([GeoPoint(37.5, 127.0), GeoPoint(137.6, 127.0)], buffer_m=50)
