import random
import threading
from datetime import datetime, timedelta, timezone

import pytest

from hazard_watch.errors import AlreadyDeletedError, NotFoundError, ValidationError
from hazard_watch.index import HazardIndex
from hazard_watch.models import Active, Deleted, GeoPoint, HazardCategory, HazardPatch
from hazard_watch.store import SqliteHazardIndex

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _ticking_clock(step_minutes: int = 10):
    state = {"now": T0 - timedelta(minutes=step_minutes)}

    def clock() -> datetime:
        state["now"] += timedelta(minutes=step_minutes)
        return state["now"]

    return clock


@pytest.fixture(params=["memory", "sqlite"])
def index(request, tmp_path):
    if request.param == "memory":
        return HazardIndex(clock=_ticking_clock())
    return SqliteHazardIndex(tmp_path / "hazards.db", clock=_ticking_clock())


def _add(index, lat: float, lon: float, category: HazardCategory = HazardCategory.LEASH, reporter: str = "walker-1"):
    return index.insert(category=category, location=GeoPoint(lat, lon), reporter_id=reporter)


def test_insert_assigns_ids_and_keeps_fields(index) -> None:
    first = index.insert(
        category=HazardCategory.WILDLIFE,
        location=GeoPoint(37.5, 127.0),
        reporter_id="walker-7",
        description="Wild boar seen at dusk",
        image_ref="files/boar.jpg",
    )
    second = _add(index, 37.6, 127.1)

    assert first.id != second.id
    assert first.state == Active()
    assert first.deleted_at is None
    stored = index.get(first.id)
    assert stored.description == "Wild boar seen at dusk"
    assert stored.image_ref == "files/boar.jpg"
    assert stored.reporter_id == "walker-7"
    assert stored.created_at == T0


def test_insert_rejects_invalid_location(index) -> None:
    with pytest.raises(ValidationError):
        _add(index, 95.0, 127.0)
    with pytest.raises(ValidationError):
        _add(index, 37.5, float("nan"))
    assert len(index) == 0


def test_radius_query_is_inclusive_and_filters_by_distance(index) -> None:
    hazard = _add(index, 37.5000, 127.0000)
    center = GeoPoint(37.5005, 127.0000)

    assert [r.id for r in index.find_within_radius(center, 1000)] == [hazard.id]
    assert index.find_within_radius(center, 10) == []
    assert [r.id for r in index.find_within_radius(GeoPoint(37.5, 127.0), 0)] == [hazard.id]


def test_radius_query_orders_by_distance_then_id(index) -> None:
    far = _add(index, 37.5040, 127.0000)
    near_a = _add(index, 37.5010, 127.0000)
    near_b = _add(index, 37.5010, 127.0000)

    found = index.find_within_radius(GeoPoint(37.5, 127.0), 1000)
    assert [r.id for r in found] == [near_a.id, near_b.id, far.id]
    assert found == index.find_within_radius(GeoPoint(37.5, 127.0), 1000)


def test_radius_query_filters_category_and_creation_time(index) -> None:
    dog = _add(index, 37.5001, 127.0, HazardCategory.AGGRESSIVE_DOG)
    lamp = _add(index, 37.5002, 127.0, HazardCategory.LOW_LIGHT)
    later_dog = _add(index, 37.5003, 127.0, HazardCategory.AGGRESSIVE_DOG)
    center = GeoPoint(37.5, 127.0)

    dogs = index.find_within_radius(center, 500, category=HazardCategory.AGGRESSIVE_DOG)
    assert [r.id for r in dogs] == [dog.id, later_dog.id]

    recent = index.find_within_radius(center, 500, since=lamp.created_at)
    assert [r.id for r in recent] == [lamp.id, later_dog.id]


def test_soft_delete_hides_record_but_keeps_tombstone(index) -> None:
    hazard = _add(index, 37.5, 127.0, HazardCategory.POOP_LEFT)
    tombstone = index.soft_delete(hazard.id)

    assert isinstance(tombstone.state, Deleted)
    assert tombstone.deleted_at is not None
    assert index.find_within_radius(GeoPoint(37.5, 127.0), 100_000) == []
    assert index.find_by_category(HazardCategory.POOP_LEFT) == []

    stored = index.get(hazard.id)
    assert stored.deleted_at == tombstone.deleted_at
    assert not stored.is_active


def test_soft_delete_errors(index) -> None:
    hazard = _add(index, 37.5, 127.0)
    index.soft_delete(hazard.id)

    with pytest.raises(AlreadyDeletedError):
        index.soft_delete(hazard.id)
    with pytest.raises(NotFoundError):
        index.soft_delete(9999)
    with pytest.raises(NotFoundError):
        index.get(9999)


def test_update_preserves_identity_fields(index) -> None:
    hazard = _add(index, 37.5, 127.0, HazardCategory.LEASH, reporter="walker-3")
    updated = index.update(
        hazard.id,
        HazardPatch(category=HazardCategory.MUZZLE, description="Now muzzled? no.", location=GeoPoint(37.51, 127.01)),
    )

    assert updated.id == hazard.id
    assert updated.created_at == hazard.created_at
    assert updated.reporter_id == "walker-3"
    assert updated.category == HazardCategory.MUZZLE
    assert index.get(hazard.id) == updated
    assert index.find_within_radius(GeoPoint(37.5, 127.0), 10) == []
    assert [r.id for r in index.find_within_radius(GeoPoint(37.51, 127.01), 10)] == [hazard.id]


def test_update_rejects_bad_location_and_missing_records(index) -> None:
    hazard = _add(index, 37.5, 127.0)
    with pytest.raises(ValidationError):
        index.update(hazard.id, HazardPatch(location=GeoPoint(37.5, 200.0)))
    assert index.get(hazard.id).location == GeoPoint(37.5, 127.0)

    with pytest.raises(NotFoundError):
        index.update(12345, HazardPatch(description="x"))

    index.soft_delete(hazard.id)
    with pytest.raises(NotFoundError):
        index.update(hazard.id, HazardPatch(description="x"))


def test_find_by_category_returns_active_records_in_id_order(index) -> None:
    a = _add(index, 37.5, 127.0, HazardCategory.BIKE_CAR)
    _add(index, 37.6, 127.0, HazardCategory.WILDLIFE)
    b = _add(index, 35.1, 129.0, HazardCategory.BIKE_CAR)

    assert [r.id for r in index.find_by_category(HazardCategory.BIKE_CAR)] == [a.id, b.id]
    assert [r.id for r in index.find_by_category("bike-car")] == [a.id, b.id]


def test_radius_query_is_monotonic_and_never_returns_tombstones(index) -> None:
    rng = random.Random(5)
    records = [_add(index, 37.5 + rng.uniform(-0.02, 0.02), 127.0 + rng.uniform(-0.02, 0.02)) for _ in range(40)]
    for record in records[::4]:
        index.soft_delete(record.id)
    deleted = {r.id for r in records[::4]}

    center = GeoPoint(37.5, 127.0)
    for radius in [200, 500, 1000, 2000, 4000]:
        wide = {r.id for r in index.find_within_radius(center, radius)}
        narrow = {r.id for r in index.find_within_radius(center, radius / 2)}
        assert narrow <= wide
        assert not wide & deleted


def test_queries_across_pole_and_antimeridian(index) -> None:
    east = _add(index, 0.0, 179.9999)
    polar = _add(index, 89.9999, 180.0)

    assert [r.id for r in index.find_within_radius(GeoPoint(0.0, -179.9999), 100)] == [east.id]
    assert [r.id for r in index.find_within_radius(GeoPoint(89.9999, 0.0), 100)] == [polar.id]


def test_concurrent_writers_and_readers() -> None:
    index = HazardIndex()
    errors = []

    def writer(offset: int) -> None:
        for i in range(50):
            _add(index, 37.5 + offset * 0.001, 127.0 + i * 0.0001, reporter=f"walker-{offset}")

    def reader() -> None:
        for _ in range(50):
            for record in index.find_within_radius(GeoPoint(37.5, 127.0), 5000):
                if not record.is_active:
                    errors.append(record.id)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(index) == 200
    assert len({r.id for r in index.active()}) == 200
