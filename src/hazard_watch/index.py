"""In-memory spatial index of hazard reports.

Writers serialize on a lock and publish a fresh read-only snapshot; readers
grab whatever snapshot is current and never block or see a half-applied
write. Records are frozen, so an update is a replace, not a mutation.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional

from hazard_watch.errors import AlreadyDeletedError, NotFoundError, ValidationError
from hazard_watch.geomath import bounding_box, distance_m, ensure_point
from hazard_watch.logs import log_event
from hazard_watch.models import (
    Deleted,
    GeoPoint,
    HazardCategory,
    HazardPatch,
    HazardRecord,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def rank_within_radius(
    records: Iterable[HazardRecord],
    center: GeoPoint,
    radius_m: float,
    category: Optional[HazardCategory] = None,
    since: Optional[datetime] = None,
) -> List[HazardRecord]:
    """Active records within ``radius_m`` (inclusive), nearest first, ties by id."""
    if radius_m < 0:
        raise ValidationError(f"radius must not be negative, got {radius_m}")
    box = bounding_box(center, radius_m)
    hits = []
    for record in records:
        if not record.is_active:
            continue
        if category is not None and record.category != category:
            continue
        if since is not None and record.created_at < since:
            continue
        if not box.contains(record.location):
            continue
        distance = distance_m(center, record.location)
        if distance <= radius_m:
            hits.append((distance, record.id, record))
    hits.sort(key=lambda item: (item[0], item[1]))
    return [record for _, _, record in hits]


def apply_patch(record: HazardRecord, patch: HazardPatch) -> HazardRecord:
    changes = {}
    if patch.category is not None:
        changes["category"] = HazardCategory.parse(patch.category)
    if patch.description is not None:
        changes["description"] = patch.description
    if patch.location is not None:
        changes["location"] = ensure_point(patch.location)
    if patch.image_ref is not None:
        changes["image_ref"] = patch.image_ref
    return replace(record, **changes)


class HazardIndex:
    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._records: Mapping[int, HazardRecord] = MappingProxyType({})

    def _publish(self, record: HazardRecord) -> None:
        snapshot = dict(self._records)
        snapshot[record.id] = record
        self._records = MappingProxyType(snapshot)

    def _require_active(self, hazard_id: int) -> HazardRecord:
        record = self._records.get(hazard_id)
        if record is None or not record.is_active:
            raise NotFoundError(f"Hazard {hazard_id} not found")
        return record

    def insert(
        self,
        *,
        category: HazardCategory,
        location: GeoPoint,
        reporter_id: str,
        description: Optional[str] = None,
        image_ref: Optional[str] = None,
    ) -> HazardRecord:
        category = HazardCategory.parse(category)
        location = ensure_point(location)
        with self._lock:
            record = HazardRecord(
                id=next(self._ids),
                category=category,
                location=location,
                reporter_id=reporter_id,
                created_at=self._clock(),
                description=description,
                image_ref=image_ref,
            )
            self._publish(record)
        log_event(logger, "hazard inserted", event="hazard_inserted", hazard_id=record.id, category=category.value)
        return record

    def update(self, hazard_id: int, patch: HazardPatch) -> HazardRecord:
        with self._lock:
            updated = apply_patch(self._require_active(hazard_id), patch)
            self._publish(updated)
        log_event(logger, "hazard updated", event="hazard_updated", hazard_id=hazard_id)
        return updated

    def soft_delete(self, hazard_id: int) -> HazardRecord:
        with self._lock:
            record = self._records.get(hazard_id)
            if record is None:
                raise NotFoundError(f"Hazard {hazard_id} not found")
            if not record.is_active:
                raise AlreadyDeletedError(f"Hazard {hazard_id} is already deleted")
            tombstoned = replace(record, state=Deleted(at=self._clock()))
            self._publish(tombstoned)
        log_event(logger, "hazard deleted", event="hazard_deleted", hazard_id=hazard_id)
        return tombstoned

    def get(self, hazard_id: int) -> HazardRecord:
        record = self._records.get(hazard_id)
        if record is None:
            raise NotFoundError(f"Hazard {hazard_id} not found")
        return record

    def find_within_radius(
        self,
        center: GeoPoint,
        radius_m: float,
        category: Optional[HazardCategory] = None,
        since: Optional[datetime] = None,
    ) -> List[HazardRecord]:
        if category is not None:
            category = HazardCategory.parse(category)
        return rank_within_radius(self._records.values(), ensure_point(center), radius_m, category, since)

    def find_by_category(self, category: HazardCategory) -> List[HazardRecord]:
        category = HazardCategory.parse(category)
        snapshot = self._records
        return [
            record
            for _, record in sorted(snapshot.items())
            if record.is_active and record.category == category
        ]

    def active(self) -> List[HazardRecord]:
        return [record for _, record in sorted(self._records.items()) if record.is_active]

    def __len__(self) -> int:
        return len(self.active())
