from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Union

from hazard_watch import config
from hazard_watch.geomath import ensure_point, validate_positive
from hazard_watch.index import HazardIndex
from hazard_watch.models import GeoPoint, HazardCategory, HazardRecord
from hazard_watch.store import SqliteHazardIndex

HazardBackend = Union[HazardIndex, SqliteHazardIndex]


class ProximityQueryService:
    """Read-only queries over a hazard index: near a point, or by category."""

    def __init__(self, index: HazardBackend, default_radius_m: Optional[float] = None) -> None:
        self.index = index
        self.default_radius_m = validate_positive(
            config.DEFAULT_SEARCH_RADIUS_M if default_radius_m is None else default_radius_m,
            "default radius",
        )

    def nearby(
        self,
        center: GeoPoint,
        radius_m: Optional[float] = None,
        category: Optional[Union[str, HazardCategory]] = None,
        since: Optional[datetime] = None,
    ) -> List[HazardRecord]:
        radius = self.default_radius_m if radius_m is None else validate_positive(radius_m, "radius")
        if category is not None:
            category = HazardCategory.parse(category)
        if since is not None and since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        return self.index.find_within_radius(ensure_point(center), radius, category=category, since=since)

    def by_category(self, category: Union[str, HazardCategory]) -> List[HazardRecord]:
        return self.index.find_by_category(HazardCategory.parse(category))
