"""Outward operations of the hazard engine, in the shape request handlers call them."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from hazard_watch import config
from hazard_watch.errors import OwnershipError
from hazard_watch.geomath import validate_point
from hazard_watch.index import HazardIndex
from hazard_watch.models import (
    EmergencyResponse,
    HazardCategory,
    HazardPatch,
    HazardRecord,
    SafeRouteRecommendation,
)
from hazard_watch.proximity import HazardBackend, ProximityQueryService
from hazard_watch.routes import RouteSafetyEvaluator
from hazard_watch.store import SqliteHazardIndex
from hazard_watch.system import EmergencyCoordinator


class HazardService:
    def __init__(self, index: HazardBackend) -> None:
        self.index = index
        self.proximity = ProximityQueryService(index)
        self.evaluator = RouteSafetyEvaluator(self.proximity)
        self.coordinator = EmergencyCoordinator(self.proximity, self.evaluator)

    def report_hazard(
        self,
        reporter_id: str,
        category: Union[str, HazardCategory],
        latitude: float,
        longitude: float,
        description: Optional[str] = None,
        image_ref: Optional[str] = None,
    ) -> HazardRecord:
        return self.index.insert(
            category=HazardCategory.parse(category),
            location=validate_point(latitude, longitude),
            reporter_id=reporter_id,
            description=description,
            image_ref=image_ref,
        )

    def update_hazard(
        self,
        hazard_id: int,
        reporter_id: str,
        category: Optional[Union[str, HazardCategory]] = None,
        description: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        image_ref: Optional[str] = None,
    ) -> HazardRecord:
        """Apply a reporter's edit.

        Raises ``NotFoundError`` for unknown or deleted hazards and
        ``OwnershipError`` when ``reporter_id`` did not file the report.
        Latitude and longitude must be given together.
        """
        self._check_owner(hazard_id, reporter_id)
        location = None
        if latitude is not None or longitude is not None:
            location = validate_point(latitude, longitude)
        patch = HazardPatch(
            category=HazardCategory.parse(category) if category is not None else None,
            description=description,
            location=location,
            image_ref=image_ref,
        )
        return self.index.update(hazard_id, patch)

    def delete_hazard(self, hazard_id: int, reporter_id: Optional[str] = None) -> HazardRecord:
        if reporter_id is not None:
            self._check_owner(hazard_id, reporter_id)
        return self.index.soft_delete(hazard_id)

    def _check_owner(self, hazard_id: int, reporter_id: str) -> None:
        # Tombstones skip the check so the index reports them as not found / already deleted.
        current = self.get_hazard(hazard_id)
        if current.is_active and current.reporter_id != reporter_id:
            raise OwnershipError(f"Reporter {reporter_id} does not own hazard {hazard_id}")

    def get_hazard(self, hazard_id: int) -> HazardRecord:
        return self.index.get(hazard_id)

    def nearby_hazards(
        self,
        latitude: float,
        longitude: float,
        radius_m: Optional[float] = None,
        category: Optional[Union[str, HazardCategory]] = None,
        since: Optional[datetime] = None,
    ) -> List[HazardRecord]:
        return self.proximity.nearby(validate_point(latitude, longitude), radius_m, category=category, since=since)

    def hazards_by_category(self, category: Union[str, HazardCategory]) -> List[HazardRecord]:
        return self.proximity.by_category(category)

    def active_hazards(self) -> List[HazardRecord]:
        return self.index.active()

    def handle_emergency(self, latitude: float, longitude: float, emergency_type: Optional[str]) -> EmergencyResponse:
        return self.coordinator.handle_emergency(validate_point(latitude, longitude), emergency_type)

    def recommend_safe_route(
        self, start_lat: float, start_lon: float, end_lat: float, end_lon: float
    ) -> SafeRouteRecommendation:
        return self.coordinator.recommend_safe_route(
            validate_point(start_lat, start_lon),
            validate_point(end_lat, end_lon),
        )


def build_default_service(db_path: Optional[str] = None) -> HazardService:
    path = config.HAZARD_DB_PATH if db_path is None else db_path
    if path:
        return HazardService(SqliteHazardIndex(path))
    return HazardService(HazardIndex())
