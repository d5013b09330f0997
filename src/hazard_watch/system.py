from __future__ import annotations

import logging
from typing import Optional, Sequence

from hazard_watch import config
from hazard_watch.geomath import ensure_point, validate_positive
from hazard_watch.guidance import (
    NEARBY_HAZARDS_RECOMMENDATION,
    RELATIVELY_SAFE_RECOMMENDATION,
    ROUTE_DETOUR_RECOMMENDATION,
    ROUTE_HAZARD_REASON,
    ROUTE_SAFE_RECOMMENDATION,
    guide_for,
)
from hazard_watch.logs import log_event
from hazard_watch.models import (
    EmergencyResponse,
    GeoPoint,
    RouteSafetyReport,
    SafeRouteRecommendation,
)
from hazard_watch.proximity import ProximityQueryService
from hazard_watch.routes import RouteSafetyEvaluator

logger = logging.getLogger(__name__)


class EmergencyCoordinator:
    def __init__(
        self,
        proximity: ProximityQueryService,
        evaluator: Optional[RouteSafetyEvaluator] = None,
        emergency_radius_m: Optional[float] = None,
        route_buffer_m: Optional[float] = None,
    ) -> None:
        self.proximity = proximity
        self.evaluator = evaluator or RouteSafetyEvaluator(proximity)
        self.emergency_radius_m = validate_positive(
            config.EMERGENCY_RADIUS_M if emergency_radius_m is None else emergency_radius_m,
            "emergency radius",
        )
        self.route_buffer_m = validate_positive(
            config.ROUTE_BUFFER_M if route_buffer_m is None else route_buffer_m,
            "route buffer",
        )

    def handle_emergency(self, point: GeoPoint, emergency_type: Optional[str]) -> EmergencyResponse:
        point = ensure_point(point)
        nearby = self.proximity.nearby(point, self.emergency_radius_m)
        count = len(nearby)
        if count:
            recommendation = NEARBY_HAZARDS_RECOMMENDATION.format(count=count)
        else:
            recommendation = RELATIVELY_SAFE_RECOMMENDATION

        log_event(
            logger,
            f"emergency {emergency_type!r} handled",
            event="emergency_handled",
            status="hazards_nearby" if count else "clear",
            result_count=count,
        )
        return EmergencyResponse(
            latitude=point.latitude,
            longitude=point.longitude,
            emergency_type="" if emergency_type is None else str(emergency_type),
            has_nearby_hazards=count > 0,
            nearby_hazard_count=count,
            recommendation=recommendation,
            guide_text=guide_for(emergency_type),
        )

    def recommend_safe_route(self, start: GeoPoint, end: GeoPoint) -> SafeRouteRecommendation:
        if self.evaluator.has_hazard(start, end, self.route_buffer_m):
            return SafeRouteRecommendation(
                has_alternative_route=True,
                reason=ROUTE_HAZARD_REASON,
                recommendation=ROUTE_DETOUR_RECOMMENDATION,
            )
        return SafeRouteRecommendation(
            has_alternative_route=False,
            recommendation=ROUTE_SAFE_RECOMMENDATION,
        )

    def check_route(self, points: Sequence[GeoPoint], buffer_m: Optional[float] = None) -> RouteSafetyReport:
        return self.evaluator.evaluate(points, self.route_buffer_m if buffer_m is None else buffer_m)
