from __future__ import annotations

import logging
from typing import Dict, Sequence

from hazard_watch.errors import ValidationError
from hazard_watch.geomath import distance_m, ensure_point, midpoint, validate_positive
from hazard_watch.logs import log_event
from hazard_watch.models import GeoPoint, HazardRecord, RouteSafetyReport
from hazard_watch.proximity import ProximityQueryService

logger = logging.getLogger(__name__)


class RouteSafetyEvaluator:
    """Checks whether a straight-line route passes near any active hazard.

    Each segment is covered by one circle centered on its midpoint with
    radius ``max(buffer, length / 2 + buffer)``. That over-approximates the
    true segment buffer, so a hazard slightly off to the side of a long
    segment may still be reported.
    """

    def __init__(self, proximity: ProximityQueryService) -> None:
        self.proximity = proximity

    @staticmethod
    def search_circle(start: GeoPoint, end: GeoPoint, buffer_m: float) -> tuple[GeoPoint, float]:
        length = distance_m(start, end)
        return midpoint(start, end), max(buffer_m, length / 2 + buffer_m)

    def evaluate(self, points: Sequence[GeoPoint], buffer_m: float) -> RouteSafetyReport:
        if len(points) < 2:
            raise ValidationError("A route needs at least a start and an end point")
        buffer_m = validate_positive(buffer_m, "buffer")
        waypoints = [ensure_point(point) for point in points]

        found: Dict[int, HazardRecord] = {}
        for start, end in zip(waypoints, waypoints[1:]):
            center, radius = self.search_circle(start, end, buffer_m)
            for record in self.proximity.nearby(center, radius):
                found.setdefault(record.id, record)

        hazards = [found[hazard_id] for hazard_id in sorted(found)]
        report = RouteSafetyReport(
            has_hazard=bool(hazards),
            hazards=hazards,
            segments_checked=len(waypoints) - 1,
        )
        log_event(
            logger,
            "route evaluated",
            event="route_evaluated",
            status="unsafe" if report.has_hazard else "safe",
            result_count=len(hazards),
        )
        return report

    def has_hazard(self, start: GeoPoint, end: GeoPoint, buffer_m: float) -> bool:
        return self.evaluate([start, end], buffer_m).has_hazard
