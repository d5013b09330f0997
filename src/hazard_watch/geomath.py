"""Great-circle helpers for WGS84 points."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from hazard_watch.errors import ValidationError
from hazard_watch.models import GeoPoint

EARTH_RADIUS_M = 6_371_000.0

# Slack added to pre-filter boxes so float rounding never drops a boundary hit.
_BOX_SLACK_DEG = 1e-9


def distance_m(origin: GeoPoint, target: GeoPoint) -> float:
    """Haversine distance in meters.

    ``a`` is clamped to [0, 1] so near-antipodal or identical points never
    produce NaN from rounding overshoot.
    """
    if origin == target:
        return 0.0
    lat1, lon1 = math.radians(origin.latitude), math.radians(origin.longitude)
    lat2, lon2 = math.radians(target.latitude), math.radians(target.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def _as_float(value: object, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number") from exc
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite")
    return number


def validate_point(latitude: object, longitude: object) -> GeoPoint:
    lat = _as_float(latitude, "latitude")
    lon = _as_float(longitude, "longitude")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(f"latitude out of range [-90, 90]: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValidationError(f"longitude out of range [-180, 180]: {lon}")
    return GeoPoint(latitude=lat, longitude=lon)


def ensure_point(point: GeoPoint) -> GeoPoint:
    return validate_point(point.latitude, point.longitude)


def validate_positive(value: object, name: str) -> float:
    number = _as_float(value, name)
    if number <= 0:
        raise ValidationError(f"{name} must be positive, got {number}")
    return number


def midpoint(start: GeoPoint, end: GeoPoint) -> GeoPoint:
    """Arithmetic mean of the coordinates; fine for short urban segments."""
    return GeoPoint(
        latitude=(start.latitude + end.latitude) / 2,
        longitude=(start.longitude + end.longitude) / 2,
    )


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: Optional[float] = None
    max_lon: Optional[float] = None

    @property
    def limits_longitude(self) -> bool:
        return self.min_lon is not None and self.max_lon is not None

    def contains(self, point: GeoPoint) -> bool:
        if not self.min_lat <= point.latitude <= self.max_lat:
            return False
        if self.limits_longitude:
            return self.min_lon <= point.longitude <= self.max_lon  # type: ignore[operator]
        return True


def bounding_box(center: GeoPoint, radius_m: float) -> BoundingBox:
    """Box guaranteed to hold every point within ``radius_m`` of ``center``.

    Longitude is left unbounded when the circle reaches a pole or wraps the
    antimeridian; the exact distance test still decides membership.
    """
    angular = radius_m / EARTH_RADIUS_M
    dlat = math.degrees(angular) + _BOX_SLACK_DEG
    min_lat = center.latitude - dlat
    max_lat = center.latitude + dlat
    if min_lat <= -90.0 or max_lat >= 90.0 or angular >= math.pi / 2:
        return BoundingBox(min_lat=max(min_lat, -90.0), max_lat=min(max_lat, 90.0))

    ratio = math.sin(angular) / math.cos(math.radians(center.latitude))
    if ratio >= 1.0:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat)
    dlon = math.degrees(math.asin(ratio)) + _BOX_SLACK_DEG
    min_lon = center.longitude - dlon
    max_lon = center.longitude + dlon
    if min_lon < -180.0 or max_lon > 180.0:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat)
    return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon)
