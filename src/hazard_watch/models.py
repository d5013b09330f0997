from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

from hazard_watch.errors import ValidationError


class HazardCategory(str, Enum):
    LEASH = "LEASH"
    MUZZLE = "MUZZLE"
    AGGRESSIVE_DOG = "AGGRESSIVE_DOG"
    HAZARDOUS_MATERIAL = "HAZARDOUS_MATERIAL"
    WILDLIFE = "WILDLIFE"
    LOW_LIGHT = "LOW_LIGHT"
    BIKE_CAR = "BIKE_CAR"
    POOP_LEFT = "POOP_LEFT"

    @classmethod
    def parse(cls, value: Union[str, "HazardCategory"]) -> "HazardCategory":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValidationError(f"Invalid hazard category: {value!r}")
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError as exc:
            raise ValidationError(f"Invalid hazard category: {value!r}") from exc

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    HazardCategory.LEASH: "unleashed animal",
    HazardCategory.MUZZLE: "unmuzzled dog",
    HazardCategory.AGGRESSIVE_DOG: "aggressive animal",
    HazardCategory.HAZARDOUS_MATERIAL: "hazardous material",
    HazardCategory.WILDLIFE: "wildlife sighting",
    HazardCategory.LOW_LIGHT: "poor lighting",
    HazardCategory.BIKE_CAR: "bike or car traffic risk",
    HazardCategory.POOP_LEFT: "waste not collected",
}


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Deleted:
    at: datetime


HazardState = Union[Active, Deleted]


@dataclass(frozen=True)
class HazardRecord:
    id: int
    category: HazardCategory
    location: GeoPoint
    reporter_id: str
    created_at: datetime
    description: Optional[str] = None
    image_ref: Optional[str] = None
    state: HazardState = field(default_factory=Active)

    @property
    def is_active(self) -> bool:
        return isinstance(self.state, Active)

    @property
    def deleted_at(self) -> Optional[datetime]:
        if isinstance(self.state, Deleted):
            return self.state.at
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "description": self.description,
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
            "image_ref": self.image_ref,
            "reporter_id": self.reporter_id,
            "created_at": self.created_at.isoformat(),
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }


@dataclass(frozen=True)
class HazardPatch:
    """Fields a reporter may edit. ``None`` leaves the field unchanged."""

    category: Optional[HazardCategory] = None
    description: Optional[str] = None
    location: Optional[GeoPoint] = None
    image_ref: Optional[str] = None


@dataclass(frozen=True)
class RouteSafetyReport:
    has_hazard: bool
    hazards: List[HazardRecord]
    segments_checked: int


@dataclass(frozen=True)
class EmergencyResponse:
    latitude: float
    longitude: float
    emergency_type: str
    has_nearby_hazards: bool
    nearby_hazard_count: int
    recommendation: str
    guide_text: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SafeRouteRecommendation:
    has_alternative_route: bool
    recommendation: str
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
