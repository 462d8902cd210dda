from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeofenceZone:
    """A named circular zone (center + radius) where attendance may be recorded."""

    zone_id: int
    name: str
    latitude: float
    longitude: float
    radius_meters: int
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "zone_id": self.zone_id,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius_meters": self.radius_meters,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class GeofenceMatch:
    """Outcome of locating a coordinate pair against the active zones."""

    latitude: float
    longitude: float
    zone_id: Optional[int]

    @property
    def is_within(self) -> bool:
        return self.zone_id is not None
