from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Optional, Sequence, Tuple

from ..core.constants import EARTH_RADIUS_METERS
from ..core.exceptions import NotFoundError, ValidationError
from ..common.validators import require_non_empty
from .model import GeofenceMatch, GeofenceZone
from .repository import GeofenceRepository

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_METERS = 100


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two WGS84 points."""
    lat1_r, lon1_r, lat2_r, lon2_r = map(math.radians, (lat1, lon1, lat2, lon2))
    dlat = lat2_r - lat1_r
    dlon = lon2_r - lon1_r

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def validate_coordinates(latitude: Any, longitude: Any) -> Tuple[float, float]:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("Invalid coordinates")
    if math.isnan(lat) or math.isnan(lon):
        raise ValidationError("Invalid coordinates")
    if not -90 <= lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if not -180 <= lon <= 180:
        raise ValidationError("Longitude must be between -180 and 180")
    return lat, lon


class GeofenceValidator:
    def __init__(self, zones: GeofenceRepository):
        self._zones = zones

    def locate(self, latitude: Any, longitude: Any) -> Optional[int]:
        """Id of the first active zone containing the point, else None."""
        return self.match(latitude, longitude).zone_id

    def match(self, latitude: Any, longitude: Any) -> GeofenceMatch:
        lat, lon = validate_coordinates(latitude, longitude)
        for zone in self._zones.list_active():
            distance = haversine_distance(lat, lon, zone.latitude, zone.longitude)
            if distance <= zone.radius_meters:
                return GeofenceMatch(latitude=lat, longitude=lon, zone_id=zone.zone_id)
        logger.debug("Point (%s, %s) is outside every active geofence", lat, lon)
        return GeofenceMatch(latitude=lat, longitude=lon, zone_id=None)


class GeofenceService:
    """Admin maintenance of geofence zones."""

    def __init__(self, zones: GeofenceRepository):
        self._zones = zones

    def list_active(self) -> Sequence[GeofenceZone]:
        return self._zones.list_active()

    def create(self, *, name: str, latitude: Any, longitude: Any, radius_meters: Any = None) -> GeofenceZone:
        name = require_non_empty(name, "name")
        lat, lon = validate_coordinates(latitude, longitude)
        radius = self._radius(radius_meters)
        zone_id = self._zones.create(name=name, latitude=lat, longitude=lon, radius_meters=radius)
        logger.info("Created geofence %s (%s) radius=%sm", zone_id, name, radius)
        return GeofenceZone(zone_id=zone_id, name=name, latitude=lat, longitude=lon, radius_meters=radius)

    def update(self, zone_id: int, **changes: Any) -> GeofenceZone:
        zone = self._zones.get_by_id(zone_id)
        if not zone:
            raise NotFoundError("Geofence location not found")

        updated = zone
        if changes.get("name") is not None:
            updated = replace(updated, name=require_non_empty(changes["name"], "name"))
        if changes.get("latitude") is not None or changes.get("longitude") is not None:
            lat, lon = validate_coordinates(
                zone.latitude if changes.get("latitude") is None else changes["latitude"],
                zone.longitude if changes.get("longitude") is None else changes["longitude"],
            )
            updated = replace(updated, latitude=lat, longitude=lon)
        if changes.get("radius_meters") is not None:
            updated = replace(updated, radius_meters=self._radius(changes["radius_meters"]))
        if changes.get("is_active") is not None:
            updated = replace(updated, is_active=bool(changes["is_active"]))

        self._zones.update(updated)
        logger.info("Updated geofence %s", zone_id)
        return updated

    @staticmethod
    def _radius(value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_RADIUS_METERS
        try:
            radius = int(value)
        except (TypeError, ValueError):
            raise ValidationError("Invalid radius_meters format")
        if radius <= 0:
            raise ValidationError("radius_meters must be greater than 0")
        return radius
