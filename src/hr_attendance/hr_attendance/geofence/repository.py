from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import GeofenceZone


class GeofenceRepository(Protocol):
    def list_active(self) -> Sequence[GeofenceZone]:
        """Active zones in insertion (id) order."""

        raise NotImplementedError

    def get_by_id(self, zone_id: int) -> Optional[GeofenceZone]:
        raise NotImplementedError

    def create(self, *, name: str, latitude: float, longitude: float, radius_meters: int) -> int:
        raise NotImplementedError

    def update(self, zone: GeofenceZone) -> bool:
        raise NotImplementedError
