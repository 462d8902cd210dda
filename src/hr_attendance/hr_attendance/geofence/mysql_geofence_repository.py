from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import GeofenceZone
from .repository import GeofenceRepository


def _row_to_zone(r: dict) -> GeofenceZone:
    return GeofenceZone(
        zone_id=int(r["zone_id"]),
        name=r["location_name"],
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        radius_meters=int(r["radius_meters"]),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLGeofenceRepository(GeofenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self) -> Sequence[GeofenceZone]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT zone_id, location_name, latitude, longitude, radius_meters, is_active
                FROM geofence_locations
                WHERE is_active=1
                ORDER BY zone_id
                """
            )
            return [_row_to_zone(r) for r in fetchall(cur)]

    def get_by_id(self, zone_id: int) -> Optional[GeofenceZone]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT zone_id, location_name, latitude, longitude, radius_meters, is_active
                FROM geofence_locations
                WHERE zone_id=%s
                """,
                (zone_id,),
            )
            r = fetchone(cur)
            return _row_to_zone(r) if r else None

    def create(self, *, name: str, latitude: float, longitude: float, radius_meters: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO geofence_locations(location_name, latitude, longitude, radius_meters)
                VALUES(%s,%s,%s,%s)
                """,
                (name, latitude, longitude, int(radius_meters)),
            )
            return int(cur.lastrowid)

    def update(self, zone: GeofenceZone) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE geofence_locations
                SET location_name=%s, latitude=%s, longitude=%s, radius_meters=%s, is_active=%s
                WHERE zone_id=%s
                """,
                (zone.name, zone.latitude, zone.longitude, int(zone.radius_meters), int(zone.is_active), zone.zone_id),
            )
            return cur.rowcount > 0
