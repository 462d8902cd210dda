from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_actor, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    geofences = container.geofence_service

    @app.route("/api/geofences", methods=["GET"], endpoint="geofence_list")
    def list_geofences():
        zones = geofences.list_active()
        return jsonify({"success": True, "locations": [z.to_dict() for z in zones]})

    @app.route("/api/geofences", methods=["POST"], endpoint="geofence_create")
    def create_geofence():
        current_actor()
        data = json_body()
        zone = geofences.create(
            name=data.get("name"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            radius_meters=data.get("radius_meters"),
        )
        return jsonify({"success": True, "message": "Geofence location created", "location": zone.to_dict()}), 201

    @app.route("/api/geofences/<int:zone_id>", methods=["PUT"], endpoint="geofence_update")
    def update_geofence(zone_id: int):
        current_actor()
        data = json_body()
        zone = geofences.update(
            zone_id,
            name=data.get("name"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            radius_meters=data.get("radius_meters"),
            is_active=data.get("is_active"),
        )
        return jsonify({"success": True, "message": "Geofence location updated", "location": zone.to_dict()})
