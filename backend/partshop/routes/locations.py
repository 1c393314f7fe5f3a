# Overview: Public Flask API routes for the region > municipality > barangay pickers.

from flask import Blueprint, request, jsonify, current_app

from ..services import location_service
from ..validation import ValidationError


locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")

# Reference data changes rarely
LOOKUP_CACHE_CONTROL = "public, max-age=600, stale-while-revalidate=1800"


def _cached(payload):
    resp = jsonify({"data": payload})
    resp.headers["Cache-Control"] = LOOKUP_CACHE_CONTROL
    return resp


@locations_bp.get("/regions")
def regions_route():
    try:
        return _cached(location_service.list_regions(request.args.get("islandGroup")))
    except Exception:
        current_app.logger.exception("Failed to load regions")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.get("/municipalities")
def municipalities_route():
    try:
        return _cached(location_service.list_municipalities(request.args.get("regionId")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load municipalities")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.get("/barangays")
def barangays_route():
    try:
        return _cached(location_service.list_barangays(request.args.get("municipalityId")))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load barangays")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.get("/approved-addresses")
def approved_addresses_route():
    try:
        return jsonify({"data": location_service.list_active_approved_addresses(request.args.get("barangayId"))})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load approved addresses")
        return jsonify({"error": "Internal server error"}), 500
