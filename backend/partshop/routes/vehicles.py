# Overview: Flask API routes for the staff make/model/year catalog and fitment-only entries.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_staff
from ..services import vehicle_service
from ..validation import NotFoundError, ValidationError


vehicles_bp = Blueprint("vehicles", __name__, url_prefix="/api/admin/car-compatibility")


@vehicles_bp.get("")
@require_auth
@require_staff
def lookups_by_make_route():
    try:
        return jsonify({"data": vehicle_service.lookups_by_make(request.args.get("make"))})
    except Exception:
        current_app.logger.exception("Failed to load vehicle lookups")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.get("/lookups")
@require_auth
@require_staff
def lookups_by_car_route():
    try:
        return jsonify({"data": vehicle_service.lookups_by_car(request.args.get("carId", type=int))})
    except Exception:
        current_app.logger.exception("Failed to load vehicle lookups")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.post("/catalog")
@require_auth
@require_staff
def add_catalog_entry_route():
    """
    Request body, by kind:
    - {"kind": "brand", "make": "Toyota"}
    - {"kind": "year", "year": 2018}
    - {"kind": "model", "car_id": 1, "baseModel": "Vios"}
    - {"kind": "variant", "car_id": 1, "baseModel": "Vios", "variant": "1.3 E"}
    """
    try:
        return jsonify({"data": vehicle_service.add_catalog_entry(request.get_json(silent=True))}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add catalog entry")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.get("/entries")
@require_auth
@require_staff
def list_entries_route():
    try:
        return jsonify({"data": vehicle_service.list_fitment_entries()})
    except Exception:
        current_app.logger.exception("Failed to list fitment entries")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.post("/entries")
@require_auth
@require_staff
def create_entry_route():
    try:
        row_id, created = vehicle_service.create_fitment_entry(request.get_json(silent=True))
        return jsonify({"data": {"id": row_id, "created": created}}), (201 if created else 200)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create fitment entry")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.delete("/entries/<int:row_id>")
@require_auth
@require_staff
def delete_entry_route(row_id: int):
    try:
        vehicle_service.delete_fitment_entry(row_id)
        return jsonify({"data": {"ok": True}})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete fitment entry")
        return jsonify({"error": "Internal server error"}), 500
