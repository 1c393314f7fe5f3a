# Overview: Flask API routes for supply receipts, the supply tracker and admin lookups.

"""
Supply Routes

SECURITY: staff only.

POST /api/supplies posts a whole receipt in one transaction: supplier, brands,
categories and conditions are upserted and product stock is raised.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_staff
from ..services import supply_service
from ..services.concurrency import DatabaseUnavailableError
from ..validation import ConflictError, NotFoundError, ValidationError


supplies_bp = Blueprint("supplies", __name__, url_prefix="/api")


@supplies_bp.post("/supplies")
@require_auth
@require_staff
def create_supply_route():
    """
    Request body:
    {
        "receiptNumber": "OR-1001",
        "supplier": "Acme Parts",
        "date": "2026-03-01",
        "lines": [
            {"name": "Brake Pad", "brand": "Bendix", "category": "Brakes",
             "condition": "New", "purchasePrice": "450", "sellingPrice": "700",
             "quantity": "4"}
        ]
    }
    """
    try:
        return jsonify({"data": supply_service.create_supply_receipt(request.get_json(silent=True))}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except DatabaseUnavailableError as e:
        return jsonify({"error": str(e)}), 503
    except Exception:
        current_app.logger.exception("Failed to save supply receipt")
        return jsonify({"error": "Internal server error"}), 500


@supplies_bp.get("/admin/supply-tracker")
@require_auth
@require_staff
def list_supplies_route():
    try:
        data = supply_service.list_supplies(
            q=request.args.get("q"),
            take=request.args.get("take"),
        )
        return jsonify({"data": data})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list supplies")
        return jsonify({"error": "Internal server error"}), 500


@supplies_bp.get("/admin/supply-tracker/<int:supply_id>")
@require_auth
@require_staff
def get_supply_route(supply_id: int):
    try:
        return jsonify({"data": supply_service.get_supply(supply_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load supply")
        return jsonify({"error": "Internal server error"}), 500


@supplies_bp.get("/admin/lookups")
@require_auth
@require_staff
def get_lookups_route():
    try:
        return jsonify({"data": supply_service.get_lookups()})
    except Exception:
        current_app.logger.exception("Failed to load lookups")
        return jsonify({"error": "Internal server error"}), 500


@supplies_bp.post("/admin/lookups")
@require_auth
@require_staff
def create_lookup_route():
    """Request body: {"type": "supplier|brand|category|condition", "name": "..."}"""
    try:
        name, created = supply_service.create_lookup(request.get_json(silent=True))
        return jsonify({"data": {"name": name, "created": created}}), (201 if created else 200)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create lookup")
        return jsonify({"error": "Internal server error"}), 500
