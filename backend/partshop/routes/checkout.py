# Overview: Flask API routes for checkout lookups and order placement.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import checkout_service
from ..decorators import require_auth
from ..validation import NotFoundError, ValidationError


checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


@checkout_bp.get("/lookups")
@require_auth
def lookups_route():
    try:
        return jsonify({"data": checkout_service.checkout_lookups(g.current_user.user_id)})
    except Exception:
        current_app.logger.exception("Failed to load checkout lookups")
        return jsonify({"error": "Internal server error"}), 500


@checkout_bp.post("/place")
@require_auth
def place_order_route():
    """
    Request body:
    {
        "addressId": 3,
        "courierId": 1,
        "paymentType": "CASH_ON_DELIVERY",   // optional
        "items": [{"productId": 12, "quantity": 2}]
    }
    """
    try:
        result = checkout_service.place_order(g.current_user.user_id, request.get_json(silent=True))
        return jsonify({"data": result}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500
