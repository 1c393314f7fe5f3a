# Overview: Flask API routes for the staff order queue and delivery status changes.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_staff
from ..services import order_service
from ..validation import NotFoundError, ValidationError, parse_bool


orders_bp = Blueprint("orders", __name__, url_prefix="/api/admin/orders")


@orders_bp.get("")
@require_auth
@require_staff
def list_orders_route():
    """
    Query parameters:
    - status: exact status name
    - includeDelivered: show Delivered orders when no status is given (default false)
    """
    try:
        data = order_service.list_admin_orders(
            status=(request.args.get("status") or "").strip() or None,
            include_delivered=parse_bool(request.args.get("includeDelivered")),
        )
        return jsonify({"data": data})
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:sale_id>")
@require_auth
@require_staff
def get_order_route(sale_id: int):
    try:
        return jsonify({"data": order_service.get_admin_order(sale_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<int:sale_id>")
@require_auth
@require_staff
def update_order_route(sale_id: int):
    """
    Request body:
    {
        "statusName": "Tracking number posted",  // optional
        "trackingNumber": "JT123",               // optional, "" clears it
        "locationDetails": "Manila hub"          // optional
    }
    """
    try:
        result = order_service.update_order_status(
            sale_id,
            request.get_json(silent=True),
            actor_user_id=g.current_user.user_id,
        )
        return jsonify({"data": result})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500
