# Overview: Flask API routes for the signed-in user's cart.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import cart_service
from ..decorators import require_auth
from ..validation import NotFoundError, ValidationError


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.get("")
@require_auth
def get_cart_route():
    try:
        return jsonify({"data": cart_service.get_cart(g.current_user.user_id)})
    except Exception:
        current_app.logger.exception("Failed to load cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.post("")
@require_auth
def add_to_cart_route():
    """
    Request body: {"productId": 12, "quantity": 2}

    201 when a new line is created, 200 when an existing line was bumped.
    """
    data = request.get_json(silent=True) or {}
    try:
        created = cart_service.add_to_cart(g.current_user.user_id, data.get("productId"), data.get("quantity"))
        return jsonify({"data": {"ok": True, "created": created}}), (201 if created else 200)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add to cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.patch("/<int:product_id>")
@require_auth
def set_quantity_route(product_id: int):
    data = request.get_json(silent=True) or {}
    try:
        cart_service.set_quantity(g.current_user.user_id, product_id, data.get("quantity"))
        return jsonify({"data": {"ok": True}})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.delete("/<int:product_id>")
@require_auth
def remove_item_route(product_id: int):
    try:
        cart_service.remove_item(g.current_user.user_id, product_id)
        return jsonify({"data": {"ok": True}})
    except Exception:
        current_app.logger.exception("Failed to remove cart item")
        return jsonify({"error": "Internal server error"}), 500
