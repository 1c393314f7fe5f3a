# Overview: Flask API routes for the signed-in user's profile, orders and addresses.

from flask import Blueprint, request, jsonify, current_app, g, make_response

from ..services import location_service, order_service, user_service
from ..decorators import require_auth
from ..validation import ConflictError, NotFoundError, ValidationError


me_bp = Blueprint("me", __name__, url_prefix="/api/me")


@me_bp.get("")
@require_auth
def me_route():
    return jsonify({"data": user_service.me(g.current_user)})


@me_bp.get("/profile-picture")
def get_profile_picture_route():
    """Public: pictures are referenced by URL from the storefront header."""
    user_id = request.args.get("userId", type=int)
    if not user_id:
        return jsonify({"error": "userId is required"}), 400
    try:
        user = user_service.get_profile_picture(user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    resp = make_response(user.profile_picture_bytes)
    resp.headers["Content-Type"] = user.profile_picture_mime or "application/octet-stream"
    resp.headers["Cache-Control"] = "public, max-age=31536000, immutable"
    if user.profile_picture_updated_at:
        resp.last_modified = user.profile_picture_updated_at
    return resp


@me_bp.post("/profile-picture")
@require_auth
def upload_profile_picture_route():
    try:
        url = user_service.set_profile_picture(
            g.current_user,
            request.files.get("file"),
            max_bytes=current_app.config["MAX_UPLOAD_BYTES"],
        )
        return jsonify({"data": {"profile_picture": url}}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to upload profile picture")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@me_bp.get("/orders")
@require_auth
def list_orders_route():
    try:
        data = order_service.list_my_orders(g.current_user.user_id, request.args.get("q"))
        return jsonify({"data": data})
    except Exception:
        current_app.logger.exception("Failed to load orders")
        return jsonify({"error": "Internal server error"}), 500


@me_bp.get("/orders/<int:sale_id>")
@require_auth
def get_order_route(sale_id: int):
    try:
        return jsonify({"data": order_service.get_my_order(g.current_user.user_id, sale_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

@me_bp.get("/addresses")
@require_auth
def list_addresses_route():
    try:
        return jsonify({"data": location_service.list_user_addresses(g.current_user.user_id)})
    except Exception:
        current_app.logger.exception("Failed to load addresses")
        return jsonify({"error": "Internal server error"}), 500


@me_bp.post("/addresses")
@require_auth
def create_address_route():
    try:
        address_id = location_service.create_user_address(
            g.current_user.user_id, request.get_json(silent=True)
        )
        return jsonify({"data": {"id": address_id}}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create address")
        return jsonify({"error": "Internal server error"}), 500


@me_bp.patch("/addresses/<int:address_id>")
@require_auth
def update_address_route(address_id: int):
    try:
        location_service.update_user_address(g.current_user.user_id, address_id, request.get_json(silent=True))
        return jsonify({"data": {"ok": True}})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update address")
        return jsonify({"error": "Internal server error"}), 500


@me_bp.delete("/addresses/<int:address_id>")
@require_auth
def delete_address_route(address_id: int):
    try:
        location_service.delete_user_address(g.current_user.user_id, address_id)
        return jsonify({"data": {"ok": True}})
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to delete address")
        return jsonify({"error": "Internal server error"}), 500
