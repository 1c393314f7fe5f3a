# Overview: Flask API routes for staff management of accounts and approved addresses.

# backend/partshop/routes/admin.py
"""
Admin routes for users and addresses.

- Users: list/search, detail, strict field-level edit (no password changes)
- A user's saved addresses (created from approved addresses only)
- Approved street lines per barangay

All endpoints require a staff session.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_staff
from ..services import location_service, user_service
from ..validation import ConflictError, NotFoundError, ValidationError

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_staff
def list_users():
    """Query params: q matches username, name or email (case-insensitive)."""
    try:
        return jsonify({"data": user_service.list_users(request.args.get("q"))})
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/users/<int:user_id>")
@require_auth
@require_staff
def get_user(user_id: int):
    try:
        return jsonify({"data": user_service.get_user(user_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load user")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/users/<int:user_id>")
@require_auth
@require_staff
def update_user(user_id: int):
    """
    Editable: user_name, username, email, mobile_phone, contact_type,
    role_id, is_superuser. Any other field is rejected.
    """
    try:
        return jsonify({"data": user_service.update_user(user_id, request.get_json(silent=True))})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/users/<int:user_id>/addresses")
@require_auth
@require_staff
def list_user_addresses(user_id: int):
    try:
        user_service.get_user(user_id)
        return jsonify({"data": location_service.list_user_addresses(user_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load user addresses")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/users/<int:user_id>/addresses")
@require_auth
@require_staff
def create_user_address(user_id: int):
    """Request body: {"approvedAddressId": 7, "isDefault": true}"""
    try:
        address_id = location_service.create_user_address(
            user_id,
            request.get_json(silent=True),
            allow_free_text=False,
        )
        return jsonify({"data": {"id": address_id}}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create user address")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# APPROVED ADDRESSES
# =============================================================================

@admin_bp.get("/addresses")
@require_auth
@require_staff
def list_approved_addresses():
    try:
        return jsonify({"data": location_service.list_approved_addresses()})
    except Exception:
        current_app.logger.exception("Failed to list approved addresses")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/addresses")
@require_auth
@require_staff
def create_approved_address():
    """Request body: {"barangayId": 12, "street": "123 Rizal St", "isActive": true}"""
    try:
        row_id = location_service.create_approved_address(request.get_json(silent=True))
        return jsonify({"data": {"id": row_id}}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create approved address")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/addresses/<int:approved_address_id>")
@require_auth
@require_staff
def update_approved_address(approved_address_id: int):
    try:
        location_service.update_approved_address(approved_address_id, request.get_json(silent=True))
        return jsonify({"data": {"ok": True}})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update approved address")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/addresses/<int:approved_address_id>")
@require_auth
@require_staff
def delete_approved_address(approved_address_id: int):
    try:
        location_service.delete_approved_address(approved_address_id)
        return jsonify({"data": {"ok": True}})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to delete approved address")
        return jsonify({"error": "Internal server error"}), 500
