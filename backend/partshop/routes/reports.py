# Overview: Flask API routes for the admin dashboard and sales tracker.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_staff
from ..services import reporting_service
from ..validation import NotFoundError, ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/admin")


@reports_bp.get("/dashboard")
@require_auth
@require_staff
def dashboard_route():
    """
    Query parameters:
    - range: today | 7d | 30d | all (default 7d)
    - deliveredDay: YYYY-MM-DD for the delivered-transitions counter (default today, UTC)
    """
    try:
        data = reporting_service.dashboard(
            range_name=request.args.get("range"),
            delivered_day=request.args.get("deliveredDay"),
        )
        return jsonify({"data": data})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load dashboard")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/sales-tracker")
@require_auth
@require_staff
def list_sales_route():
    try:
        data = reporting_service.list_sales(
            q=request.args.get("q"),
            take=request.args.get("take"),
        )
        return jsonify({"data": data})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/sales-tracker/<int:sale_id>")
@require_auth
@require_staff
def get_sale_route(sale_id: int):
    try:
        return jsonify({"data": reporting_service.get_sale(sale_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return jsonify({"error": "Internal server error"}), 500
