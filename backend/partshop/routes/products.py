# Overview: Flask API routes for the storefront catalog and staff product management.

"""
Product Routes

Public:
- Listing, detail, related products, weights, brand/category facets
- Image bytes

Staff only:
- Create / edit / delete products
- Upload / delete images
- Add / remove vehicle compatibility rows
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_staff
from ..models import Product
from ..services import product_service, vehicle_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)


products_bp = Blueprint("products", __name__, url_prefix="/api")

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "description",
        "purchase_price",
        "selling_price",
        "quantity",
        "weight",
        "brand_id",
        "category_id",
    },
    required_on_create={"name"},
)

# Stored image rows never change in place; a new upload gets a new id
IMAGE_CACHE_CONTROL = "public, max-age=31536000, immutable"


@products_bp.get("/products")
def list_products_route():
    """
    Query parameters: category, brand (comma separated), minPrice, maxPrice,
    q, model_id, year, page, perPage.
    """
    args = request.args
    try:
        data = product_service.list_products(
            category=args.get("category"),
            brands=args.get("brand"),
            min_price=args.get("minPrice"),
            max_price=args.get("maxPrice"),
            q=args.get("q"),
            model_id=args.get("model_id", type=int),
            year=args.get("year", type=int),
            page=args.get("page", type=int),
            per_page=args.get("perPage", type=int),
        )
        return jsonify({"data": data})
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/products/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return jsonify({"data": product_service.get_product(product_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/products/<int:product_id>/related")
def related_products_route(product_id: int):
    try:
        return jsonify({"data": product_service.related_products(product_id)})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load related products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/products/weights")
def product_weights_route():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify({"data": {"weightsKg": product_service.product_weights(data.get("productIds"))}})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to load product weights")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/brands")
def list_brands_route():
    try:
        return jsonify({"data": product_service.list_brands()})
    except Exception:
        current_app.logger.exception("Failed to list brands")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/categories")
def list_categories_route():
    try:
        return jsonify({"data": product_service.list_categories()})
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Staff product management
# ---------------------------------------------------------------------------

@products_bp.post("/products")
@require_auth
@require_staff
def create_product_route():
    try:
        patch = validate_payload(
            model=Product,
            payload=request.get_json(silent=True),
            policy=PRODUCT_POLICY,
            partial=False,
        )
        brand_id = patch.pop("brand_id", None)
        category_id = patch.pop("category_id", None)
        product = product_service.create_product(patch=patch, brand_id=brand_id, category_id=category_id)
        return jsonify({"data": product}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.patch("/products/<int:product_id>")
@require_auth
@require_staff
def update_product_route(product_id: int):
    try:
        return jsonify({"data": product_service.update_product(product_id, request.get_json(silent=True))})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/products/<int:product_id>")
@require_auth
@require_staff
def delete_product_route(product_id: int):
    try:
        product_service.delete_product(product_id)
        return jsonify({"data": {"ok": True}})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

@products_bp.post("/products/<int:product_id>/images")
@require_auth
@require_staff
def upload_images_route(product_id: int):
    try:
        created = product_service.add_product_images(
            product_id,
            request.files.getlist("files"),
            max_bytes=current_app.config["MAX_UPLOAD_BYTES"],
        )
        return jsonify({"data": created}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to upload product images")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/products/<int:product_id>/images/<int:image_id>")
def get_image_route(product_id: int, image_id: int):
    try:
        img = product_service.get_product_image(product_id, image_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    resp = current_app.response_class(img.image_bytes, mimetype=img.image_mime or "application/octet-stream")
    resp.headers["Cache-Control"] = IMAGE_CACHE_CONTROL
    resp.add_etag()
    if img.image_updated_at:
        resp.last_modified = img.image_updated_at
    return resp.make_conditional(request)


@products_bp.delete("/products/<int:product_id>/images/<int:image_id>")
@require_auth
@require_staff
def delete_image_route(product_id: int, image_id: int):
    try:
        product_service.delete_product_image(product_id, image_id)
        return jsonify({"data": {"ok": True}})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete product image")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Vehicle compatibility
# ---------------------------------------------------------------------------

@products_bp.get("/products/<int:product_id>/compatibility")
def list_compatibility_route(product_id: int):
    try:
        return jsonify({"data": vehicle_service.list_product_compatibility(product_id)})
    except Exception:
        current_app.logger.exception("Failed to load compatibility")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/products/<int:product_id>/compatibility")
@require_auth
@require_staff
def add_compatibility_route(product_id: int):
    """
    Request body: {"model_id": 4, "start_year_id": 10, "end_year_id": 14}

    Posting an identical row again returns 200 with created=false.
    """
    try:
        row_id, created = vehicle_service.add_product_compatibility(product_id, request.get_json(silent=True))
        return jsonify({"data": {"id": row_id, "created": created}}), (201 if created else 200)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add compatibility")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/products/<int:product_id>/compatibility/<int:compat_id>")
@require_auth
@require_staff
def delete_compatibility_route(product_id: int, compat_id: int):
    try:
        vehicle_service.delete_product_compatibility(product_id, compat_id)
        return jsonify({"data": {"ok": True}})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete compatibility")
        return jsonify({"error": "Internal server error"}), 500
