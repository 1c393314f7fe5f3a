# backend/partshop/services/product_service.py
"""
Product catalog service: storefront listing and detail, admin edits,
image storage and brand/category summaries.

The fitment placeholder product (see vehicle_service) is never returned by
storefront queries.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from ..extensions import db
from ..models import (
    Brand,
    Category,
    Product,
    ProductCarCompatibility,
    ProductImage,
    ProductYear,
    SaleDetail,
    SupplyDetail,
    UserCart,
)
from ..validation import ConflictError, NotFoundError, ValidationError, parse_number
from .vehicle_service import FITMENT_PLACEHOLDER_NAME, list_product_compatibility
from partshop.time_utils import to_epoch_ms, utcnow

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 100
RELATED_LIMIT = 8
MAX_WEIGHT_LOOKUP_IDS = 200

PRODUCT_MUTABLE_FIELDS = {"name", "description", "purchase_price", "selling_price", "quantity", "weight"}


# ---------------------------------------------------------------------------
# Image URLs
# ---------------------------------------------------------------------------

def public_image_url(product_id: int, img: ProductImage) -> str:
    """
    Browser URL for an image row. Stored bytes are served by this API with a
    cache-busting version; legacy rows point at a static file.
    """
    if img.image_mime:
        return f"/api/products/{product_id}/images/{img.id}?v={to_epoch_ms(img.image_updated_at)}"

    raw = (img.image or "").strip()
    if not raw:
        return ""
    if raw.startswith("/"):
        return raw
    if "/" in raw:
        return f"/{raw}"
    return f"/products/{raw}"


def _serialize_listing(p: Product) -> dict:
    row = p.to_dict()
    first = p.images[0] if p.images else None
    row["product_image"] = [{"image": public_image_url(p.product_id, first)}] if first else []
    return row


def _storefront_query():
    return db.session.query(Product).filter(Product.name != FITMENT_PLACEHOLDER_NAME)


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


# ---------------------------------------------------------------------------
# Storefront reads
# ---------------------------------------------------------------------------

def list_products(
    *,
    category: str | None = None,
    brands: str | None = None,
    min_price=None,
    max_price=None,
    q: str | None = None,
    model_id: int | None = None,
    year: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Storefront listing, newest first.

    Filters:
    - category: category name
    - brands: comma separated brand names
    - min_price / max_price: selling price bounds (inclusive)
    - q: case-insensitive substring of the product name
    - model_id + year: products with a fitment row for that model whose year
      range contains `year`; model_id alone matches any year
    """
    query = _storefront_query()

    if category:
        query = query.join(Category, Product.category_id == Category.category_id).filter(Category.name == category)

    brand_names = _split_csv(brands)
    if brand_names:
        query = query.join(Brand, Product.brand_id == Brand.brand_id).filter(Brand.name.in_(brand_names))

    low = parse_number(min_price)
    if low is not None:
        query = query.filter(Product.selling_price >= low)
    high = parse_number(max_price)
    if high is not None:
        query = query.filter(Product.selling_price <= high)

    if q and q.strip():
        query = query.filter(Product.name.ilike(f"%{q.strip()}%"))

    if model_id:
        fits = db.session.query(ProductCarCompatibility.product_id).filter(
            ProductCarCompatibility.model_id == model_id
        )
        if year:
            start = aliased(ProductYear)
            end = aliased(ProductYear)
            fits = (
                fits.join(start, ProductCarCompatibility.start_year_id == start.year_id)
                .join(end, ProductCarCompatibility.end_year_id == end.year_id)
                .filter(start.year <= year, end.year >= year)
            )
        query = query.filter(Product.product_id.in_(fits))

    query = query.order_by(Product.product_id.desc())

    if not per_page or per_page < 1:
        per_page = DEFAULT_PER_PAGE
    per_page = min(per_page, MAX_PER_PAGE)
    page = max(page or 1, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    products = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [_serialize_listing(p) for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> dict:
    p = _storefront_query().filter(Product.product_id == product_id).first()
    if not p:
        raise NotFoundError("Product not found")

    row = p.to_dict()
    row["product_image"] = [{"id": img.id, "image": public_image_url(p.product_id, img)} for img in p.images]
    row["compatibility"] = list_product_compatibility(p.product_id)
    return row


def related_products(product_id: int, limit: int = RELATED_LIMIT) -> list[dict]:
    """Other products in the same category, newest first."""
    p = db.session.get(Product, product_id)
    if not p:
        raise NotFoundError("Product not found")
    if p.category_id is None:
        return []

    rows = (
        _storefront_query()
        .filter(Product.category_id == p.category_id, Product.product_id != p.product_id)
        .order_by(Product.product_id.desc())
        .limit(limit)
        .all()
    )
    return [_serialize_listing(r) for r in rows]


def product_weights(product_ids) -> dict[str, float]:
    if not isinstance(product_ids, list) or not product_ids or len(product_ids) > MAX_WEIGHT_LOOKUP_IDS:
        raise ValidationError("productIds is required")

    ids = set()
    for raw in product_ids:
        number = parse_number(raw)
        if number is None or not number.is_integer() or number <= 0:
            raise ValidationError("productIds is required")
        ids.add(int(number))

    rows = db.session.query(Product.product_id, Product.weight).filter(Product.product_id.in_(ids)).all()
    return {str(pid): float(weight or 0) for pid, weight in rows}


def _counts(model, key_col, name_col, fk_col) -> list[dict]:
    rows = (
        db.session.query(key_col, name_col, db.func.count(Product.product_id))
        .select_from(model)
        .outerjoin(Product, (fk_col == key_col) & (Product.name != FITMENT_PLACEHOLDER_NAME))
        .group_by(key_col, name_col)
        .order_by(key_col.asc())
        .limit(500)
        .all()
    )
    return [{"id": rid, "name": name, "productCount": count} for rid, name, count in rows]


def list_brands() -> list[dict]:
    return _counts(Brand, Brand.brand_id, Brand.name, Product.brand_id)


def list_categories() -> list[dict]:
    return _counts(Category, Category.category_id, Category.name, Product.category_id)


# ---------------------------------------------------------------------------
# Admin writes
# ---------------------------------------------------------------------------

def _resolve_brand(brand_id, brand_name) -> Brand | None:
    number = parse_number(brand_id)
    if number:
        return db.session.get(Brand, int(number))
    name = (brand_name or "").strip() if isinstance(brand_name, str) else ""
    if name:
        return db.session.query(Brand).filter_by(name=name).first()
    return None


def _resolve_category(category_id, category_name) -> Category | None:
    number = parse_number(category_id)
    if number:
        return db.session.get(Category, int(number))
    name = (category_name or "").strip() if isinstance(category_name, str) else ""
    if name:
        return db.session.query(Category).filter_by(name=name).first()
    return None


def create_product(*, patch: dict, brand_id=None, category_id=None) -> dict:
    """Create a product from a validated patch (see PRODUCT_POLICY in routes)."""
    p = Product(quantity=0)
    for k, v in patch.items():
        if k in PRODUCT_MUTABLE_FIELDS:
            setattr(p, k, v)

    brand = _resolve_brand(brand_id, None)
    if brand_id and not brand:
        raise NotFoundError("Brand not found")
    category = _resolve_category(category_id, None)
    if category_id and not category:
        raise NotFoundError("Category not found")
    p.brand = brand
    p.category = category

    db.session.add(p)
    db.session.commit()
    return p.to_dict()


def update_product(product_id: int, payload: dict) -> dict:
    """
    Admin product edit. name is required; numeric fields that are blank or
    unparsable leave the stored value unchanged. Brand and category may be
    given by id or by name; unknown ones are ignored.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    p = db.session.get(Product, product_id)
    if not p:
        raise NotFoundError("Product not found")

    name = payload.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError("name is required")
    p.name = name

    if "description" in payload:
        description = payload.get("description")
        p.description = (description.strip() or None) if isinstance(description, str) else None

    for field in ("purchase_price", "selling_price", "quantity"):
        number = parse_number(payload.get(field))
        if number is not None:
            setattr(p, field, int(number // 1))
    weight = parse_number(payload.get("weight"))
    if weight is not None:
        p.weight = weight

    brand = _resolve_brand(payload.get("brandId"), payload.get("brandName"))
    if brand:
        p.brand = brand
    category = _resolve_category(payload.get("categoryId"), payload.get("categoryName"))
    if category:
        p.category = category

    db.session.commit()
    return p.to_dict()


def delete_product(product_id: int) -> None:
    """Remove a product and every row that references it, in one transaction."""
    if not db.session.get(Product, product_id):
        raise NotFoundError("Product not found")

    try:
        for model in (ProductCarCompatibility, SaleDetail, SupplyDetail, UserCart, ProductImage):
            db.session.query(model).filter(model.product_id == product_id).delete(synchronize_session=False)
        db.session.query(Product).filter(Product.product_id == product_id).delete(synchronize_session=False)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Unable to delete product due to related records") from exc


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def _safe_file_name(value: str | None) -> str:
    base = (value or "").strip()[:100]
    cleaned = "".join(ch if ch.isascii() and (ch.isalnum() or ch in "._-") else "_" for ch in base)
    return cleaned or f"upload_{to_epoch_ms(utcnow())}"


def add_product_images(product_id: int, files, *, max_bytes: int) -> list[dict]:
    """
    Store uploaded images as-is. files is a list of werkzeug FileStorage.
    Empty files are skipped; anything that is not image/* or is larger than
    max_bytes is rejected.
    """
    if not files:
        raise ValidationError("No files provided")
    if not db.session.get(Product, product_id):
        raise NotFoundError("Product not found")

    created = []
    for storage in files:
        data = storage.read()
        if not data:
            continue
        if len(data) > max_bytes:
            raise ValidationError("File too large")
        mime = (storage.mimetype or "").lower()
        if not mime.startswith("image/"):
            raise ValidationError("Only image uploads are allowed")

        img = ProductImage(
            product_id=product_id,
            image=_safe_file_name(storage.filename),
            image_bytes=data,
            image_mime=mime,
            image_updated_at=utcnow(),
        )
        db.session.add(img)
        created.append(img)

    db.session.commit()
    return [{"id": img.id} for img in created]


def get_product_image(product_id: int, image_id: int) -> ProductImage:
    img = db.session.query(ProductImage).filter_by(id=image_id, product_id=product_id).first()
    if not img:
        raise NotFoundError("Image not found")
    if not img.image_bytes:
        raise NotFoundError("Image bytes not available")
    return img


def delete_product_image(product_id: int, image_id: int) -> None:
    deleted = (
        db.session.query(ProductImage)
        .filter_by(id=image_id, product_id=product_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Image not found")
    db.session.commit()
