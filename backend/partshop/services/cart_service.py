# Overview: Per-user shopping cart lines.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, UserCart
from ..validation import MAX_LINE_QUANTITY, NotFoundError, ValidationError, require_positive_int
from .product_service import public_image_url
from partshop.time_utils import utcnow

CART_LIST_LIMIT = 50


def max_cart_items() -> int:
    return int(current_app.config.get("CART_MAX_ITEMS", 30))


def _serialize_line(line: UserCart) -> dict:
    product = line.product
    first = product.images[0] if product and product.images else None
    return {
        "product": str(line.product_id),
        "product_name": product.name if product else "",
        "product_image": public_image_url(line.product_id, first) if first else None,
        "brand_name": product.brand.name if product and product.brand else None,
        "category_name": product.category.name if product and product.category else None,
        "selling_price": int(product.selling_price or 0) if product else 0,
        "quantity": int(line.quantity or 1),
        "price_at_addition": int(line.price_at_addition or 0),
    }


def get_cart(user_id: int) -> dict:
    lines = (
        db.session.query(UserCart)
        .filter_by(user_id=user_id)
        .order_by(UserCart.updated_at.desc(), UserCart.cart_id.desc())
        .limit(CART_LIST_LIMIT)
        .all()
    )
    return {"items": [_serialize_line(line) for line in lines], "maxItems": max_cart_items()}


def add_to_cart(user_id: int, product_id, quantity=None) -> bool:
    """
    Add a product or bump the quantity of an existing line.

    Returns True when a new line was created. Bumping an existing line never
    hits the distinct-line limit.
    """
    product_id = require_positive_int(product_id, "productId")
    quantity = 1 if quantity is None else require_positive_int(quantity, "quantity", max_value=MAX_LINE_QUANTITY)

    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")

    now = utcnow()
    existing = db.session.query(UserCart).filter_by(user_id=user_id, product_id=product_id).first()
    if existing:
        existing.quantity = (existing.quantity or 0) + quantity
        existing.updated_at = now
        db.session.commit()
        return False

    limit = max_cart_items()
    count = db.session.query(UserCart).filter_by(user_id=user_id).count()
    if count >= limit:
        raise ValidationError(f"Cart limit reached ({limit} items). Remove an item to add more.")

    db.session.add(UserCart(
        user_id=user_id,
        product_id=product_id,
        quantity=quantity,
        price_at_addition=product.selling_price or 0,
        created_at=now,
        updated_at=now,
    ))
    db.session.commit()
    return True


def set_quantity(user_id: int, product_id: int, quantity) -> None:
    quantity = require_positive_int(quantity, "quantity", max_value=MAX_LINE_QUANTITY)
    updated = (
        db.session.query(UserCart)
        .filter_by(user_id=user_id, product_id=product_id)
        .update({"quantity": quantity, "updated_at": utcnow()}, synchronize_session=False)
    )
    if not updated:
        raise NotFoundError("Cart item not found")
    db.session.commit()


def remove_item(user_id: int, product_id: int) -> None:
    """Idempotent."""
    db.session.query(UserCart).filter_by(user_id=user_id, product_id=product_id).delete(synchronize_session=False)
    db.session.commit()
