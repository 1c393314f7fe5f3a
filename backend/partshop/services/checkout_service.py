# Overview: Checkout lookups and order placement.

"""
Checkout Service

place_order turns a list of (product, quantity) lines into a sale with its
delivery in a single transaction:
- sale + sale_details (current selling prices)
- delivery with status Pending, fee and overall total
- the first delivery_history row (Pending)
- ordered products removed from the customer's cart
"""

from __future__ import annotations

from collections import OrderedDict

from ..extensions import db
from ..models import Address, Courier, Delivery, DeliveryHistory, Product, Sale, SaleDetail, UserCart
from ..validation import MAX_LINE_QUANTITY, NotFoundError, ValidationError, optional_text, require_positive_int
from .order_service import STATUS_PENDING, ensure_default_statuses, get_status_id
from .shipping_service import delivery_fee_for
from partshop.time_utils import utcnow

DEFAULT_PAYMENT_TYPE = "CASH_ON_DELIVERY"
COURIER_LIMIT = 100
ADDRESS_LIMIT = 50


def format_address(address: Address) -> dict:
    """Label plus display lines (street, barangay, municipality, province)."""
    barangay = address.barangay
    municipality = barangay.municipality if barangay else None
    province = municipality.province if municipality else None
    parts = [
        address.street_house_building_no,
        barangay.name if barangay else None,
        municipality.name if municipality else None,
        province.name if province else None,
    ]
    parts = [p for p in parts if p and p.strip()]
    fallback = f"Address #{address.address_id}"
    return {
        "id": str(address.address_id),
        "label": parts[0] if parts else fallback,
        "lines": parts or [fallback],
    }


def checkout_lookups(user_id: int) -> dict:
    couriers = db.session.query(Courier).order_by(Courier.courier_id.asc()).limit(COURIER_LIMIT).all()
    addresses = (
        db.session.query(Address)
        .filter_by(user_id=user_id)
        .order_by(Address.address_id.asc())
        .limit(ADDRESS_LIMIT)
        .all()
    )
    return {
        "couriers": [c.to_dict() for c in couriers],
        "addresses": [format_address(a) for a in addresses],
    }


def _merge_items(items) -> "OrderedDict[int, int]":
    if not isinstance(items, list) or not items:
        raise ValidationError("Invalid payload")

    merged: OrderedDict[int, int] = OrderedDict()
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Invalid payload")
        product_id = require_positive_int(item.get("productId"), "productId")
        quantity = require_positive_int(item.get("quantity"), "quantity", max_value=MAX_LINE_QUANTITY)
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


def place_order(user_id: int, payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    address_id = require_positive_int(payload.get("addressId"), "addressId")
    courier_id = require_positive_int(payload.get("courierId"), "courierId")
    payment_type = optional_text(payload.get("paymentType"), "paymentType", max_length=255) or DEFAULT_PAYMENT_TYPE
    lines = _merge_items(payload.get("items"))

    address = db.session.query(Address).filter_by(address_id=address_id, user_id=user_id).first()
    if not address:
        raise NotFoundError("Address not found")
    courier = db.session.get(Courier, courier_id)
    if not courier:
        raise NotFoundError("Courier not found")

    products = db.session.query(Product).filter(Product.product_id.in_(list(lines))).all()
    if len(products) != len(lines):
        raise NotFoundError("One or more products not found")
    by_id = {p.product_id: p for p in products}

    subtotal = 0
    total_weight_kg = 0.0
    details = []
    for product_id, quantity in lines.items():
        product = by_id[product_id]
        unit_price = int(product.selling_price or 0)
        if unit_price < 0:
            raise ValidationError("Invalid product price")
        line_total = unit_price * quantity
        subtotal += line_total
        weight = float(product.weight or 0)
        if weight > 0:
            total_weight_kg += weight * quantity
        details.append(SaleDetail(
            product_id=product_id,
            quantity=quantity,
            selling_price=unit_price,
            sub_total=line_total,
        ))

    fee = delivery_fee_for(total_weight_kg, courier)
    if fee is None:
        raise ValidationError("Selected courier cannot deliver this cart weight")
    overall_total = subtotal + fee

    ensure_default_statuses()
    pending_id = get_status_id(STATUS_PENDING)

    now = utcnow()
    try:
        sale = Sale(user_id=user_id, total_amount=overall_total, payment_type=payment_type, date=now)
        sale.details = details
        db.session.add(sale)
        db.session.flush()

        delivery = Delivery(
            sale_id=sale.sale_id,
            courier_id=courier.courier_id,
            address_id=address.address_id,
            delivery_fee=fee,
            overall_total=overall_total,
            date=now,
            status_id=pending_id,
            tracking_number=None,
        )
        db.session.add(delivery)
        db.session.flush()

        db.session.add(DeliveryHistory(
            delivery_id=delivery.delivery_id,
            status_id=pending_id,
            user_id=None,
            location_details=None,
            timestamp_changed=now,
        ))

        db.session.query(UserCart).filter(
            UserCart.user_id == user_id,
            UserCart.product_id.in_(list(lines)),
        ).delete(synchronize_session=False)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return {
        "saleId": sale.sale_id,
        "deliveryId": delivery.delivery_id,
        "subtotal": subtotal,
        "deliveryFee": fee,
        "total": overall_total,
    }
