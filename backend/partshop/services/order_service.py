# Overview: Order listing and delivery status changes with their history trail.

"""
Order & Delivery Service

A storefront order is a Sale plus exactly one Delivery. The delivery carries
the current status; every status change appends one DeliveryHistory row,
which is never edited afterwards.

Status rules:
- statusName must be one of the delivery_statuses rows
- "Tracking number posted" needs a tracking number, either sent with the
  same change or already stored on the delivery
"""

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Delivery, DeliveryHistory, DeliveryStatus, Sale, SaleDetail
from ..validation import NotFoundError, ValidationError, optional_text, parse_number
from partshop.time_utils import to_day, utcnow

STATUS_PENDING = "Pending"
STATUS_PREPARE = "Prepare to ship"
STATUS_PICKUP = "Pickup by courier"
STATUS_TRACKING_POSTED = "Tracking number posted"
STATUS_DELIVERED = "Delivered"

DEFAULT_STATUSES = (
    (STATUS_PENDING, 1, "Order placed"),
    (STATUS_PREPARE, 2, "Preparing items"),
    (STATUS_PICKUP, 3, "Handed to courier"),
    (STATUS_TRACKING_POSTED, 4, "Tracking info available"),
    (STATUS_DELIVERED, 5, "Delivered"),
)

ADMIN_LIST_LIMIT = 200
CUSTOMER_LIST_LIMIT = 100
HISTORY_LIMIT = 200


def ensure_default_statuses() -> None:
    """Upsert the five built-in statuses by name. Safe to call on every request."""
    existing = {s.status_name: s for s in db.session.query(DeliveryStatus).all()}
    changed = False
    for name, order, description in DEFAULT_STATUSES:
        row = existing.get(name)
        if row is None:
            db.session.add(DeliveryStatus(status_name=name, sequence_order=order, description=description))
            changed = True
        elif row.sequence_order != order or row.description != description:
            row.sequence_order = order
            row.description = description
            changed = True
    if changed:
        db.session.commit()


def get_status_id(status_name: str) -> int | None:
    row = db.session.query(DeliveryStatus).filter_by(status_name=status_name).first()
    return row.status_id if row else None


def status_options() -> list[dict]:
    rows = db.session.query(DeliveryStatus).order_by(DeliveryStatus.sequence_order.asc()).limit(100).all()
    return [r.to_dict() for r in rows]


def _status_name(delivery: Delivery) -> str:
    name = (delivery.status.status_name if delivery.status else "") or ""
    return name.strip() or STATUS_PENDING


def _order_date(delivery: Delivery) -> str:
    return to_day(delivery.sale.date if delivery.sale and delivery.sale.date else delivery.date)


def build_address_text(address) -> str:
    if not address:
        return ""
    barangay = address.barangay
    municipality = barangay.municipality if barangay else None
    province = municipality.province if municipality else None
    parts = [
        address.street_house_building_no,
        barangay.name if barangay else None,
        municipality.name if municipality else None,
        province.name if province else None,
    ]
    return ", ".join(p for p in parts if p and p.strip())


def _items(delivery: Delivery) -> list[dict]:
    details = delivery.sale.details if delivery.sale else []
    return [
        {
            "name": d.product.name if d.product else "",
            "quantity": int(d.quantity or 0),
            "subtotal": int(d.sub_total if d.sub_total is not None else (d.selling_price or 0) * (d.quantity or 0)),
        }
        for d in details
    ]


def _history(delivery: Delivery) -> list[dict]:
    return [h.to_dict() for h in delivery.history[:HISTORY_LIMIT]]


def _order_core(delivery: Delivery) -> dict:
    return {
        "saleId": delivery.sale_id,
        "deliveryId": delivery.delivery_id,
        "date": _order_date(delivery),
        "paymentType": (delivery.sale.payment_type if delivery.sale else None) or "",
        "status": _status_name(delivery),
        "trackingNumber": delivery.tracking_number or None,
        "totals": {
            "shipping": int(delivery.delivery_fee or 0),
            "total": int(delivery.overall_total or 0),
        },
        "items": _items(delivery),
        "history": _history(delivery),
    }


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

def list_admin_orders(*, status: str | None = None, include_delivered: bool = False) -> list[dict]:
    """
    Orders newest first. An explicit status filter wins; otherwise Delivered
    orders are hidden unless include_delivered is set.
    """
    query = (
        db.session.query(Delivery)
        .filter(Delivery.sale_id.isnot(None))
        .outerjoin(DeliveryStatus, Delivery.status_id == DeliveryStatus.status_id)
    )

    status = (status or "").strip()
    if status:
        query = query.filter(DeliveryStatus.status_name == status)
    elif not include_delivered:
        query = query.filter(or_(DeliveryStatus.status_name.is_(None), DeliveryStatus.status_name != STATUS_DELIVERED))

    deliveries = query.order_by(Delivery.delivery_id.desc()).limit(ADMIN_LIST_LIMIT).all()

    data = []
    for d in deliveries:
        customer = d.sale.user if d.sale else None
        data.append({
            "id": str(d.sale_id or d.delivery_id),
            "saleId": d.sale_id,
            "deliveryId": d.delivery_id,
            "date": _order_date(d),
            "customerName": customer.user_name if customer else "",
            "status": _status_name(d),
            "total": int(d.overall_total or 0),
        })
    return data


def _delivery_for_sale(sale_id: int) -> Delivery | None:
    return db.session.query(Delivery).filter_by(sale_id=sale_id).first()


def get_admin_order(sale_id: int) -> dict:
    ensure_default_statuses()
    delivery = _delivery_for_sale(sale_id)
    if not delivery:
        raise NotFoundError("Order not found")

    customer = delivery.sale.user if delivery.sale else None
    data = _order_core(delivery)
    data.update({
        "courier": {"id": delivery.courier.courier_id, "name": delivery.courier.name} if delivery.courier else None,
        "address": (
            {"id": delivery.address.address_id, "text": build_address_text(delivery.address)}
            if delivery.address else None
        ),
        "customer": {"id": customer.user_id, "name": customer.user_name} if customer else None,
        "statusOptions": status_options(),
    })
    return data


def update_order_status(sale_id: int, payload: dict, *, actor_user_id: int | None) -> dict:
    """
    Change tracking number and/or status. A status change appends exactly one
    history row attributed to actor_user_id; a tracking-only edit appends none.
    A blank tracking number clears the stored one.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    status_name = optional_text(payload.get("statusName"), "statusName", max_length=100) or None
    tracking_number = optional_text(payload.get("trackingNumber"), "trackingNumber", max_length=255)
    location_details = optional_text(payload.get("locationDetails"), "locationDetails", max_length=255) or None

    if not status_name and not tracking_number:
        raise ValidationError("Provide statusName or trackingNumber")

    ensure_default_statuses()

    delivery = _delivery_for_sale(sale_id)
    if not delivery:
        raise NotFoundError("Order not found")

    next_status = None
    if status_name:
        next_status = db.session.query(DeliveryStatus).filter_by(status_name=status_name).first()
        if not next_status:
            raise ValidationError("Unknown status")
        if status_name == STATUS_TRACKING_POSTED:
            effective = tracking_number if tracking_number is not None else (delivery.tracking_number or "")
            if not effective.strip():
                raise ValidationError("Tracking number is required for 'Tracking number posted'")

    try:
        if tracking_number is not None:
            delivery.tracking_number = tracking_number or None
        if next_status:
            delivery.status_id = next_status.status_id
            db.session.add(DeliveryHistory(
                delivery_id=delivery.delivery_id,
                status_id=next_status.status_id,
                user_id=actor_user_id,
                location_details=location_details,
                timestamp_changed=utcnow(),
            ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    db.session.refresh(delivery)
    return {
        "deliveryId": delivery.delivery_id,
        "saleId": delivery.sale_id,
        "status": delivery.status.status_name if delivery.status else None,
        "trackingNumber": delivery.tracking_number or None,
    }


# ---------------------------------------------------------------------------
# Customer
# ---------------------------------------------------------------------------

def list_my_orders(user_id: int, q: str | None = None) -> list[dict]:
    """The user's orders, newest first; q matches a sale id or part of a tracking number."""
    query = db.session.query(Delivery).join(Sale, Delivery.sale_id == Sale.sale_id).filter(Sale.user_id == user_id)

    q = (q or "").strip()[:255]
    if q:
        clauses = [Delivery.tracking_number.ilike(f"%{q}%")]
        number = parse_number(q)
        if number is not None and number > 0:
            clauses.append(Delivery.sale_id == int(number))
        query = query.filter(or_(*clauses))

    deliveries = query.order_by(Delivery.delivery_id.desc()).limit(CUSTOMER_LIST_LIMIT).all()

    counts = dict(
        db.session.query(SaleDetail.sale_id, db.func.coalesce(db.func.sum(SaleDetail.quantity), 0))
        .filter(SaleDetail.sale_id.in_([d.sale_id for d in deliveries]))
        .group_by(SaleDetail.sale_id)
        .all()
    ) if deliveries else {}

    return [
        {
            "id": str(d.sale_id or d.delivery_id),
            "saleId": d.sale_id,
            "deliveryId": d.delivery_id,
            "date": _order_date(d),
            "status": _status_name(d),
            "total": int(d.overall_total or 0),
            "trackingNumber": d.tracking_number or None,
            "itemsCount": int(counts.get(d.sale_id, 0)),
        }
        for d in deliveries
    ]


def get_my_order(user_id: int, sale_id: int) -> dict:
    delivery = (
        db.session.query(Delivery)
        .join(Sale, Delivery.sale_id == Sale.sale_id)
        .filter(Delivery.sale_id == sale_id, Sale.user_id == user_id)
        .first()
    )
    if not delivery:
        raise NotFoundError("Order not found")

    data = _order_core(delivery)
    data.update({
        "courier": delivery.courier.name if delivery.courier else None,
        "addressText": build_address_text(delivery.address),
    })
    return data

