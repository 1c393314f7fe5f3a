# Overview: Admin dashboard aggregates and the delivered-sales tracker.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import and_, func, or_

from ..extensions import db
from ..models import Delivery, DeliveryHistory, DeliveryStatus, Sale, SaleDetail, Supply, User
from ..validation import NotFoundError, ValidationError, optional_positive_int
from .order_service import STATUS_DELIVERED, STATUS_PENDING
from partshop.time_utils import parse_day, start_of_day, to_day, utcnow

DASHBOARD_RANGES = ("today", "7d", "30d", "all")
DEFAULT_RANGE = "7d"
RECENT_ORDERS_LIMIT = 10
TOP_CUSTOMERS_LIMIT = 10
TOP_CUSTOMERS_SCAN = 5000

DEFAULT_TRACKER_TAKE = 200
MAX_TRACKER_TAKE = 1000


def build_range(range_name: str, now: datetime | None = None) -> tuple[datetime | None, datetime | None]:
    """
    (start, end_exclusive) in UTC for a dashboard range; (None, None) for "all".
    "7d" and "30d" include today.
    """
    if range_name == "all":
        return None, None
    today = start_of_day(now or utcnow())
    end_exclusive = today + timedelta(days=1)
    if range_name == "today":
        return today, end_exclusive
    days = 7 if range_name == "7d" else 30
    return today - timedelta(days=days - 1), end_exclusive


def _delivery_in_range(start, end):
    if start is None:
        return None
    return or_(
        and_(Sale.date >= start, Sale.date < end),
        and_(Delivery.date >= start, Delivery.date < end),
    )


def _order_deliveries(start, end):
    query = (
        db.session.query(Delivery)
        .outerjoin(Sale, Delivery.sale_id == Sale.sale_id)
        .filter(Delivery.sale_id.isnot(None))
    )
    in_range = _delivery_in_range(start, end)
    if in_range is not None:
        query = query.filter(in_range)
    return query


def dashboard(*, range_name: str | None = None, delivered_day: str | None = None) -> dict:
    range_name = range_name or DEFAULT_RANGE
    if range_name not in DASHBOARD_RANGES:
        raise ValidationError("Invalid query")

    if delivered_day:
        try:
            day_start, day_end = parse_day(delivered_day)
        except ValueError:
            raise ValidationError("Invalid query")
    else:
        day_start, day_end = parse_day(to_day(utcnow()))

    start, end = build_range(range_name)

    sales_q = db.session.query(func.coalesce(func.sum(Sale.total_amount), 0))
    supply_q = db.session.query(func.coalesce(func.sum(Supply.total_cost), 0))
    if start is not None:
        sales_q = sales_q.filter(Sale.date >= start, Sale.date < end)
        supply_q = supply_q.filter(Supply.date >= start, Supply.date < end)
    total_sales = int(sales_q.scalar() or 0)
    total_supply = int(supply_q.scalar() or 0)

    grouped = (
        _order_deliveries(start, end)
        .join(DeliveryStatus, Delivery.status_id == DeliveryStatus.status_id)
        .with_entities(DeliveryStatus.status_id, DeliveryStatus.status_name, func.count(Delivery.delivery_id))
        .group_by(DeliveryStatus.status_id, DeliveryStatus.status_name)
        .all()
    )
    status_counts = sorted(
        ({"statusId": sid, "status": name, "count": count} for sid, name, count in grouped),
        key=lambda row: row["status"],
    )

    recent = _order_deliveries(start, end).order_by(Delivery.delivery_id.desc()).limit(RECENT_ORDERS_LIMIT).all()
    recent_orders = []
    for d in recent:
        customer = d.sale.user if d.sale else None
        recent_orders.append({
            "id": str(d.sale_id or d.delivery_id),
            "date": to_day(d.sale.date if d.sale and d.sale.date else d.date),
            "customerName": customer.user_name if customer else "",
            "status": d.status.status_name if d.status else STATUS_PENDING,
            "total": int(d.overall_total or 0),
        })

    rows = (
        _order_deliveries(start, end)
        .filter(Sale.user_id.isnot(None))
        .with_entities(Sale.user_id, Delivery.overall_total)
        .order_by(Delivery.delivery_id.desc())
        .limit(TOP_CUSTOMERS_SCAN)
        .all()
    )
    agg: dict[int, dict] = {}
    for user_id, total in rows:
        entry = agg.setdefault(user_id, {"userId": user_id, "orders": 0, "total": 0})
        entry["orders"] += 1
        entry["total"] += int(total or 0)

    names = dict(
        db.session.query(User.user_id, User.user_name).filter(User.user_id.in_(list(agg))).all()
    ) if agg else {}
    top_customers = [
        {**entry, "name": names.get(uid, "")}
        for uid, entry in agg.items()
        if names.get(uid)
    ]
    top_customers.sort(key=lambda x: (-x["orders"], -x["total"]))

    delivered_count = (
        db.session.query(func.count(DeliveryHistory.history_id))
        .join(DeliveryStatus, DeliveryHistory.status_id == DeliveryStatus.status_id)
        .filter(
            DeliveryStatus.status_name == STATUS_DELIVERED,
            DeliveryHistory.timestamp_changed >= day_start,
            DeliveryHistory.timestamp_changed < day_end,
        )
        .scalar()
    ) or 0

    return {
        "range": range_name,
        "totals": {
            "totalSales": total_sales,
            "totalSupply": total_supply,
            "revenue": total_sales - total_supply,
        },
        "statusCounts": status_counts,
        "recentOrders": recent_orders,
        "topCustomers": top_customers[:TOP_CUSTOMERS_LIMIT],
        "delivered": {"day": to_day(day_start), "count": int(delivered_count)},
    }


# ---------------------------------------------------------------------------
# Sales tracker (delivered orders)
# ---------------------------------------------------------------------------

def _delivered_at(delivery: Delivery) -> datetime | None:
    times = [
        h.timestamp_changed for h in delivery.history
        if h.status and h.status.status_name == STATUS_DELIVERED
    ]
    return max(times) if times else None


def _items_bought(sale: Sale | None) -> int:
    return sum(int(d.quantity or 0) for d in sale.details) if sale else 0


def list_sales(*, q: str | None = None, take: int | str | None = None) -> list[dict]:
    """Delivered orders with a payment type; q matches sale id, delivery id or customer name."""
    try:
        take = optional_positive_int(take, "take", max_value=MAX_TRACKER_TAKE)
    except ValidationError:
        raise ValidationError("Invalid query") from None
    take = DEFAULT_TRACKER_TAKE if take is None else take

    deliveries = (
        db.session.query(Delivery)
        .join(Sale, Delivery.sale_id == Sale.sale_id)
        .join(DeliveryStatus, Delivery.status_id == DeliveryStatus.status_id)
        .filter(
            DeliveryStatus.status_name == STATUS_DELIVERED,
            Sale.payment_type.isnot(None),
            Sale.payment_type != "",
        )
        .order_by(Delivery.delivery_id.desc())
        .limit(take)
        .all()
    )

    needle = (q or "").strip().lower()
    data = []
    for d in deliveries:
        customer = d.sale.user if d.sale else None
        row = {
            "saleId": d.sale_id,
            "deliveryId": d.delivery_id,
            "customerName": customer.user_name if customer else "",
            "itemsBought": _items_bought(d.sale),
            "totalPrice": int(d.overall_total or 0),
            "deliveredDate": to_day(_delivered_at(d)),
        }
        if needle:
            hay = f"{row['saleId'] or ''} {row['deliveryId']} {row['customerName']}".lower()
            if needle not in hay:
                continue
        data.append(row)
    return data


def get_sale(sale_id: int) -> dict:
    delivery = db.session.query(Delivery).filter_by(sale_id=sale_id).first()
    if not delivery or not delivery.sale:
        raise NotFoundError("Sale not found")

    sale = delivery.sale
    details = (
        db.session.query(SaleDetail)
        .filter_by(sale_id=sale.sale_id)
        .order_by(SaleDetail.sale_detail_id.asc())
        .all()
    )
    return {
        "saleId": sale.sale_id,
        "deliveryId": delivery.delivery_id,
        "customerName": sale.user.user_name if sale.user else "",
        "paymentType": sale.payment_type or "",
        "deliveredDate": to_day(_delivered_at(delivery)),
        "totalPrice": int(delivery.overall_total or 0),
        "items": [
            {
                "id": str(li.sale_detail_id),
                "name": li.product.name if li.product else "",
                "quantity": int(li.quantity or 0),
                "subtotal": int(li.sub_total or 0),
            }
            for li in details
        ],
    }
