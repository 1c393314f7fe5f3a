from __future__ import annotations

from ..extensions import db
from partshop.time_utils import to_utc_z


class Sale(db.Model):
    """Customer order header. Every storefront sale has exactly one Delivery."""
    __tablename__ = "sale"
    __table_args__ = {"sqlite_autoincrement": True}

    sale_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_employee.user_id"), nullable=True, index=True)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    payment_type = db.Column(db.String(255), nullable=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    user = db.relationship("User")
    details = db.relationship(
        "SaleDetail",
        backref="sale",
        order_by="SaleDetail.sale_detail_id",
        cascade="all, delete-orphan",
        lazy=True,
    )


class SaleDetail(db.Model):
    """Line item; selling_price is the price snapshot at checkout."""
    __tablename__ = "sale_details"
    __table_args__ = {"sqlite_autoincrement": True}

    sale_detail_id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sale.sale_id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.product_id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    selling_price = db.Column(db.Integer, nullable=False, default=0)
    sub_total = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product")


class Courier(db.Model):
    """
    Shipping rate table row.

    base_rate covers up to 1 kg; rate_per_kg is charged per started kg above
    that. max_weight NULL means no limit.
    """
    __tablename__ = "courier"

    courier_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    base_rate = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    rate_per_kg = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    max_weight = db.Column(db.Numeric(10, 3, asdecimal=False), nullable=True)
    delivery_time = db.Column(db.String(100), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": str(self.courier_id),
            "name": self.name,
            "eta": self.delivery_time or "",
            "base_rate": float(self.base_rate or 0),
            "rate_per_kg": float(self.rate_per_kg or 0),
            "max_weight": float(self.max_weight) if self.max_weight is not None else None,
        }


class DeliveryStatus(db.Model):
    __tablename__ = "delivery_statuses"

    status_id = db.Column(db.Integer, primary_key=True)
    status_name = db.Column(db.String(100), nullable=False, unique=True)
    sequence_order = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {"status_name": self.status_name, "sequence_order": self.sequence_order}


class Delivery(db.Model):
    """Shipment for a sale: courier, address, fee, current status."""
    __tablename__ = "delivery"
    __table_args__ = {"sqlite_autoincrement": True}

    delivery_id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sale.sale_id"), nullable=True, index=True)
    courier_id = db.Column(db.Integer, db.ForeignKey("courier.courier_id"), nullable=True)
    address_id = db.Column(db.Integer, db.ForeignKey("address.address_id"), nullable=True)
    delivery_fee = db.Column(db.Integer, nullable=False, default=0)
    overall_total = db.Column(db.Integer, nullable=False, default=0)
    date = db.Column(db.DateTime(timezone=True), nullable=True)
    status_id = db.Column(db.Integer, db.ForeignKey("delivery_statuses.status_id"), nullable=True, index=True)
    tracking_number = db.Column(db.String(255), nullable=True)

    sale = db.relationship("Sale", backref=db.backref("delivery", uselist=False))
    courier = db.relationship("Courier")
    address = db.relationship("Address")
    status = db.relationship("DeliveryStatus")
    history = db.relationship(
        "DeliveryHistory",
        backref="delivery",
        order_by=lambda: [DeliveryHistory.timestamp_changed, DeliveryHistory.history_id],
        lazy=True,
    )


class DeliveryHistory(db.Model):
    """
    Append-only log of delivery status changes. Rows are never updated; the
    current status lives on Delivery.status_id.
    """
    __tablename__ = "delivery_history"
    __table_args__ = (
        db.Index("ix_delivery_history_status_time", "status_id", "timestamp_changed"),
        {"sqlite_autoincrement": True},
    )

    history_id = db.Column(db.Integer, primary_key=True)
    delivery_id = db.Column(db.Integer, db.ForeignKey("delivery.delivery_id"), nullable=False, index=True)
    status_id = db.Column(db.Integer, db.ForeignKey("delivery_statuses.status_id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user_employee.user_id"), nullable=True)
    location_details = db.Column(db.String(255), nullable=True)
    timestamp_changed = db.Column(db.DateTime(timezone=True), nullable=False)

    status = db.relationship("DeliveryStatus")

    def to_dict(self) -> dict:
        return {
            "id": str(self.history_id),
            "at": to_utc_z(self.timestamp_changed),
            "status": self.status.status_name if self.status else None,
            "sequence": self.status.sequence_order if self.status else None,
            "location": self.location_details,
        }
