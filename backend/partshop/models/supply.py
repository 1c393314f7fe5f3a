from __future__ import annotations

from ..extensions import db
from partshop.time_utils import to_day


class Supplier(db.Model):
    __tablename__ = "supplier"

    supplier_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)


class Supply(db.Model):
    """
    Purchase receipt from a supplier. Posting a receipt adds its quantities to
    product stock (see supply_service.create_supply_receipt).
    """
    __tablename__ = "supply"
    __table_args__ = {"sqlite_autoincrement": True}

    supply_id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("supplier.supplier_id"), nullable=False, index=True)
    receipt_number = db.Column(db.String(100), nullable=False, unique=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    total_cost = db.Column(db.Integer, nullable=False, default=0)

    supplier = db.relationship("Supplier", backref=db.backref("supplies", lazy=True))
    details = db.relationship(
        "SupplyDetail",
        backref="supply",
        order_by="SupplyDetail.id",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "supplyId": self.supply_id,
            "receiptNumber": self.receipt_number,
            "supplierName": self.supplier.name if self.supplier else "",
            "date": to_day(self.date),
            "totalPurchasePrice": self.total_cost or 0,
        }


class SupplyDetail(db.Model):
    __tablename__ = "supply_details"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    supply_id = db.Column(db.Integer, db.ForeignKey("supply.supply_id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.product_id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False, default=0)
    sub_total = db.Column(db.Integer, nullable=False, default=0)
    condition_id = db.Column(db.Integer, db.ForeignKey("condition_item.condition_id"), nullable=True)

    product = db.relationship("Product")
    condition = db.relationship("ConditionItem")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.product.name if self.product else "",
            "quantity": self.quantity or 0,
            "purchasePrice": self.price or 0,
            "subtotal": self.sub_total or 0,
        }
