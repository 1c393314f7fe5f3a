from __future__ import annotations

from ..extensions import db


class UserCart(db.Model):
    """
    One cart line per (user, product). price_at_addition is the selling price
    when the line was first added; checkout always charges the current price.
    """
    __tablename__ = "user_cart"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uq_user_cart_user_product"),
        {"sqlite_autoincrement": True},
    )

    cart_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_employee.user_id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.product_id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    price_at_addition = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")
