from __future__ import annotations

from ..extensions import db
from partshop.time_utils import to_utc_z


class Brand(db.Model):
    __tablename__ = "brand"

    brand_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)


class Category(db.Model):
    __tablename__ = "category"

    category_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)


class ConditionItem(db.Model):
    """Item condition recorded on supply receipt lines (e.g. "Brand New", "Surplus")."""
    __tablename__ = "condition_item"

    condition_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)


class Product(db.Model):
    """
    Sellable part.

    Prices are whole currency units. weight is in kilograms and feeds the
    shipping fee at checkout; products without a weight ship at the minimum fee.
    """
    __tablename__ = "product"
    __table_args__ = (
        db.Index("ix_product_brand_category_name", "brand_id", "category_id", "name"),
        {"sqlite_autoincrement": True},
    )

    product_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    purchase_price = db.Column(db.Integer, nullable=True)
    selling_price = db.Column(db.Integer, nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    weight = db.Column(db.Numeric(10, 3, asdecimal=False), nullable=True)

    brand_id = db.Column(db.Integer, db.ForeignKey("brand.brand_id"), nullable=True, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("category.category_id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    brand = db.relationship("Brand", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    images = db.relationship(
        "ProductImage",
        backref="product",
        order_by="ProductImage.id",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "description": self.description,
            "purchase_price": self.purchase_price,
            "selling_price": self.selling_price,
            "quantity": self.quantity,
            "weight": self.weight,
            "brand_id": self.brand_id,
            "category_id": self.category_id,
            "brand": {"name": self.brand.name} if self.brand else None,
            "category": {"name": self.category.name} if self.category else None,
        }


class ProductImage(db.Model):
    """
    Product photo. Uploaded images keep their bytes in the row; rows migrated
    from the file-based catalog only carry a file name in `image`.
    """
    __tablename__ = "product_image"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.product_id", ondelete="CASCADE"), nullable=False, index=True)
    image = db.Column(db.String(255), nullable=True)
    image_bytes = db.Column(db.LargeBinary, nullable=True)
    image_mime = db.Column(db.String(64), nullable=True)
    image_updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "image": self.image,
            "image_mime": self.image_mime,
            "image_updated_at": to_utc_z(self.image_updated_at) if self.image_updated_at else None,
        }
