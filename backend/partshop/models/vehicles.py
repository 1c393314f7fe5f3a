from __future__ import annotations

from ..extensions import db


class Car(db.Model):
    """Vehicle make (e.g. "Toyota")."""
    __tablename__ = "cars"

    car_id = db.Column(db.Integer, primary_key=True)
    make = db.Column(db.String(100), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"car_id": self.car_id, "make": self.make}


class CarModel(db.Model):
    """
    Vehicle model of a make.

    model_name is the display string "<base> - <variant>" (or just "<base>").
    base_model and variant are stored separately when the model is created
    through the catalog; rows imported with only a free-text name are split
    by vehicle_service.split_model_name.
    """
    __tablename__ = "car_models"
    __table_args__ = (
        db.UniqueConstraint("car_id", "model_name", name="uq_car_models_car_model_name"),
    )

    model_id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.car_id"), nullable=False, index=True)
    model_name = db.Column(db.String(255), nullable=False)
    base_model = db.Column(db.String(150), nullable=True)
    variant = db.Column(db.String(150), nullable=True)

    car = db.relationship("Car", backref=db.backref("models", lazy=True))

    def to_dict(self) -> dict:
        return {
            "model_id": self.model_id,
            "model_name": self.model_name,
            "car_id": self.car_id,
        }


class ProductYear(db.Model):
    __tablename__ = "product_years"

    year_id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"year_id": self.year_id, "year": self.year}


class ProductCarCompatibility(db.Model):
    """A product fits `model` for model years start_year..end_year inclusive."""
    __tablename__ = "product_car_compatibility"
    __table_args__ = (
        db.Index("ix_compat_product_model", "product_id", "model_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.product_id"), nullable=False, index=True)
    model_id = db.Column(db.Integer, db.ForeignKey("car_models.model_id"), nullable=False, index=True)
    start_year_id = db.Column(db.Integer, db.ForeignKey("product_years.year_id"), nullable=False)
    end_year_id = db.Column(db.Integer, db.ForeignKey("product_years.year_id"), nullable=False)

    product = db.relationship("Product")
    model = db.relationship("CarModel")
    start_year = db.relationship("ProductYear", foreign_keys=[start_year_id])
    end_year = db.relationship("ProductYear", foreign_keys=[end_year_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "make": self.model.car.make if self.model and self.model.car else "",
            "model_name": self.model.model_name if self.model else "",
            "start_year_id": self.start_year_id,
            "end_year_id": self.end_year_id,
            "start_year": self.start_year.year if self.start_year else None,
            "end_year": self.end_year.year if self.end_year else None,
            "model_id": self.model_id,
        }
