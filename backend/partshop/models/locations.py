from __future__ import annotations

from ..extensions import db
from partshop.time_utils import to_utc_z


class Region(db.Model):
    __tablename__ = "region"

    region_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)


class Province(db.Model):
    __tablename__ = "province"

    province_id = db.Column(db.Integer, primary_key=True)
    region_id = db.Column(db.Integer, db.ForeignKey("region.region_id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)

    region = db.relationship("Region", backref=db.backref("provinces", lazy=True))


class Municipality(db.Model):
    __tablename__ = "municipality"

    municipality_id = db.Column(db.Integer, primary_key=True)
    province_id = db.Column(db.Integer, db.ForeignKey("province.province_id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    postal_code = db.Column(db.String(10), nullable=True)

    province = db.relationship("Province", backref=db.backref("municipalities", lazy=True))


class Barangay(db.Model):
    __tablename__ = "barangay"

    barangay_id = db.Column(db.Integer, primary_key=True)
    municipality_id = db.Column(db.Integer, db.ForeignKey("municipality.municipality_id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)

    municipality = db.relationship("Municipality", backref=db.backref("barangays", lazy=True))


class ApprovedAddress(db.Model):
    """
    Street/house/building line vetted by staff for a barangay. Customers pick
    from these or type a free-text street.
    """
    __tablename__ = "approved_address"
    __table_args__ = (
        db.UniqueConstraint("barangay_id", "street_house_building_no", name="uq_approved_address_barangay_street"),
        {"sqlite_autoincrement": True},
    )

    approved_address_id = db.Column(db.Integer, primary_key=True)
    barangay_id = db.Column(db.Integer, db.ForeignKey("barangay.barangay_id"), nullable=False, index=True)
    street_house_building_no = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    barangay = db.relationship("Barangay")

    def to_dict(self) -> dict:
        return {
            "approved_address_id": self.approved_address_id,
            "barangay_id": self.barangay_id,
            "street_house_building_no": self.street_house_building_no,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Address(db.Model):
    """
    Saved delivery address of a user. Either approved_address_id is set (and the
    street/barangay are copied from it) or the street is free text.
    """
    __tablename__ = "address"
    __table_args__ = {"sqlite_autoincrement": True}

    address_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_employee.user_id"), nullable=False, index=True)
    barangay_id = db.Column(db.Integer, db.ForeignKey("barangay.barangay_id"), nullable=True, index=True)
    approved_address_id = db.Column(
        db.Integer, db.ForeignKey("approved_address.approved_address_id"), nullable=True, index=True
    )
    street_house_building_no = db.Column(db.String(255), nullable=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    user = db.relationship("User", backref=db.backref("addresses", lazy=True))
    barangay = db.relationship("Barangay")
    approved_address = db.relationship("ApprovedAddress")
