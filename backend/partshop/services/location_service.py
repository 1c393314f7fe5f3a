# Overview: Philippine address hierarchy, approved streets and saved user addresses.

"""
Locations & Addresses Service

Hierarchy: region > province > municipality > barangay. Staff maintain
approved street/house/building lines per barangay; customers save addresses
either from an approved line or as free text. At most one address per user is
the default; setting a new default clears the others in the same transaction.
"""

from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Address, ApprovedAddress, Barangay, Delivery, Municipality, Province, Region, User
from ..validation import ConflictError, NotFoundError, ValidationError, parse_bool, require_positive_int
from partshop.time_utils import to_utc_z

ISLAND_GROUPS = ("Luzon", "Visayas", "Mindanao")

_MINDANAO_RE = re.compile(r"\b(BARMM|ARMM)\b")
_LUZON_RE = re.compile(r"\b(NCR|NATIONAL CAPITAL REGION|CAR|CORDILLERA)\b")
_REGION_NUMBER_RE = re.compile(r"\bREGION\s*([IVXLCDM]+)\b")

_ROMAN_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}

MIN_STREET_LENGTH = 3
MAX_STREET_LENGTH = 255


def roman_to_int(roman: str) -> int:
    total = 0
    prev = 0
    for ch in reversed(roman.upper()):
        value = _ROMAN_VALUES.get(ch, 0)
        if value < prev:
            total -= value
        else:
            total += value
            prev = value
    return total


def classify_island_group(region_name: str) -> str | None:
    name = (region_name or "").upper()
    if _MINDANAO_RE.search(name):
        return "Mindanao"
    if _LUZON_RE.search(name):
        return "Luzon"

    match = _REGION_NUMBER_RE.search(name)
    if not match:
        return None
    number = roman_to_int(match.group(1))
    if 1 <= number <= 5:
        return "Luzon"
    if 6 <= number <= 8:
        return "Visayas"
    if 9 <= number <= 13:
        return "Mindanao"
    return None


# ---------------------------------------------------------------------------
# Hierarchy lookups
# ---------------------------------------------------------------------------

def list_regions(island_group: str | None = None) -> list[dict]:
    regions = db.session.query(Region).order_by(Region.name.asc()).all()
    # Unknown island groups are ignored rather than rejected
    if island_group in ISLAND_GROUPS:
        regions = [r for r in regions if classify_island_group(r.name) == island_group]
    return [{"id": r.region_id, "name": r.name} for r in regions]


def list_municipalities(region_id) -> list[dict]:
    try:
        region_id = require_positive_int(region_id, "regionId")
    except ValidationError:
        raise ValidationError("regionId is required")
    rows = (
        db.session.query(Municipality)
        .join(Province, Municipality.province_id == Province.province_id)
        .filter(Province.region_id == region_id)
        .order_by(Municipality.name.asc())
        .all()
    )
    return [{"id": m.municipality_id, "name": m.name, "postal_code": m.postal_code} for m in rows]


def list_barangays(municipality_id) -> list[dict]:
    try:
        municipality_id = require_positive_int(municipality_id, "municipalityId")
    except ValidationError:
        raise ValidationError("municipalityId is required")
    rows = (
        db.session.query(Barangay)
        .filter_by(municipality_id=municipality_id)
        .order_by(Barangay.name.asc())
        .all()
    )
    return [{"id": b.barangay_id, "name": b.name} for b in rows]


def list_active_approved_addresses(barangay_id) -> list[dict]:
    try:
        barangay_id = require_positive_int(barangay_id, "barangayId")
    except ValidationError:
        raise ValidationError("barangayId is required")
    rows = (
        db.session.query(ApprovedAddress)
        .filter_by(barangay_id=barangay_id, is_active=True)
        .order_by(ApprovedAddress.street_house_building_no.asc())
        .all()
    )
    return [{"id": r.approved_address_id, "label": r.street_house_building_no} for r in rows]


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _barangay_tree(barangay: Barangay | None) -> dict | None:
    if not barangay:
        return None
    municipality = barangay.municipality
    province = municipality.province if municipality else None
    region = province.region if province else None
    return {
        "id": barangay.barangay_id,
        "name": barangay.name,
        "municipality": {
            "id": municipality.municipality_id,
            "name": municipality.name,
            "province": {
                "id": province.province_id,
                "name": province.name,
                "region": {"id": region.region_id, "name": region.name} if region else None,
            } if province else None,
        } if municipality else None,
    }


def serialize_address(a: Address) -> dict:
    approved = a.approved_address
    return {
        "id": a.address_id,
        "street": a.street_house_building_no,
        "approved_address": (
            {"id": approved.approved_address_id, "label": approved.street_house_building_no}
            if approved else None
        ),
        "is_default": bool(a.is_default),
        "barangay": _barangay_tree(a.barangay),
    }


def serialize_approved_address(r: ApprovedAddress) -> dict:
    return {
        "id": r.approved_address_id,
        "street": r.street_house_building_no,
        "is_active": bool(r.is_active),
        "created_at": to_utc_z(r.created_at),
        "barangay": _barangay_tree(r.barangay),
    }


# ---------------------------------------------------------------------------
# User addresses
# ---------------------------------------------------------------------------

def list_user_addresses(user_id: int) -> list[dict]:
    rows = (
        db.session.query(Address)
        .filter_by(user_id=user_id)
        .order_by(Address.is_default.desc(), Address.address_id.desc())
        .all()
    )
    return [serialize_address(a) for a in rows]


def _clear_defaults(user_id: int) -> None:
    db.session.query(Address).filter_by(user_id=user_id).update({"is_default": False}, synchronize_session=False)


def create_user_address(user_id: int, payload: dict, *, allow_free_text: bool = True) -> int:
    """
    Save an address for the user. Either approvedAddressId (must be active) or,
    when allow_free_text, a street of 3-255 characters. Returns the address id.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")
    if not db.session.get(User, user_id):
        raise NotFoundError("User not found")

    is_default = parse_bool(payload.get("isDefault"))
    approved_raw = payload.get("approvedAddressId")

    if approved_raw not in (None, ""):
        try:
            approved_id = require_positive_int(approved_raw, "approvedAddressId")
        except ValidationError:
            raise ValidationError("Invalid payload")
        approved = db.session.get(ApprovedAddress, approved_id)
        if not approved or not approved.is_active:
            raise ValidationError("Selected address is not available.")
        address = Address(
            user_id=user_id,
            barangay_id=approved.barangay_id,
            approved_address_id=approved.approved_address_id,
            street_house_building_no=approved.street_house_building_no,
            is_default=is_default,
        )
    elif allow_free_text:
        street = payload.get("street")
        street = street.strip() if isinstance(street, str) else ""
        if not (MIN_STREET_LENGTH <= len(street) <= MAX_STREET_LENGTH):
            raise ValidationError("Invalid payload")
        address = Address(
            user_id=user_id,
            barangay_id=None,
            approved_address_id=None,
            street_house_building_no=street,
            is_default=is_default,
        )
    else:
        raise ValidationError("Invalid payload")

    try:
        if is_default:
            _clear_defaults(user_id)
        db.session.add(address)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return address.address_id


def update_user_address(user_id: int, address_id: int, payload: dict) -> None:
    """Only is_default is editable."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")
    address = db.session.query(Address).filter_by(address_id=address_id, user_id=user_id).first()
    if not address:
        raise NotFoundError("Address not found")

    is_default = parse_bool(payload.get("isDefault"))
    try:
        if is_default:
            _clear_defaults(user_id)
        address.is_default = is_default
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def delete_user_address(user_id: int, address_id: int) -> None:
    """Idempotent; addresses already used by a delivery cannot be removed."""
    address = db.session.query(Address).filter_by(address_id=address_id, user_id=user_id).first()
    if not address:
        return
    if db.session.query(Delivery.delivery_id).filter_by(address_id=address_id).first():
        raise ConflictError("Cannot delete: address is in use.")
    try:
        db.session.delete(address)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Cannot delete: address is in use.") from exc


# ---------------------------------------------------------------------------
# Approved addresses (staff)
# ---------------------------------------------------------------------------

def list_approved_addresses() -> list[dict]:
    rows = (
        db.session.query(ApprovedAddress)
        .order_by(ApprovedAddress.is_active.desc(), ApprovedAddress.created_at.desc(), ApprovedAddress.approved_address_id.desc())
        .all()
    )
    return [serialize_approved_address(r) for r in rows]


def create_approved_address(payload: dict) -> int:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")
    try:
        barangay_id = require_positive_int(payload.get("barangayId"), "barangayId")
    except ValidationError:
        raise ValidationError("Invalid payload")
    street = payload.get("street")
    street = street.strip() if isinstance(street, str) else ""
    if not street or len(street) > MAX_STREET_LENGTH:
        raise ValidationError("Invalid payload")
    if not db.session.get(Barangay, barangay_id):
        raise NotFoundError("Barangay not found")

    duplicate = db.session.query(ApprovedAddress.approved_address_id).filter_by(
        barangay_id=barangay_id, street_house_building_no=street
    ).first()
    if duplicate:
        raise ConflictError("That address already exists for the selected barangay.")

    row = ApprovedAddress(
        barangay_id=barangay_id,
        street_house_building_no=street,
        is_active=parse_bool(payload.get("isActive"), default=True),
    )
    try:
        db.session.add(row)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("That address already exists for the selected barangay.") from exc
    return row.approved_address_id


def update_approved_address(approved_address_id: int, payload: dict) -> None:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")
    row = db.session.get(ApprovedAddress, approved_address_id)
    if not row:
        raise NotFoundError("Approved address not found")
    if "isActive" in payload:
        row.is_active = parse_bool(payload.get("isActive"))
    db.session.commit()


def delete_approved_address(approved_address_id: int) -> None:
    row = db.session.get(ApprovedAddress, approved_address_id)
    if not row:
        raise NotFoundError("Approved address not found")
    in_use = db.session.query(Address.address_id).filter_by(approved_address_id=approved_address_id).first()
    if in_use:
        raise ConflictError("Cannot delete: address is in use.")
    try:
        db.session.delete(row)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Cannot delete: address is in use.") from exc
