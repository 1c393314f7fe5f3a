# Overview: Supplier receipts that restock products, plus the admin lookup lists.

"""
Supply Service

Posting a receipt:
- upserts the supplier and each line's brand, category and condition
- matches products on (name, brand, category); a match gets the quantity
  added and its prices refreshed, otherwise a product is created
- records supply + supply_details, total_cost = sum of purchase price x qty
The whole receipt is one transaction; a duplicate receipt number is a 409.
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Brand, Category, ConditionItem, Product, Supplier, Supply, SupplyDetail
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    optional_positive_int,
    to_non_negative_int,
)
from .concurrency import run_with_retry
from partshop.time_utils import parse_iso_datetime

# Dropdown placeholders the admin form may send verbatim
SUPPLIER_PLACEHOLDER = "Select Supplier"
BRAND_PLACEHOLDER = "Select Brand"
CATEGORY_PLACEHOLDER = "Select Category"
CONDITION_PLACEHOLDER = "Select Condition"

DEFAULT_TRACKER_TAKE = 200
MAX_TRACKER_TAKE = 1000

LOOKUP_MODELS = {
    "supplier": Supplier,
    "brand": Brand,
    "category": Category,
    "condition": ConditionItem,
}

_LOOKUP_NAME_PUNCTUATION = set(" .,'&-()/")


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def is_valid_lookup_name(name: str) -> bool:
    """Letters and digits of any script, space and . , ' & - ( ) /"""
    return bool(name) and all(ch.isalnum() or ch in _LOOKUP_NAME_PUNCTUATION for ch in name)


def _get_or_create(model, name: str):
    row = db.session.query(model).filter_by(name=name).first()
    if row is None:
        row = model(name=name)
        db.session.add(row)
        db.session.flush()
    return row


def _parse_receipt(payload: dict) -> tuple[str, str, datetime, list[dict]]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    receipt_number = _text(payload.get("receiptNumber"))
    if not receipt_number:
        raise ValidationError("receiptNumber is required")

    supplier_name = _text(payload.get("supplier"))
    if not supplier_name or supplier_name == SUPPLIER_PLACEHOLDER:
        raise ValidationError("supplier is required")

    date_str = _text(payload.get("date"))
    if not date_str:
        raise ValidationError("date is required")
    try:
        date = parse_iso_datetime(date_str)
    except ValueError:
        raise ValidationError("Invalid date")

    raw_lines = payload.get("lines")
    lines = []
    for raw in raw_lines if isinstance(raw_lines, list) else []:
        if not isinstance(raw, dict):
            continue
        line = {
            "name": _text(raw.get("name")),
            "brand": _text(raw.get("brand")),
            "category": _text(raw.get("category")),
            "condition": _text(raw.get("condition")),
            "purchasePrice": to_non_negative_int(raw.get("purchasePrice")),
            "sellingPrice": to_non_negative_int(raw.get("sellingPrice")),
            "quantity": to_non_negative_int(raw.get("quantity")),
        }
        if line["name"]:
            lines.append(line)

    if not lines:
        raise ValidationError("Add at least one product line")

    for line in lines:
        if not line["brand"] or line["brand"] == BRAND_PLACEHOLDER:
            raise ValidationError("Brand is required for each product")
        if not line["category"] or line["category"] == CATEGORY_PLACEHOLDER:
            raise ValidationError("Category is required for each product")
        if line["sellingPrice"] <= 0 or line["quantity"] <= 0:
            raise ValidationError("Selling price and quantity must be greater than 0")

    return receipt_number, supplier_name, date, lines


def create_supply_receipt(payload: dict) -> dict:
    receipt_number, supplier_name, date, lines = _parse_receipt(payload)

    def _post():
        if db.session.query(Supply.supply_id).filter_by(receipt_number=receipt_number).first():
            raise ConflictError("Receipt number already exists")

        supplier = _get_or_create(Supplier, supplier_name)

        touched: list[Product] = []
        details: list[SupplyDetail] = []
        total_cost = 0

        for line in lines:
            brand = _get_or_create(Brand, line["brand"])
            category = _get_or_create(Category, line["category"])
            condition = None
            if line["condition"] and line["condition"] != CONDITION_PLACEHOLDER:
                condition = _get_or_create(ConditionItem, line["condition"])

            purchase_price = line["purchasePrice"]
            product = db.session.query(Product).filter_by(
                name=line["name"],
                brand_id=brand.brand_id,
                category_id=category.category_id,
            ).first()

            if product is None:
                product = Product(
                    name=line["name"],
                    brand_id=brand.brand_id,
                    category_id=category.category_id,
                    purchase_price=purchase_price if purchase_price > 0 else None,
                    selling_price=line["sellingPrice"],
                    quantity=line["quantity"],
                )
                db.session.add(product)
                db.session.flush()
            else:
                product.quantity = (product.quantity or 0) + line["quantity"]
                if purchase_price > 0:
                    product.purchase_price = purchase_price
                product.selling_price = line["sellingPrice"]

            touched.append(product)

            sub_total = purchase_price * line["quantity"]
            total_cost += sub_total
            details.append(SupplyDetail(
                product_id=product.product_id,
                quantity=line["quantity"],
                price=purchase_price,
                sub_total=sub_total,
                condition_id=condition.condition_id if condition else None,
            ))

        supply = Supply(
            supplier_id=supplier.supplier_id,
            receipt_number=receipt_number,
            date=date,
            total_cost=total_cost,
        )
        supply.details = details
        db.session.add(supply)
        db.session.commit()

        unique = {p.product_id: p for p in touched}
        products = sorted(unique.values(), key=lambda p: p.product_id, reverse=True)
        return {
            "supplyId": supply.supply_id,
            "products": [
                {
                    "product_id": p.product_id,
                    "name": p.name,
                    "selling_price": p.selling_price,
                    "quantity": p.quantity,
                    "brand": {"name": p.brand.name} if p.brand else None,
                    "category": {"name": p.category.name} if p.category else None,
                }
                for p in products
            ],
        }

    return run_with_retry(_post)


# ---------------------------------------------------------------------------
# Supply tracker
# ---------------------------------------------------------------------------

def list_supplies(*, q: str | None = None, take: int | str | None = None) -> list[dict]:
    """Newest receipts first; q matches receipt number, supplier name or supply id."""
    try:
        take = optional_positive_int(take, "take", max_value=MAX_TRACKER_TAKE)
    except ValidationError:
        raise ValidationError("Invalid query") from None
    take = DEFAULT_TRACKER_TAKE if take is None else take

    supplies = db.session.query(Supply).order_by(Supply.supply_id.desc()).limit(take).all()

    needle = (q or "").strip().lower()
    data = []
    for s in supplies:
        row = s.to_dict()
        row["itemsBought"] = sum(int(d.quantity or 0) for d in s.details)
        if needle:
            hay = f"{row['receiptNumber']} {row['supplierName']} {row['supplyId']}".lower()
            if needle not in hay:
                continue
        data.append(row)
    return data


def get_supply(supply_id: int) -> dict:
    supply = db.session.get(Supply, supply_id)
    if not supply:
        raise NotFoundError("Supply not found")
    data = supply.to_dict()
    data["items"] = [d.to_dict() for d in supply.details]
    return data


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_lookups() -> dict:
    def names(model, key):
        return [r.name for r in db.session.query(model).order_by(key.asc()).all()]

    return {
        "suppliers": names(Supplier, Supplier.supplier_id),
        "brands": names(Brand, Brand.brand_id),
        "categories": names(Category, Category.category_id),
        "conditions": names(ConditionItem, ConditionItem.condition_id),
    }


def create_lookup(payload: dict) -> tuple[str, bool]:
    """Returns (name, created)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    lookup_type = payload.get("type")
    name = _text(payload.get("name"))
    if not lookup_type or not name:
        raise ValidationError("type and name are required")
    if not is_valid_lookup_name(name):
        raise ValidationError("Invalid name")

    model = LOOKUP_MODELS.get(lookup_type)
    if model is None:
        raise ValidationError("Unsupported type")

    existing = db.session.query(model).filter_by(name=name).first()
    if existing:
        return existing.name, False

    row = model(name=name)
    db.session.add(row)
    db.session.commit()
    return row.name, True
