# Overview: Vehicle makes, models and years; product fitment rows.

"""
Vehicle catalog and compatibility service.

Car models are displayed as "<base> - <variant>". New models store base_model
and variant in their own columns. Older rows only have the free-text
model_name, which split_model_name breaks apart heuristically:

1. an explicit " - " separator wins ("Vios - 1.3 E")
2. trailing parentheses ("Civic (FD)")
3. a single word has no variant
4. otherwise the first two words are the base when that two-word prefix is
   shared by at least two models of the same make ("Land Cruiser Prado" next
   to "Land Cruiser 200"), else the first word is the base.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable

from ..extensions import db
from ..models import Car, CarModel, Product, ProductCarCompatibility, ProductYear
from ..validation import NotFoundError, ValidationError, normalize_name, parse_number


FITMENT_PLACEHOLDER_NAME = "__FITMENT_ONLY__"
FITMENT_PLACEHOLDER_DESCRIPTION = "Internal placeholder for vehicle fitments (not a real product)."

MIN_YEAR = 1900
MAX_YEAR = 2100

MODEL_SEPARATOR = " - "
_PAREN_VARIANT_RE = re.compile(r"^(.*?)\s*\((.*?)\)\s*$")


# ---------------------------------------------------------------------------
# Model names
# ---------------------------------------------------------------------------

def build_model_name(base_model: str, variant: str | None = None) -> str:
    base = normalize_name(base_model)
    v = normalize_name(variant)
    if not base:
        return ""
    if not v:
        return base
    return f"{base}{MODEL_SEPARATOR}{v}"


def two_word_prefix(model_name: str) -> str | None:
    words = normalize_name(model_name).split(" ")
    if len(words) < 2:
        return None
    return " ".join(words[:2]).lower()


def prefix_counts(model_names: Iterable[str]) -> Counter:
    counts: Counter = Counter()
    for name in model_names:
        prefix = two_word_prefix(name)
        if prefix:
            counts[prefix] += 1
    return counts


def split_model_name(model_name: str, prefix2_counts: Counter | dict | None = None) -> tuple[str, str]:
    """Split a free-text model name into (base_model, variant); variant may be ""."""
    name = normalize_name(model_name)
    if not name:
        return "", ""

    if MODEL_SEPARATOR in name:
        base, variant = name.split(MODEL_SEPARATOR, 1)
        return base.strip(), variant.strip()

    match = _PAREN_VARIANT_RE.match(name)
    if match and match.group(1).strip():
        return match.group(1).strip(), normalize_name(match.group(2))

    words = name.split(" ")
    if len(words) == 1:
        return name, ""

    prefix = two_word_prefix(name)
    if prefix and (prefix2_counts or {}).get(prefix, 0) >= 2:
        return " ".join(words[:2]), " ".join(words[2:])

    return words[0], " ".join(words[1:])


def model_parts(model: CarModel, counts: Counter | dict | None = None) -> tuple[str, str]:
    """Stored base/variant when present, else the heuristic split."""
    if model.base_model:
        return model.base_model, model.variant or ""
    return split_model_name(model.model_name, counts)


def parse_car_models(models: list[CarModel]) -> list[dict]:
    """
    Serialize models with base_model/variant. Prefix counts are computed per
    make across the given models.
    """
    by_car: dict[int, Counter] = {}
    for car_id in {m.car_id for m in models}:
        by_car[car_id] = prefix_counts(m.model_name for m in models if m.car_id == car_id)

    rows = []
    for m in models:
        base, variant = model_parts(m, by_car.get(m.car_id))
        row = m.to_dict()
        row["base_model"] = base
        row["variant"] = variant
        rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Upserts
# ---------------------------------------------------------------------------

def _require_year(value) -> int:
    number = parse_number(value)
    if number is None or not number.is_integer():
        raise ValidationError("year is required")
    year = int(number)
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


def get_or_create_car(make: str) -> Car:
    make = normalize_name(make)
    if not make:
        raise ValidationError("make is required")
    car = db.session.query(Car).filter_by(make=make).first()
    if not car:
        car = Car(make=make)
        db.session.add(car)
        db.session.flush()
    return car


def get_or_create_year(year: int) -> ProductYear:
    row = db.session.query(ProductYear).filter_by(year=year).first()
    if not row:
        row = ProductYear(year=year)
        db.session.add(row)
        db.session.flush()
    return row


def get_or_create_model(car_id: int, base_model: str, variant: str | None = None) -> CarModel:
    base = normalize_name(base_model)
    v = normalize_name(variant)
    model_name = build_model_name(base, v)
    if not model_name:
        raise ValidationError("baseModel is required")

    model = db.session.query(CarModel).filter_by(car_id=car_id, model_name=model_name).first()
    if not model:
        model = CarModel(car_id=car_id, model_name=model_name, base_model=base, variant=v or None)
        db.session.add(model)
        db.session.flush()
    elif not model.base_model:
        model.base_model = base
        model.variant = v or None
    return model


def add_catalog_entry(payload: dict) -> dict:
    """Create a make, year or model from the admin catalog form."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    kind = payload.get("kind")

    if kind == "brand":
        car = get_or_create_car(str(payload.get("make") or ""))
        db.session.commit()
        return {"created": True, "car": car.to_dict()}

    if kind == "year":
        row = get_or_create_year(_require_year(payload.get("year")))
        db.session.commit()
        return {"created": True, "year": row.to_dict()}

    if kind in ("model", "variant"):
        car_id = parse_number(payload.get("car_id"))
        if car_id is None or not car_id.is_integer():
            raise ValidationError("car_id is required")
        car = db.session.get(Car, int(car_id))
        if not car:
            raise NotFoundError("Car not found")

        base_model = normalize_name(payload.get("baseModel"))
        if not base_model:
            raise ValidationError("baseModel is required")
        variant = normalize_name(payload.get("variant"))
        if kind == "variant" and not variant:
            raise ValidationError("variant is required")

        model = get_or_create_model(car.car_id, base_model, variant)
        db.session.commit()
        return {"created": True, "model": model.to_dict()}

    raise ValidationError("Invalid kind")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def _years() -> list[dict]:
    return [y.to_dict() for y in db.session.query(ProductYear).order_by(ProductYear.year.asc()).all()]


def _models_of(car_id: int) -> list[CarModel]:
    return (
        db.session.query(CarModel)
        .filter_by(car_id=car_id)
        .order_by(CarModel.model_name.asc())
        .all()
    )


def lookups_by_make(make: str | None) -> dict:
    """Make names, all years, and the models of `make` (when given)."""
    cars = db.session.query(Car).order_by(Car.make.asc()).all()
    models: list[dict] = []
    make = normalize_name(make)
    if make:
        car = db.session.query(Car).filter_by(make=make).first()
        if car:
            models = parse_car_models(_models_of(car.car_id))
    return {"makes": [c.make for c in cars], "years": _years(), "models": models}


def lookups_by_car(car_id: int | None) -> dict:
    """All cars and years, plus the models of car_id (when given)."""
    cars = db.session.query(Car).order_by(Car.make.asc()).all()
    models = parse_car_models(_models_of(car_id)) if car_id else []
    return {"cars": [c.to_dict() for c in cars], "models": models, "years": _years()}


# ---------------------------------------------------------------------------
# Compatibility rows
# ---------------------------------------------------------------------------

def _find_compat(product_id: int, model_id: int, start_year_id: int, end_year_id: int):
    return db.session.query(ProductCarCompatibility).filter_by(
        product_id=product_id,
        model_id=model_id,
        start_year_id=start_year_id,
        end_year_id=end_year_id,
    ).first()


def _add_compat(product_id: int, model_id: int, start_year_id: int, end_year_id: int) -> tuple[int, bool]:
    existing = _find_compat(product_id, model_id, start_year_id, end_year_id)
    if existing:
        return existing.id, False
    row = ProductCarCompatibility(
        product_id=product_id,
        model_id=model_id,
        start_year_id=start_year_id,
        end_year_id=end_year_id,
    )
    db.session.add(row)
    db.session.commit()
    return row.id, True


def list_product_compatibility(product_id: int) -> list[dict]:
    rows = (
        db.session.query(ProductCarCompatibility)
        .filter_by(product_id=product_id)
        .order_by(
            ProductCarCompatibility.start_year_id.asc(),
            ProductCarCompatibility.end_year_id.asc(),
            ProductCarCompatibility.id.asc(),
        )
        .all()
    )
    return [r.to_dict() for r in rows]


def add_product_compatibility(product_id: int, payload: dict) -> tuple[int, bool]:
    """Returns (row_id, created). Adding an identical row again is a no-op."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")
    if not db.session.get(Product, product_id):
        raise NotFoundError("Product not found")

    ids = []
    for key in ("model_id", "start_year_id", "end_year_id"):
        number = parse_number(payload.get(key))
        if number is None or not number.is_integer():
            raise ValidationError("model_id, start_year_id, end_year_id are required")
        ids.append(int(number))
    model_id, start_year_id, end_year_id = ids

    if not db.session.get(CarModel, model_id):
        raise NotFoundError("Car model not found")
    start = db.session.get(ProductYear, start_year_id)
    end = db.session.get(ProductYear, end_year_id)
    if not start or not end:
        raise NotFoundError("Year not found")
    if start.year > end.year:
        raise ValidationError("start year must be <= end year")

    return _add_compat(product_id, model_id, start_year_id, end_year_id)


def delete_product_compatibility(product_id: int, compat_id: int) -> None:
    row = db.session.query(ProductCarCompatibility).filter_by(id=compat_id, product_id=product_id).first()
    if not row:
        raise NotFoundError("Compatibility not found")
    db.session.delete(row)
    db.session.commit()


# ---------------------------------------------------------------------------
# Fitment-only entries
# ---------------------------------------------------------------------------

def get_fitment_placeholder() -> Product:
    """Hidden product that owns make/model/year rows not tied to a real part."""
    product = db.session.query(Product).filter_by(name=FITMENT_PLACEHOLDER_NAME).first()
    if product:
        return product
    product = Product(
        name=FITMENT_PLACEHOLDER_NAME,
        description=FITMENT_PLACEHOLDER_DESCRIPTION,
        quantity=0,
        selling_price=0,
        purchase_price=0,
        weight=0,
    )
    db.session.add(product)
    db.session.commit()
    return product


def list_fitment_entries(limit: int = 2000) -> list[dict]:
    placeholder = get_fitment_placeholder()
    rows = (
        db.session.query(ProductCarCompatibility)
        .filter_by(product_id=placeholder.product_id)
        .order_by(ProductCarCompatibility.id.desc())
        .limit(limit)
        .all()
    )

    models = [r.model for r in rows if r.model]
    counts_by_car = {}
    for car_id in {m.car_id for m in models}:
        counts_by_car[car_id] = prefix_counts(m.model_name for m in _models_of(car_id))

    data = []
    for r in rows:
        model = r.model
        base, variant = model_parts(model, counts_by_car.get(model.car_id)) if model else ("", "")
        entry = r.to_dict()
        entry.update({
            "product_id": r.product_id,
            "car_id": model.car_id if model else None,
            "base_model": base,
            "variant": variant,
        })
        data.append(entry)
    return data


def create_fitment_entry(payload: dict) -> tuple[int, bool]:
    """Upserts make, model and years, then the fitment row. Returns (row_id, created)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    make = normalize_name(payload.get("make"))
    base_model = normalize_name(payload.get("baseModel"))
    variant = normalize_name(payload.get("variant"))
    if not make or not base_model:
        raise ValidationError("make and baseModel are required")

    start_raw = parse_number(payload.get("startYear"))
    end_raw = parse_number(payload.get("endYear"))
    if start_raw is None or end_raw is None:
        raise ValidationError("startYear and endYear are required")
    start_year = _require_year(start_raw)
    end_year = _require_year(end_raw)
    if start_year > end_year:
        raise ValidationError("startYear must be <= endYear")

    placeholder = get_fitment_placeholder()
    car = get_or_create_car(make)
    model = get_or_create_model(car.car_id, base_model, variant)
    start = get_or_create_year(start_year)
    end = get_or_create_year(end_year)
    db.session.commit()

    return _add_compat(placeholder.product_id, model.model_id, start.year_id, end.year_id)


def delete_fitment_entry(row_id: int) -> None:
    row = (
        db.session.query(ProductCarCompatibility)
        .join(Product, Product.product_id == ProductCarCompatibility.product_id)
        .filter(ProductCarCompatibility.id == row_id, Product.name == FITMENT_PLACEHOLDER_NAME)
        .first()
    )
    if not row:
        raise NotFoundError("Not found")
    db.session.delete(row)
    db.session.commit()


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------

def backfill_model_variants(*, dry_run: bool = False) -> list[dict]:
    """
    Fill base_model/variant on rows created before those columns existed.
    Returns the proposed (or applied) changes.
    """
    pending = db.session.query(CarModel).filter(CarModel.base_model.is_(None)).all()
    counts_by_car = {}
    changes = []
    for model in pending:
        if model.car_id not in counts_by_car:
            counts_by_car[model.car_id] = prefix_counts(m.model_name for m in _models_of(model.car_id))
        base, variant = split_model_name(model.model_name, counts_by_car[model.car_id])
        changes.append({
            "model_id": model.model_id,
            "model_name": model.model_name,
            "base_model": base,
            "variant": variant,
        })
        if not dry_run:
            model.base_model = base
            model.variant = variant or None

    if dry_run:
        db.session.rollback()
    else:
        db.session.commit()
    return changes
