# Overview: Staff user administration and the signed-in user's own profile.

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_user,
    validate_payload,
)
from partshop.time_utils import to_epoch_ms, utcnow

ADMIN_LIST_LIMIT = 200

# Password is deliberately absent: it can only be set through registration or the CLI
USER_POLICY = ModelValidationPolicy(
    writable_fields={"user_name", "username", "email", "mobile_phone", "contact_type", "role_id", "is_superuser"},
    required_on_create=set(),
)


def list_users(q: str | None = None) -> list[dict]:
    query = db.session.query(User)
    q = (q or "").strip()[:100]
    if q:
        like = f"%{q}%"
        query = query.filter(or_(User.username.ilike(like), User.user_name.ilike(like), User.email.ilike(like)))
    users = query.order_by(User.user_id.desc()).limit(ADMIN_LIST_LIMIT).all()
    return [u.to_dict() for u in users]


def get_user(user_id: int) -> dict:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user.to_dict()


def update_user(user_id: int, payload: dict) -> dict:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    enforce_rules_user(patch)

    if "username" in patch:
        clash = db.session.query(User.user_id).filter(User.username == patch["username"], User.user_id != user_id).first()
        if clash:
            raise ConflictError("Username already taken")

    for k, v in patch.items():
        setattr(user, k, v)

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Username already taken") from exc
    return user.to_dict()


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

def profile_picture_url(user: User) -> str | None:
    if user.profile_picture_bytes:
        return f"/api/me/profile-picture?userId={user.user_id}&v={to_epoch_ms(user.profile_picture_updated_at)}"
    return user.profile_picture


def me(user: User) -> dict:
    return {
        "id": user.user_id,
        "user_name": user.user_name,
        "username": user.username,
        "email": user.email,
        "mobile_phone": user.mobile_phone,
        "role_id": user.role_id,
        "is_superuser": bool(user.is_superuser),
        "profile_picture": profile_picture_url(user),
    }


def get_profile_picture(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user or not user.profile_picture_bytes:
        raise NotFoundError("Profile picture not found")
    return user


def set_profile_picture(user: User, storage, *, max_bytes: int) -> str:
    """Store an uploaded image (werkzeug FileStorage) as the user's picture; returns its URL."""
    if storage is None:
        raise ValidationError("file is required")

    data = storage.read()
    if not data:
        raise ValidationError("Empty file")
    if len(data) > max_bytes:
        raise ValidationError("File too large")
    mime = (storage.mimetype or "").lower()
    if not mime.startswith("image/"):
        raise ValidationError("Only image uploads are allowed")

    user.profile_picture = None
    user.profile_picture_bytes = data
    user.profile_picture_mime = mime
    user.profile_picture_updated_at = utcnow()
    db.session.commit()
    return profile_picture_url(user)
