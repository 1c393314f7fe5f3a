# Overview: Account registration, password hashing and credential checks.

"""
Authentication Service

New passwords are hashed with bcrypt (cost factor 12). Accounts migrated from
older systems may still carry other encodings, so verify_password understands:
- plain text (no "$" in the stored value)
- raw bcrypt ($2a$, $2b$, $2y$)
- "bcrypt$<bcrypt hash>"
- "bcrypt_sha256$<bcrypt hash>" (bcrypt over the SHA-256 hex digest)
- Django "pbkdf2_sha256$<iterations>$<salt>$<b64>" and "pbkdf2_sha1$..."
Anything else fails verification.
"""

import base64
import hashlib
import hmac
import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import RoleType, User, ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE, ROLE_CUSTOMER
from ..validation import ConflictError, ValidationError, EMAIL_RE
from partshop.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

DEFAULT_ROLES = (
    (ROLE_ADMIN, "Admin"),
    (ROLE_MANAGER, "Manager"),
    (ROLE_EMPLOYEE, "Employee"),
    (ROLE_CUSTOMER, "Customer"),
)

_RAW_BCRYPT_RE = re.compile(r"^\$2[aby]\$\d\d\$")


def validate_password(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def hash_password(password: str) -> str:
    validate_password(password)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12))
    return hashed.decode("utf-8")


def _bcrypt_matches(candidate: str, bcrypt_hash: str) -> bool:
    try:
        # bcrypt only reads the first 72 bytes
        secret = candidate.encode("utf-8")[:MAX_PASSWORD_BYTES]
        return bcrypt.checkpw(secret, bcrypt_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


def _verify_django_pbkdf2(password: str, encoded: str) -> bool:
    parts = encoded.split("$")
    if len(parts) != 4:
        return False

    algorithm, iterations_raw, salt, hash_b64 = parts
    digest = {"pbkdf2_sha256": "sha256", "pbkdf2_sha1": "sha1"}.get(algorithm)
    if not digest:
        return False
    try:
        iterations = int(iterations_raw)
        stored = base64.b64decode(hash_b64)
    except ValueError:
        return False
    if iterations <= 0 or not stored:
        return False

    derived = hashlib.pbkdf2_hmac(digest, password.encode("utf-8"), salt.encode("utf-8"), iterations, dklen=32)
    if len(stored) != len(derived):
        # Some databases carry a key length other than 32
        derived = hashlib.pbkdf2_hmac(
            digest, password.encode("utf-8"), salt.encode("utf-8"), iterations, dklen=len(stored)
        )
    return hmac.compare_digest(derived, stored)


def verify_password(password: str, stored_password: str | None) -> bool:
    if not stored_password:
        return False

    if "$" not in stored_password:
        return hmac.compare_digest(password.encode("utf-8"), stored_password.encode("utf-8"))

    if _RAW_BCRYPT_RE.match(stored_password):
        return _bcrypt_matches(password, stored_password)

    if stored_password.startswith("bcrypt$"):
        return _bcrypt_matches(password, stored_password[len("bcrypt$"):])

    if stored_password.startswith("bcrypt_sha256$"):
        bcrypt_hash = stored_password[len("bcrypt_sha256$"):]
        # Seen in the wild: "bcrypt_sha256$$2b$12$..." and "bcrypt_sha256$2b$12$..."
        if bcrypt_hash.startswith("$$2"):
            bcrypt_hash = bcrypt_hash[1:]
        if bcrypt_hash.startswith("2"):
            bcrypt_hash = "$" + bcrypt_hash

        digest = hashlib.sha256(password.encode("utf-8")).digest()
        if _bcrypt_matches(digest.hex(), bcrypt_hash):
            return True
        return _bcrypt_matches(base64.b64encode(digest).decode("ascii"), bcrypt_hash)

    scheme = stored_password.split("$", 1)[0]
    if scheme in ("pbkdf2_sha256", "pbkdf2_sha1"):
        return _verify_django_pbkdf2(password, stored_password)

    current_app.logger.warning("Unsupported password scheme: %s", scheme)
    return False


def create_default_roles() -> list[RoleType]:
    """Idempotently create the four built-in roles."""
    roles = []
    for role_id, title in DEFAULT_ROLES:
        role = db.session.get(RoleType, role_id)
        if not role:
            role = RoleType(role_id=role_id, title=title)
            db.session.add(role)
        roles.append(role)
    db.session.commit()
    return roles


def resolve_default_role_id() -> int:
    """
    Role for self-registered accounts: DEFAULT_CUSTOMER_ROLE_ID when set,
    else the first role whose title contains "customer", else the lowest id.
    """
    explicit = int(current_app.config.get("DEFAULT_CUSTOMER_ROLE_ID") or 0)
    if explicit > 0:
        return explicit

    customer = (
        db.session.query(RoleType)
        .filter(db.func.lower(RoleType.title).contains("customer"))
        .order_by(RoleType.role_id.asc())
        .first()
    )
    if customer:
        return customer.role_id

    first = db.session.query(RoleType).order_by(RoleType.role_id.asc()).first()
    if not first:
        raise RuntimeError("No roles exist in role_type (cannot assign role_id)")
    return first.role_id


def create_user(
    *,
    user_name: str,
    username: str,
    password: str,
    role_id: int,
    email: str | None = None,
    mobile_phone: str | None = None,
    is_superuser: bool = False,
) -> User:
    """Create an account with a bcrypt-hashed password. Raises ConflictError on duplicate username."""
    user_name = (user_name or "").strip()
    username = (username or "").strip()
    if not user_name:
        raise ValidationError("user_name is required")
    if len(username) < 3:
        raise ValidationError("username must be at least 3 characters")
    if email and not EMAIL_RE.match(email):
        raise ValidationError("email is not a valid address")

    if db.session.query(User).filter_by(username=username).first():
        raise ConflictError("Username already taken")

    user = User(
        user_name=user_name,
        username=username,
        password=hash_password(password),
        email=email or None,
        mobile_phone=mobile_phone or None,
        role_id=role_id,
        is_superuser=is_superuser,
    )
    db.session.add(user)
    db.session.commit()
    return user


def register_user(payload: dict) -> User:
    """Storefront self-registration; always gets the default customer role."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid registration details")

    fields = {}
    for key in ("user_name", "username", "email", "mobile_phone", "password"):
        value = payload.get(key)
        if value is not None and not isinstance(value, str):
            raise ValidationError("Invalid registration details")
        fields[key] = value

    if not fields["user_name"] or not fields["username"] or not fields["password"]:
        raise ValidationError("Invalid registration details")

    return create_user(
        user_name=fields["user_name"],
        username=fields["username"],
        password=fields["password"],
        email=fields["email"],
        mobile_phone=fields["mobile_phone"],
        role_id=resolve_default_role_id(),
    )


def authenticate(username: str, password: str) -> User | None:
    """Returns the user on valid credentials (and stamps last_login), else None."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        return None

    if not verify_password(password, user.password):
        return None

    user.last_login = utcnow()
    db.session.commit()
    return user
