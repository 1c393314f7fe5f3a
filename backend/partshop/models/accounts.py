from __future__ import annotations

from ..extensions import db
from partshop.time_utils import to_utc_z

# Role ids are part of the public API (admin user editor sends them verbatim)
ROLE_ADMIN = 1
ROLE_MANAGER = 2
ROLE_EMPLOYEE = 3
ROLE_CUSTOMER = 4

STAFF_ROLE_IDS = frozenset({ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE})


class RoleType(db.Model):
    """Account roles. Ids 1-3 are staff, 4 is customer."""
    __tablename__ = "role_type"

    role_id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(64), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"role_id": self.role_id, "title": self.title}


class User(db.Model):
    """
    Unified customer and staff account.

    The password column holds whatever the account was created with: bcrypt for
    accounts created here, legacy formats for migrated ones (see auth_service).
    """
    __tablename__ = "user_employee"
    __table_args__ = {"sqlite_autoincrement": True}

    user_id = db.Column(db.Integer, primary_key=True)
    user_name = db.Column(db.String(255), nullable=False)
    username = db.Column(db.String(150), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=True)
    mobile_phone = db.Column(db.String(20), nullable=True)
    password = db.Column(db.String(255), nullable=False)

    role_id = db.Column(db.Integer, db.ForeignKey("role_type.role_id"), nullable=False, index=True)
    is_superuser = db.Column(db.Boolean, nullable=False, default=False)
    contact_type = db.Column(db.String(16), nullable=True)

    profile_picture = db.Column(db.String(255), nullable=True)
    profile_picture_bytes = db.Column(db.LargeBinary, nullable=True)
    profile_picture_mime = db.Column(db.String(64), nullable=True)
    profile_picture_updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login = db.Column(db.DateTime(timezone=True), nullable=True)

    role = db.relationship("RoleType")

    @property
    def is_staff(self) -> bool:
        return bool(self.is_superuser) or self.role_id in STAFF_ROLE_IDS

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "username": self.username,
            "email": self.email,
            "mobile_phone": self.mobile_phone,
            "role_id": self.role_id,
            "is_superuser": self.is_superuser,
            "contact_type": self.contact_type,
            "last_login": to_utc_z(self.last_login) if self.last_login else None,
        }


class SessionToken(db.Model):
    """
    Server-side session token.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - 24-hour absolute timeout
    - 2-hour idle timeout
    - Revocable on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_employee.user_id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
