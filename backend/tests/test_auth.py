"""
Registration, login and profile tests.
"""

import base64
import hashlib
import io
from datetime import timedelta

import bcrypt
import pytest

from conftest import DEFAULT_PASSWORD, auth_headers, get_auth_token
from partshop.models import ROLE_CUSTOMER, SessionToken, User
from partshop.services import auth_service, session_service
from partshop.validation import ValidationError


def _register(client, **overrides):
    payload = {
        "user_name": "Pedro Penduko",
        "username": "pedro",
        "email": "pedro@example.com",
        "password": DEFAULT_PASSWORD,
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


# =============================================================================
# REGISTRATION
# =============================================================================


class TestRegister:

    def test_register_creates_customer(self, client, db_session):
        resp = _register(client)
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["username"] == "pedro"
        assert data["role_id"] == ROLE_CUSTOMER
        assert data["is_superuser"] is False
        assert "password" not in data

        stored = db_session.query(User).filter_by(username="pedro").one()
        assert stored.password.startswith("$2b$12$")

    def test_role_cannot_be_chosen(self, client, db_session):
        resp = _register(client, role_id=1, is_superuser=True)
        assert resp.status_code == 201
        assert resp.json["data"]["role_id"] == ROLE_CUSTOMER
        assert resp.json["data"]["is_superuser"] is False

    def test_duplicate_username(self, client, customer_user):
        resp = _register(client, username=customer_user.username)
        assert resp.status_code == 409
        assert resp.json["error"] == "Username already taken"

    @pytest.mark.parametrize("overrides", [
        {"username": ""},
        {"user_name": None},
        {"password": None},
        {"username": 12345},
    ])
    def test_missing_fields(self, client, db_session, overrides):
        resp = _register(client, **overrides)
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid registration details"

    @pytest.mark.parametrize("password", ["short", "x" * 73])
    def test_password_length(self, client, db_session, password):
        resp = _register(client, password=password)
        assert resp.status_code == 400

    def test_bad_email(self, client, db_session):
        resp = _register(client, email="not-an-email")
        assert resp.status_code == 400


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_profile(self, client, customer_user):
        resp = client.post("/api/auth/login", json={"username": "juan", "password": DEFAULT_PASSWORD})
        assert resp.status_code == 200
        data = resp.json["data"]
        assert len(data["token"]) == 64
        assert data["expires_at"].endswith("Z")
        assert data["user"]["user_name"] == "Juan Dela Cruz"

    def test_only_token_hash_is_stored(self, client, customer_user, db_session):
        token = get_auth_token(client, "juan")
        stored = db_session.query(SessionToken).filter_by(user_id=customer_user.user_id).one()
        assert stored.token_hash == hashlib.sha256(token.encode("utf-8")).hexdigest()
        assert stored.token_hash != token

    def test_login_stamps_last_login(self, client, customer_user, db_session):
        assert customer_user.last_login is None
        get_auth_token(client, "juan")
        db_session.refresh(customer_user)
        assert customer_user.last_login is not None

    @pytest.mark.parametrize("payload", [
        {},
        {"username": "juan"},
        {"password": DEFAULT_PASSWORD},
        {"username": "  ", "password": DEFAULT_PASSWORD},
    ])
    def test_missing_credentials(self, client, db_session, payload):
        resp = client.post("/api/auth/login", json=payload)
        assert resp.status_code == 400

    def test_wrong_password(self, client, customer_user):
        resp = client.post("/api/auth/login", json={"username": "juan", "password": "WrongPass123"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"

    def test_unknown_user(self, client, db_session):
        resp = client.post("/api/auth/login", json={"username": "ghost", "password": DEFAULT_PASSWORD})
        assert resp.status_code == 401

    def test_login_with_password_longer_than_bcrypt_limit(self, client, make_user, db_session):
        long_password = "Ab1" * 30
        user = make_user("legacy")
        user.password = bcrypt.hashpw(long_password.encode("utf-8")[:72], bcrypt.gensalt(rounds=4)).decode("utf-8")
        db_session.commit()

        resp = client.post("/api/auth/login", json={"username": "legacy", "password": long_password})
        assert resp.status_code == 200

    def test_me(self, client, customer_headers):
        resp = client.get("/api/me", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["email"] == "juan@example.com"
        assert resp.json["data"]["profile_picture"] is None


class TestSessions:

    def test_idle_session_is_revoked(self, client, customer_user, db_session):
        token = get_auth_token(client, "juan")
        stored = db_session.query(SessionToken).filter_by(user_id=customer_user.user_id).one()
        stored.last_used_at = stored.last_used_at - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(stored)
        assert stored.is_revoked is True
        assert stored.revoked_reason == "Idle timeout"

    def test_expired_session(self, client, customer_user, db_session):
        token = get_auth_token(client, "juan")
        stored = db_session.query(SessionToken).filter_by(user_id=customer_user.user_id).one()
        stored.expires_at = stored.created_at - timedelta(seconds=1)
        db_session.commit()

        resp = client.get("/api/me", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_revoke_all(self, client, customer_user):
        first = get_auth_token(client, "juan")
        second = get_auth_token(client, "juan")
        assert session_service.revoke_all_user_sessions(customer_user.user_id) == 2
        assert client.get("/api/me", headers=auth_headers(first)).status_code == 401
        assert client.get("/api/me", headers=auth_headers(second)).status_code == 401


# =============================================================================
# LEGACY PASSWORD FORMATS
# =============================================================================


def _django_pbkdf2(password, *, algorithm="pbkdf2_sha256", iterations=1000, salt="pepper"):
    digest = {"pbkdf2_sha256": "sha256", "pbkdf2_sha1": "sha1"}[algorithm]
    raw = hashlib.pbkdf2_hmac(digest, password.encode("utf-8"), salt.encode("utf-8"), iterations, dklen=32)
    return f"{algorithm}${iterations}${salt}${base64.b64encode(raw).decode('ascii')}"


def _bcrypt(secret: str) -> str:
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


class TestVerifyPassword:

    def test_plain_text(self, app):
        assert auth_service.verify_password("letmein", "letmein")
        assert not auth_service.verify_password("letmein", "letmeout")

    def test_raw_bcrypt(self, app):
        stored = _bcrypt("letmein")
        assert auth_service.verify_password("letmein", stored)
        assert not auth_service.verify_password("nope", stored)

    def test_bcrypt_ignores_bytes_past_limit(self, app):
        stored = bcrypt.hashpw(b"a" * 72, bcrypt.gensalt(rounds=4)).decode("utf-8")
        assert auth_service.verify_password("a" * 80, stored)
        assert auth_service.verify_password("a" * 72, stored)
        assert not auth_service.verify_password("a" * 71, stored)

    def test_prefixed_bcrypt(self, app):
        assert auth_service.verify_password("letmein", "bcrypt$" + _bcrypt("letmein"))

    def test_bcrypt_sha256(self, app):
        digest = hashlib.sha256(b"letmein").hexdigest()
        inner = _bcrypt(digest)
        assert auth_service.verify_password("letmein", "bcrypt_sha256$" + inner)
        assert auth_service.verify_password("letmein", "bcrypt_sha256$" + inner[1:])
        assert not auth_service.verify_password("nope", "bcrypt_sha256$" + inner)

    @pytest.mark.parametrize("algorithm", ["pbkdf2_sha256", "pbkdf2_sha1"])
    def test_django_pbkdf2(self, app, algorithm):
        stored = _django_pbkdf2("letmein", algorithm=algorithm)
        assert auth_service.verify_password("letmein", stored)
        assert not auth_service.verify_password("nope", stored)

    @pytest.mark.parametrize("stored", [None, "", "md5$abc$def", "pbkdf2_sha256$x$salt$AAAA"])
    def test_unknown_or_broken(self, app, stored):
        assert not auth_service.verify_password("letmein", stored)

    def test_legacy_account_can_log_in(self, client, db_session):
        db_session.add(User(
            user_name="Old Timer",
            username="oldtimer",
            password=_django_pbkdf2("letmein-please"),
            role_id=ROLE_CUSTOMER,
        ))
        db_session.commit()
        assert get_auth_token(client, "oldtimer", "letmein-please") is not None

    def test_hash_password_limits(self, app):
        with pytest.raises(ValidationError):
            auth_service.hash_password("short")
        with pytest.raises(ValidationError):
            # Multi-byte characters count by bytes
            auth_service.hash_password("ñ" * 40)


# =============================================================================
# PROFILE PICTURE
# =============================================================================


class TestProfilePicture:

    def _upload(self, client, headers, data=b"\x89PNG fake", mimetype="image/png", filename="me.png"):
        return client.post(
            "/api/me/profile-picture",
            headers=headers,
            data={"file": (io.BytesIO(data), filename, mimetype)},
            content_type="multipart/form-data",
        )

    def test_upload_then_fetch_publicly(self, client, customer_user, customer_headers):
        resp = self._upload(client, customer_headers)
        assert resp.status_code == 201
        url = resp.json["data"]["profile_picture"]
        assert url.startswith(f"/api/me/profile-picture?userId={customer_user.user_id}&v=")

        public = client.get(f"/api/me/profile-picture?userId={customer_user.user_id}")
        assert public.status_code == 200
        assert public.data == b"\x89PNG fake"
        assert public.headers["Content-Type"] == "image/png"
        assert "immutable" in public.headers["Cache-Control"]
        assert "Last-Modified" in public.headers

        me = client.get("/api/me", headers=customer_headers)
        assert me.json["data"]["profile_picture"] == url

    def test_rejects_non_image(self, client, customer_headers):
        resp = self._upload(client, customer_headers, data=b"%PDF", mimetype="application/pdf", filename="x.pdf")
        assert resp.status_code == 400
        assert resp.json["error"] == "Only image uploads are allowed"

    def test_rejects_empty(self, client, customer_headers):
        resp = self._upload(client, customer_headers, data=b"")
        assert resp.status_code == 400

    def test_missing_file(self, client, customer_headers):
        resp = client.post("/api/me/profile-picture", headers=customer_headers, data={},
                           content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.json["error"] == "file is required"

    def test_not_found(self, client, customer_user):
        assert client.get(f"/api/me/profile-picture?userId={customer_user.user_id}").status_code == 404
        assert client.get("/api/me/profile-picture").status_code == 400
