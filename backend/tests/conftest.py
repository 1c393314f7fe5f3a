"""
Pytest fixtures for the shop backend tests.

Provides the app, an in-memory database cleared per test (with roles and
delivery statuses seeded), account fixtures and login helpers.
"""

import pytest

from partshop import create_app
from partshop.config import TestConfig
from partshop.extensions import db
from partshop.models import (
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_EMPLOYEE,
    Address,
    Brand,
    Category,
    Courier,
    Product,
    User,
)
from partshop.services.auth_service import create_default_roles, hash_password
from partshop.services.order_service import ensure_default_statuses

DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash(app):
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(DEFAULT_PASSWORD)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table, then seed roles and delivery statuses."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.expunge_all()

    create_default_roles()
    ensure_default_statuses()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session, password_hash):
    def _make(username, role_id=ROLE_CUSTOMER, *, user_name=None, email=None, is_superuser=False):
        user = User(
            user_name=user_name or username.replace("_", " ").title(),
            username=username,
            email=email,
            password=password_hash,
            role_id=role_id,
            is_superuser=is_superuser,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin", ROLE_ADMIN, user_name="Shop Admin")


@pytest.fixture(scope='function')
def employee_user(make_user):
    return make_user("clerk", ROLE_EMPLOYEE, user_name="Counter Clerk")


@pytest.fixture(scope='function')
def customer_user(make_user):
    return make_user("juan", ROLE_CUSTOMER, user_name="Juan Dela Cruz", email="juan@example.com")


@pytest.fixture(scope='function')
def other_customer(make_user):
    return make_user("maria", ROLE_CUSTOMER, user_name="Maria Santos")


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json["data"]["token"]
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def employee_headers(client, employee_user):
    return auth_headers(get_auth_token(client, employee_user.username))


@pytest.fixture(scope='function')
def customer_headers(client, customer_user):
    return auth_headers(get_auth_token(client, customer_user.username))


@pytest.fixture(scope='function')
def other_customer_headers(client, other_customer):
    return auth_headers(get_auth_token(client, other_customer.username))


# =============================================================================
# Catalog and order fixtures
# =============================================================================

@pytest.fixture(scope='function')
def make_product(db_session):
    def _make(name="Brake Pad", *, price=500, purchase_price=300, weight=0.5, quantity=10,
              brand=None, category=None):
        product = Product(
            name=name,
            selling_price=price,
            purchase_price=purchase_price,
            weight=weight,
            quantity=quantity,
        )
        if brand:
            product.brand = db_session.query(Brand).filter_by(name=brand).first() or Brand(name=brand)
        if category:
            product.category = db_session.query(Category).filter_by(name=category).first() or Category(name=category)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def courier(db_session):
    row = Courier(name="LBC", base_rate=100, rate_per_kg=50, max_weight=20, delivery_time="2-3 days")
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture(scope='function')
def customer_address(db_session, customer_user):
    address = Address(
        user_id=customer_user.user_id,
        street_house_building_no="123 Rizal St",
        is_default=True,
    )
    db_session.add(address)
    db_session.commit()
    return address


def place_order(client, headers, *, address_id, courier_id, items):
    """POST a checkout and return the response."""
    return client.post('/api/checkout/place', headers=headers, json={
        'addressId': address_id,
        'courierId': courier_id,
        'items': items,
    })


@pytest.fixture(scope='function')
def placed_order(client, customer_headers, customer_address, courier, make_product):
    """One Pending order of 2 x Brake Pad for the customer; returns the response data."""
    product = make_product("Brake Pad", price=500, weight=0.5)
    resp = place_order(
        client,
        customer_headers,
        address_id=customer_address.address_id,
        courier_id=courier.courier_id,
        items=[{'productId': product.product_id, 'quantity': 2}],
    )
    assert resp.status_code == 201, resp.json
    return resp.json["data"]
