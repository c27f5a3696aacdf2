"""
Pytest fixtures for Justoo backend tests.

Provides the in-memory application, a clean database per test, account
fixtures for every surface and helpers to authenticate requests.
"""

import pytest

from justoo import create_app
from justoo.extensions import db
from justoo.models import Admin, Customer, CustomerAddress, InventoryUser, Item, Rider
from justoo.services import session_service
from justoo.services.auth_service import hash_password


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def issue_headers(principal_type: str, principal) -> dict:
    """Open a session for an account directly and return its headers."""
    _, token = session_service.create_session(principal_type, principal.id)
    return auth_headers(token)


# =============================================================================
# Accounts
# =============================================================================

def make_admin(db_session, username, role):
    admin = Admin(
        username=username,
        email=f"{username}@justoo.test",
        password_hash=hash_password(PASSWORD),
        role=role,
        is_active=True,
    )
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture(scope='function')
def superadmin(db_session):
    return make_admin(db_session, "root", "superadmin")


@pytest.fixture(scope='function')
def admin(db_session):
    return make_admin(db_session, "ops", "admin")


@pytest.fixture(scope='function')
def inventory_admin(db_session):
    user = InventoryUser(
        username="stockboss",
        email="stockboss@justoo.test",
        password_hash=hash_password(PASSWORD),
        role="admin",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def inventory_clerk(db_session):
    user = InventoryUser(
        username="clerk",
        email="clerk@justoo.test",
        password_hash=hash_password(PASSWORD),
        role="user",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


def make_rider(db_session, username="ravi1234", phone="9876500001", status="active"):
    rider = Rider(
        username=username,
        name="Ravi Kumar",
        phone=phone,
        password_hash=hash_password(PASSWORD),
        vehicle_type="bike",
        vehicle_number="KA01AB1234",
        status=status,
        is_active=True,
    )
    db_session.add(rider)
    db_session.commit()
    return rider


@pytest.fixture(scope='function')
def rider(db_session):
    return make_rider(db_session)


def make_customer(db_session, phone="9123456780", name="Asha Rao"):
    customer = Customer(
        name=name,
        phone=phone,
        password_hash=hash_password(PASSWORD),
        status="active",
        is_active=True,
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer(db_session):
    return make_customer(db_session)


@pytest.fixture(scope='function')
def address(db_session, customer):
    addr = CustomerAddress(
        customer_id=customer.id,
        type="home",
        full_address="12 MG Road, Bengaluru",
        latitude=12.9716,
        longitude=77.5946,
        city="Bengaluru",
        is_default=True,
        is_active=True,
    )
    db_session.add(addr)
    db_session.commit()
    return addr


# =============================================================================
# Catalog
# =============================================================================

def make_item(db_session, name, price_cents, quantity, **kwargs):
    item = Item(
        name=name,
        price_cents=price_cents,
        quantity=quantity,
        unit=kwargs.pop("unit", "kg"),
        category=kwargs.pop("category", "Grocery"),
        min_stock_level=kwargs.pop("min_stock_level", 10),
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def rice(db_session):
    return make_item(db_session, "Basmati Rice", 12000, 50, category="Grains", description="Long grain rice")


@pytest.fixture(scope='function')
def milk(db_session):
    return make_item(db_session, "Full Cream Milk", 3000, 20, unit="litre", category="Dairy", discount_percent=10.0)


@pytest.fixture(scope='function')
def bananas(db_session):
    return make_item(db_session, "Bananas", 6000, 5, unit="dozen", category="Fruits")


# =============================================================================
# Auth headers
# =============================================================================

@pytest.fixture(scope='function')
def superadmin_headers(superadmin):
    return issue_headers("admin", superadmin)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return issue_headers("admin", admin)


@pytest.fixture(scope='function')
def inventory_admin_headers(inventory_admin):
    return issue_headers("inventory", inventory_admin)


@pytest.fixture(scope='function')
def inventory_clerk_headers(inventory_clerk):
    return issue_headers("inventory", inventory_clerk)


@pytest.fixture(scope='function')
def rider_headers(rider):
    return issue_headers("rider", rider)


@pytest.fixture(scope='function')
def customer_headers(customer):
    return issue_headers("customer", customer)


@pytest.fixture(scope='function')
def place_order(client, customer_headers, address):
    """Fill the customer's cart and check out; returns the order payload."""
    def _place(*lines, payment_method="cash"):
        for item, quantity in lines:
            resp = client.post(
                "/customer/api/cart/add",
                json={"item_id": item.id, "quantity": quantity},
                headers=customer_headers,
            )
            assert resp.status_code == 200, resp.json
        resp = client.post(
            "/customer/api/orders",
            json={"delivery_address_id": address.id, "payment_method": payment_method},
            headers=customer_headers,
        )
        assert resp.status_code == 201, resp.json
        return resp.json["data"]["order"]
    return _place
