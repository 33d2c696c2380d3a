"""
Pytest fixtures for POSX backend tests.

Provides an in-memory database, client (shop) accounts, product factories,
authenticated request headers and a recording mail transport.
"""

from contextlib import contextmanager

import pytest
from posx import create_app
from posx.config import TestConfig
from posx.extensions import db
from posx.models import Category, Product
from posx.services import client_service, session_service

SHOP_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        app.extensions.pop("email_transport", None)

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


def _create_shop(name: str, phone: str):
    return client_service.create_client(patch={
        "client_name": name,
        "phone_number": phone,
        "password": SHOP_PASSWORD,
        "email": None,
        "company_name": None,
    })


@pytest.fixture(scope='function')
def shop(db_session):
    """Active client account A."""
    return _create_shop("Shop A", "5550001")


@pytest.fixture(scope='function')
def other_shop(db_session):
    """Active client account B (for isolation checks)."""
    return _create_shop("Shop B", "5550002")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers(shop):
    _, token = session_service.create_session(shop.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def other_headers(other_shop):
    _, token = session_service.create_session(other_shop.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_headers(db_session):
    _, token = session_service.create_session(is_admin=True)
    return auth_headers(token)


@pytest.fixture(scope='function')
def make_category(db_session, shop):
    def _make(name="Drinks", client_id=None):
        category = Category(client_id=client_id or shop.id, name=name)
        db_session.add(category)
        db_session.commit()
        return category
    return _make


@pytest.fixture(scope='function')
def make_product(db_session, shop):
    """Factory: make_product(name, quantity=10, price_cents=200, category=None)."""
    def _make(name="Product", quantity=10, price_cents=200, category=None, client_id=None):
        product = Product(
            client_id=client_id or shop.id,
            category_id=category.id if category else None,
            name=name,
            price_cents=price_cents,
            quantity=quantity,
            start_qty=quantity,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


class RecordingTransport:
    """Stands in for an SMTP connection; keeps every message sent."""

    def __init__(self):
        self.messages = []
        self.fail_with = None

    @contextmanager
    def __call__(self, settings):
        yield self

    def send_message(self, msg):
        if self.fail_with is not None:
            raise self.fail_with
        self.messages.append(msg)


@pytest.fixture(scope='function')
def mail_outbox(app, db_session):
    transport = RecordingTransport()
    app.extensions["email_transport"] = transport
    yield transport
    app.extensions.pop("email_transport", None)


@pytest.fixture(scope='function')
def sell(client, headers):
    """Factory: sell((product, qty), ..., payment="cash") posts a sale at the product price."""
    def _sell(*lines, payment="cash", as_headers=None):
        items = [
            {
                "productId": product.id,
                "quantity": qty,
                "unitPrice": product.price_cents / 100,
                "totalPrice": product.price_cents * qty / 100,
            }
            for product, qty in lines
        ]
        resp = client.post(
            "/pos/sales",
            json={
                "items": items,
                "totalAmount": sum(product.price_cents * qty for product, qty in lines) / 100,
                "paymentMethod": payment,
            },
            headers=as_headers or headers,
        )
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["sale"]
    return _sell
