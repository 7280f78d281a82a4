"""
Pytest fixtures for FreshGuard backend tests.

Provides an app bound to a fresh in-memory database per test, a FixedClock
installed as the app clock, and catalogue fixtures (two brands so the
cross-brand guard can be exercised).
"""

from datetime import datetime

import pytest

from freshguard import create_app
from freshguard.extensions import db
from freshguard.models import Brand, Product, Store
from freshguard.time_utils import FixedClock


NOW = datetime(2026, 3, 1, 12, 0, 0)

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'LOG_LEVEL': 'WARNING',
    'ADMIN_EMAIL': 'admin@freshguard.local',
    'ADMIN_PASSWORD': 'StrongPassword123!',
}


@pytest.fixture(scope='function')
def clock():
    """Clock pinned to NOW; tests move it explicitly."""
    return FixedClock(NOW)


@pytest.fixture(scope='function')
def app(clock):
    """Create application for testing."""
    app = create_app(TEST_CONFIG, clock=clock)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    return db.session


@pytest.fixture(scope='function')
def brand(db_session):
    brand = Brand(name="Acme Foods")
    db_session.add(brand)
    db_session.commit()
    return brand


@pytest.fixture(scope='function')
def other_brand(db_session):
    brand = Brand(name="Beta Bakery")
    db_session.add(brand)
    db_session.commit()
    return brand


@pytest.fixture(scope='function')
def store(db_session, brand):
    store = Store(brand_id=brand.id, name="Downtown", printer_name="Front Printer", label_width_mm=58)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def second_store(db_session, brand):
    store = Store(brand_id=brand.id, name="Uptown")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def product(db_session, brand):
    """One-day shelf life, single-language labels."""
    product = Product(
        brand_id=brand.id,
        name="Tuna Sandwich",
        sku="TS-1",
        shelf_life_days=1,
        label_language="single",
        primary_language="en",
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def bilingual_product(db_session, brand):
    product = Product(
        brand_id=brand.id,
        name="Salad Bowl",
        sku="SB-1",
        shelf_life_days=2,
        label_language="bilingual",
        primary_language="en",
        secondary_language="es",
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def foreign_product(db_session, other_brand):
    """Product owned by a different brand than `store`."""
    product = Product(
        brand_id=other_brand.id,
        name="Croissant",
        shelf_life_days=3,
        label_language="single",
        primary_language="fr",
    )
    db_session.add(product)
    db_session.commit()
    return product


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
