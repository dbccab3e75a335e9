"""
Pytest fixtures for storefront backend tests.

Provides test database setup, admin auth headers, taxonomy/pricing
fixtures, and test client.
"""

import pytest
from storefront import create_app
from storefront.extensions import db
from storefront.models import (
    DeviceBrand,
    DeviceType,
    DeviceSeries,
    DeviceModel,
    PhoneCondition,
    PhoneTradeIn,
    Brand,
    Category,
    Product,
    RepairStatus,
)


ADMIN_TOKEN = "test-token"
ADMIN_ACTOR = "admin-1"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_API_TOKENS': [f"{ADMIN_TOKEN}:{ADMIN_ACTOR}"],
        'OPENAI_API_KEY': None,
        'TRADE_IN_PRICING_PROCEDURE_ENABLED': True,
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
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_headers():
    """Authorization headers for the configured admin token."""
    return auth_headers(ADMIN_TOKEN)


@pytest.fixture(scope='function')
def apple_model(db_session):
    """Apple -> Phone -> iPhone 13 Series -> iPhone 13."""
    brand = DeviceBrand(name="Apple")
    device_type = DeviceType(brand=brand, name="Phone")
    series = DeviceSeries(device_type=device_type, name="iPhone 13 Series")
    model = DeviceModel(series=series, name="iPhone 13")
    db_session.add_all([brand, device_type, series, model])
    db_session.commit()
    return model


@pytest.fixture(scope='function')
def good_condition(db_session):
    """Condition with multiplier 0.8."""
    condition = PhoneCondition(name="Good", description="Light wear", multiplier=0.8)
    db_session.add(condition)
    db_session.commit()
    return condition


@pytest.fixture(scope='function')
def repair_status(db_session):
    status = RepairStatus(name="Pending", description="Awaiting diagnosis", color="#f59e0b")
    db_session.add(status)
    db_session.commit()
    return status


@pytest.fixture(scope='function')
def make_trade_in(db_session, apple_model, good_condition):
    """Factory for trade-ins in a given status."""
    def _make(status="pending", **overrides):
        values = dict(
            user_id="user-1",
            device_model_id=apple_model.id,
            condition_id=good_condition.id,
            storage_capacity="128GB",
            color="Black",
            images=[],
            estimated_value_cents=24000,
            estimate_source="fallback",
            status=status,
        )
        values.update(overrides)
        trade_in = PhoneTradeIn(**values)
        db_session.add(trade_in)
        db_session.commit()
        return trade_in
    return _make


@pytest.fixture(scope='function')
def catalog(db_session):
    """Two brands, one category and a handful of products (one repair part)."""
    acme = Brand(name="Acme")
    volt = Brand(name="Volt")
    cases = Category(name="Cases")
    db_session.add_all([acme, volt, cases])
    db_session.flush()

    products = {
        "case": Product(name="Leather Case", description="Slim leather phone case",
                        base_price_cents=2500, in_stock=10, brand_id=acme.id, category_id=cases.id),
        "charger": Product(name="Fast Charger", description="USB-C wall charger for any phone",
                           base_price_cents=4000, in_stock=0, brand_id=volt.id),
        "cable": Product(name="Charger Cable", description="Braided cable",
                         base_price_cents=1500, in_stock=5, brand_id=volt.id),
        "screen": Product(name="Replacement Screen", description="OEM screen for repairs",
                          base_price_cents=9000, in_stock=3, is_repair_part=True),
    }
    db_session.add_all(products.values())
    db_session.commit()
    return {"brands": {"acme": acme, "volt": volt}, "categories": {"cases": cases}, "products": products}


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
