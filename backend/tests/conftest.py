"""
Pytest fixtures for JMS backend tests.

Provides test database setup, product/debt factories and the test client.
"""

from decimal import Decimal

import pytest
from jms import create_app
from jms.extensions import db
from jms.services import debt_service

from factories import make_product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
        db.session.rollback()
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def actor_headers():
    """Caller identity as set by the upstream auth layer."""
    return {'X-User-Id': '7'}


@pytest.fixture(scope='function')
def ring(db_session):
    """Standard product: stock 5, weight 50g."""
    return make_product(db_session)


@pytest.fixture(scope='function')
def chain(db_session):
    """Second standard product: stock 2, weight 20g."""
    return make_product(db_session, name="Gold Chain", stock=2, weight=Decimal("20"))


@pytest.fixture(scope='function')
def silver_pool(db_session):
    """Bulk weight product: 1000g of silver, stock not tracked."""
    return make_product(
        db_session,
        name="Silver Bulk",
        category="Silver",
        type="bulk_weight",
        stock=0,
        weight=Decimal("1000"),
        price_per_gram=Decimal("80"),
    )


@pytest.fixture(scope='function')
def debt(db_session):
    """Pending debt of 1000."""
    return debt_service.create_debt("Ravi Kumar", "9800000001", 1000)

