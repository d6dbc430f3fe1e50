"""
Pytest fixtures for cashier backend tests.

Provides the relational app (in-memory SQLite, tables wiped per test), a
fresh in-memory-store app per test, and a `storage` fixture parametrized
over both backends for service-level tests.
"""

import pytest

from cashier import create_app
from cashier.extensions import db
from cashier.storage import get_storage


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'CHECKOUT_TIMEOUT_SECONDS': None,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing (relational storage)."""
    app = create_app({**TEST_CONFIG, 'STORAGE_BACKEND': 'sql'})

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
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
def memory_app():
    """Application backed by a brand new in-memory store."""
    app = create_app({**TEST_CONFIG, 'STORAGE_BACKEND': 'memory'})
    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def memory_client(memory_app):
    return memory_app.test_client()


@pytest.fixture(params=['sql', 'memory'])
def storage(request):
    """The active Storage of either backend, inside its app context."""
    if request.param == 'sql':
        request.getfixturevalue('db_session')
    else:
        request.getfixturevalue('memory_app')
    return get_storage()


@pytest.fixture(scope='function')
def make_product(storage):
    """Factory: create a product through the active catalog store."""
    def _make(name="Indomie", price=3500, stock=10, **extra):
        fields = {"name": name, "price": price, "stock": stock, "active": True}
        fields.update(extra)
        return storage.catalog.create_product(fields)
    return _make


@pytest.fixture(scope='function')
def make_category(storage):
    def _make(name="Makanan", description=None):
        return storage.catalog.create_category({"name": name, "description": description})
    return _make
