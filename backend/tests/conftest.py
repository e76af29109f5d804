"""
Pytest fixtures for order tracker backend tests.

Provides test database setup, accounts per role, and the test client.
"""

import pytest
from order_tracker import create_app
from order_tracker.extensions import db
from order_tracker.models import AuthUser, UserProfile
from order_tracker.services import session_service
from order_tracker.services.auth_service import hash_password
from order_tracker.services.data_gateway import DataGateway, reset_schema_cache


TEST_PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SQLALCHEMY_ENGINE_OPTIONS': {},
    'GATEWAY_RETRY_BACKOFF': 0,
    'GEMINI_API_KEY': '',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(dict(TEST_CONFIG))

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
        reset_schema_cache()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def create_account(email: str, role: str) -> AuthUser:
    """Account plus profile, written directly (no session)."""
    user = AuthUser(email=email, password_hash=hash_password(TEST_PASSWORD))
    db.session.add(user)
    db.session.flush()
    db.session.add(UserProfile(id=user.id, email=email, role=role))
    db.session.commit()
    return user


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user: AuthUser) -> dict:
    _, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_account("admin@example.com", "Admin")


@pytest.fixture(scope='function')
def staff_user(db_session):
    return create_account("staff@example.com", "Staff")


@pytest.fixture(scope='function')
def viewer_user(db_session):
    return create_account("viewer@example.com", "Viewer")


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    return headers_for(staff_user)


@pytest.fixture(scope='function')
def viewer_headers(viewer_user):
    return headers_for(viewer_user)


@pytest.fixture(scope='function')
def admin_gateway(admin_user):
    return DataGateway(user=admin_user)


@pytest.fixture(scope='function')
def staff_gateway(staff_user):
    return DataGateway(user=staff_user)


@pytest.fixture(scope='function')
def item_payload():
    return {
        "name": "Wireless Headphones",
        "category": "Electronics",
        "sku": "HEAD-WH-1000",
        "stock_level": 45,
        "unit_cost": 120.00,
        "retail_price": 199.99,
        "bank_settled_amount": 180.00,
        "min_stock_level": 10,
    }
