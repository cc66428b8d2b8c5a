"""
Pytest fixtures for Shipline backend tests.

Provides test database setup, user/pickup/box factories, principals and
an authenticated test client helper.
"""

import pytest

from app import create_app
from app.extensions import db
from app.models import Item, Pickup, User, VerificationStatus
from app.permissions import Roles
from app.services import auth_service, box_service
from app.services.session_service import Principal


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


# =============================================================================
# FACTORIES
# =============================================================================


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: make_user("ada@example.com", role=Roles.SHIPPER, ...)."""
    def _make(email, role=Roles.SHIPPER, name=None, verification_status=VerificationStatus.UNVERIFIED,
              is_system_user=False):
        return auth_service.create_user(
            email=email,
            password=None if is_system_user else PASSWORD,
            role=role,
            name=name or email.split("@")[0].title(),
            is_system_user=is_system_user,
            verification_status=verification_status,
        )
    return _make


@pytest.fixture(scope='function')
def make_pickup(db_session):
    """Factory: a pickup owned by `owner` holding items of the given weights."""
    def _make(owner, weights=(1,), client=None):
        pickup = Pickup(owner_user_id=owner.id, client_user_id=client.id if client else None)
        db_session.add(pickup)
        db_session.flush()
        for index, weight in enumerate(weights):
            db_session.add(Item(
                pickup_id=pickup.id,
                category="phone",
                model=f"Model {index}",
                estimated_weight_lb=weight,
                client_shipping_usd=10,
            ))
        db_session.commit()
        return pickup
    return _make


@pytest.fixture(scope='function')
def make_box(db_session):
    """Factory: create a box through the service and commit, returning its id."""
    def _make(principal, **kwargs):
        box = box_service.create_box(principal, **kwargs)
        db_session.commit()
        return box["id"]
    return _make


@pytest.fixture(scope='function')
def shipper(make_user):
    return make_user("shipper@example.com", role=Roles.SHIPPER)


@pytest.fixture(scope='function')
def other_shipper(make_user):
    return make_user("other@example.com", role=Roles.SHIPPER)


@pytest.fixture(scope='function')
def client_user(make_user):
    return make_user("client@example.com", role=Roles.CLIENT)


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin@example.com", role=Roles.ADMIN)


@pytest.fixture(scope='function')
def system_user(make_user):
    return make_user("system@example.com", role=Roles.SYSTEM, is_system_user=True)


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def login(client):
    """Factory: log a user in over HTTP and return Authorization headers."""
    def _login(user, password=PASSWORD):
        token = get_auth_token(client, user.email, password)
        assert token, f"login failed for {user.email}"
        return auth_headers(token)
    return _login


@pytest.fixture(scope='function')
def as_principal():
    """Factory: the Principal a session for this user would carry."""
    def _as(user: User) -> Principal:
        return Principal.from_user(user)
    return _as
