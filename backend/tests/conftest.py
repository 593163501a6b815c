"""
Pytest fixtures for backend tests.

Provides the application on an in-memory database, role/permission seed
data, one user per default role, and auth helpers.
"""

import pytest
from decimal import Decimal

from carwash import create_app
from carwash.extensions import db
from carwash.models import Product, Service
from carwash.permissions import ADMIN_ROLE, EMPLOYEE_ROLE, CUSTOMER_ROLE
from carwash.services.auth_service import register_user, create_default_roles
from carwash.services import permission_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
        'BOOKING_ON_CHECK_ERROR': 'allow',
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
def setup_roles(db_session):
    """Setup default roles and permissions."""
    create_default_roles()
    permission_service.initialize_permissions()
    permission_service.assign_default_role_permissions()
    db_session.commit()


def _make_user(email, role_name, first_name, national_id):
    return register_user(
        email=email,
        password=PASSWORD,
        first_name=first_name,
        last_name="Test",
        national_id=national_id,
        phone="1155550000",
        role_name=role_name,
    )


@pytest.fixture(scope='function')
def admin_user(setup_roles):
    return _make_user("admin@lavadero.test", ADMIN_ROLE, "Ada", 30111222)


@pytest.fixture(scope='function')
def employee_user(setup_roles):
    return _make_user("empleado@lavadero.test", EMPLOYEE_ROLE, "Emilio", 30222333)


@pytest.fixture(scope='function')
def customer_user(setup_roles):
    return _make_user("cliente@lavadero.test", CUSTOMER_ROLE, "Carla", 30333444)


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email, PASSWORD))


@pytest.fixture(scope='function')
def employee_headers(client, employee_user):
    return auth_headers(get_auth_token(client, employee_user.email, PASSWORD))


@pytest.fixture(scope='function')
def customer_headers(client, customer_user):
    return auth_headers(get_auth_token(client, customer_user.email, PASSWORD))


@pytest.fixture(scope='function')
def wash_service(db_session):
    """A visible, active wash service."""
    service = Service(name="Lavado completo", price=Decimal("15000.00"), duration_minutes=60)
    db_session.add(service)
    db_session.commit()
    return service


@pytest.fixture(scope='function')
def products(db_session):
    """Two visible products and one hidden product."""
    items = [
        Product(name="Shampoo", price=Decimal("1500.50"), stock=10),
        Product(name="Cera", price=Decimal("3200.00"), stock=4),
        Product(name="Oculto", price=Decimal("999.00"), stock=1, is_visible=False),
    ]
    db_session.add_all(items)
    db_session.commit()
    return items


def get_auth_token(client, email: str, password: str) -> str:
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
