"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite)
- Users of each role and their bearer tokens
- Sample events, vendors and payments
- A FastAPI test client wired to the test session
- A fresh real-time connection registry per test
"""

import os
import pytest
from datetime import date, timedelta
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['JWT_SECRET_KEY'] = 'test-secret-key-for-planner-crm-0123456789'
os.environ['CRM_DB_URL'] = 'sqlite:///:memory:'
os.environ['CRM_ENV'] = 'test'
os.environ['CRM_LOG_LEVEL'] = 'WARNING'

from backend.src.config.settings import get_settings
from backend.src.middleware.auth import reset_token_failures
from backend.src.middleware.rate_limit import limiter
from backend.src.models import (
    Base,
    Event,
    EventStatus,
    EventType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    User,
    UserRole,
    Vendor,
)
from backend.src.models.user import default_preferences
from backend.src.services.token_service import TokenService
from backend.src.utils import websocket as websocket_module
from backend.src.utils.passwords import hash_password


TEST_PASSWORD = 'correct-horse-battery'

# Low work factor keeps fixtures fast; verification reads it from the hash
_TEST_HASH = hash_password(TEST_PASSWORD, iterations=1000)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    def _fk_pragma_on_connect(dbapi_con, con_record):
        dbapi_con.execute('pragma foreign_keys=ON')

    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Global State
# ============================================================================

@pytest.fixture(autouse=True)
def reset_global_state():
    """Disable rate limiting and clear per-process registries between tests."""
    limiter.enabled = False
    reset_token_failures()
    websocket_module._connection_manager = None
    yield
    websocket_module._connection_manager = None
    reset_token_failures()


# ============================================================================
# Users and Tokens
# ============================================================================

@pytest.fixture
def make_user(test_db_session):
    """Factory for creating users directly in the database."""
    counter = {'n': 0}

    def _create(
        role=UserRole.CLIENT,
        email=None,
        first_name='Test',
        last_name=None,
        company=None,
        is_active=True,
    ):
        counter['n'] += 1
        user = User(
            email=email or f'{role.value.lower()}{counter["n"]}@example.com',
            password_hash=_TEST_HASH,
            first_name=first_name,
            last_name=last_name or f'{role.value.title()}{counter["n"]}',
            role=role,
            company=company,
            is_active=is_active,
            preferences=default_preferences(),
        )
        test_db_session.add(user)
        test_db_session.commit()
        test_db_session.refresh(user)
        return user

    return _create


@pytest.fixture
def test_password():
    """Plain-text password of every user built by make_user."""
    return TEST_PASSWORD


@pytest.fixture
def admin_user(make_user):
    return make_user(role=UserRole.ADMIN, email='admin@example.com')


@pytest.fixture
def planner_user(make_user):
    return make_user(role=UserRole.PLANNER, email='planner@example.com', company='Acme Events')


@pytest.fixture
def client_user(make_user):
    return make_user(role=UserRole.CLIENT, email='client@example.com')


@pytest.fixture
def token_service():
    return TokenService.from_settings(get_settings())


@pytest.fixture
def auth_headers(token_service):
    """Build an Authorization header for a user."""
    def _headers(user):
        return {'Authorization': f'Bearer {token_service.create_access_token(user)}'}
    return _headers


# ============================================================================
# Sample Data
# ============================================================================

@pytest.fixture
def sample_event(test_db_session, client_user, planner_user):
    """Factory for events owned by client_user and run by planner_user."""
    def _create(
        title='Garden Wedding',
        start_date=None,
        status=EventStatus.PLANNING,
        client=None,
        planner=None,
    ):
        event = Event(
            title=title,
            event_type=EventType.WEDDING,
            status=status,
            start_date=start_date or date.today() + timedelta(days=30),
            client_id=(client or client_user).id,
            planner_id=(planner or planner_user).id,
            location={'name': 'Rose Garden', 'city': 'Portland', 'state': 'OR'},
            budget={'total': 20000, 'spent': 0, 'currency': 'USD'},
        )
        test_db_session.add(event)
        test_db_session.commit()
        test_db_session.refresh(event)
        return event

    return _create


@pytest.fixture
def sample_vendor(test_db_session):
    """Factory for vendors."""
    def _create(
        name='Bloom & Co',
        categories=None,
        services=None,
        city='Portland',
        state='OR',
        is_active=True,
        is_verified=False,
        description=None,
    ):
        vendor = Vendor(
            name=name,
            categories=categories if categories is not None else ['Florist'],
            services=services if services is not None else ['bouquets'],
            location={'city': city, 'state': state},
            is_active=is_active,
            is_verified=is_verified,
            description=description,
        )
        test_db_session.add(vendor)
        test_db_session.commit()
        test_db_session.refresh(vendor)
        return vendor

    return _create


@pytest.fixture
def sample_payment(test_db_session):
    """Factory for payments against an event."""
    def _create(
        event,
        amount=500.0,
        status=PaymentStatus.PENDING,
        due_date=None,
        payment_method=PaymentMethod.BANK_TRANSFER,
        invoice_number=None,
    ):
        payment = Payment(
            event_id=event.id,
            client_id=event.client_id,
            amount=amount,
            status=status,
            payment_method=payment_method,
            due_date=due_date,
            invoice_number=invoice_number,
        )
        test_db_session.add(payment)
        test_db_session.commit()
        test_db_session.refresh(payment)
        return payment

    return _create


# ============================================================================
# FastAPI Test Client Fixture
# ============================================================================

@pytest.fixture
def test_client(test_db_engine, test_db_session, tmp_path):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.main import app
    from backend.src.db.database import get_db, get_session_factory
    from backend.src.api.upload import get_upload_service
    from backend.src.services.upload_service import UploadService

    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    def get_test_upload_service():
        return UploadService(tmp_path / 'uploads', max_file_size=1024 * 1024)

    # WebSocket handlers open their own short-lived sessions on the test engine
    test_session_factory = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_session_factory] = lambda: test_session_factory
    app.dependency_overrides[get_upload_service] = get_test_upload_service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
