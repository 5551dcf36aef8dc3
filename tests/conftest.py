"""
Pytest configuration and fixtures for Fleet Reservations tests.

Fixtures are reusable test data/objects that tests can use.
Each test gets a fresh app backed by its own temporary SQLite file.
"""
import pytest
import os
import tempfile
from datetime import datetime, timedelta, timezone

from app import create_app
from models import db, ItemType, Item, Reservation
from permissions import register_service, grant_permission
from constants import SERVICE_NAME_HEADER, API_KEY_HEADER


@pytest.fixture(scope='function')
def app():
    """
    Create an application for one test.

    This fixture:
    - Creates a temporary database file (SQLite)
    - Sets up test configuration
    - Creates all database tables
    - Keeps an app context pushed for the whole test
    - Cleans up after the test
    """
    db_fd, db_path = tempfile.mkstemp()

    app = create_app({
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        # Concurrency tests share the file between threads
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'check_same_thread': False, 'timeout': 30}},
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """Test client for making HTTP requests against the app"""
    return app.test_client()


@pytest.fixture
def now():
    """A fixed 'now', truncated to the second so ISO round trips compare equal"""
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def yesterday(now):
    return now - timedelta(days=1)


@pytest.fixture
def tomorrow(now):
    return now + timedelta(days=1)


@pytest.fixture
def test_item_type(app):
    """
    Create the 'car' item type.

    Only 'mileage' may be edited on its items.
    """
    item_type = ItemType(name='car', allowed_keys=['mileage'])
    db.session.add(item_type)
    db.session.commit()
    return item_type


@pytest.fixture
def test_item_a(test_item_type):
    """First car (created first, so it is the first availability candidate)"""
    item = Item(name='Car A', item_type_id=test_item_type.id, data={'mileage': '1000'})
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture
def test_item_b(test_item_type, test_item_a):
    """Second car. Depends on test_item_a so creation order is always A, B."""
    item = Item(name='Car B', item_type_id=test_item_type.id, data={})
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture
def make_reservation():
    """Insert a reservation row directly, bypassing the booking checks"""
    def _make(item, start, end):
        reservation = Reservation(item_id=item.id, start_time=start, end_time=end)
        db.session.add(reservation)
        db.session.commit()
        return reservation
    return _make


@pytest.fixture
def test_service(test_item_type):
    """
    Register a service with write permission on 'car'.

    Returns (service, api_key).
    """
    service, api_key = register_service('fleet-ops')
    grant_permission(service, test_item_type, True)
    return service, api_key


@pytest.fixture
def auth_headers(test_service):
    """Request headers that authenticate as test_service"""
    service, api_key = test_service
    return {SERVICE_NAME_HEADER: service.name, API_KEY_HEADER: api_key}


@pytest.fixture
def read_only_headers(test_item_type):
    """Headers for a service whose permission on 'car' is read-only"""
    service, api_key = register_service('dashboard')
    grant_permission(service, test_item_type, False)
    return {SERVICE_NAME_HEADER: service.name, API_KEY_HEADER: api_key}
