import os
import tempfile
from datetime import date
from itertools import count

import pytest

# Point the application at a throwaway SQLite file before it is imported
_db_dir = tempfile.mkdtemp(prefix="dentalcare-tests-")
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"

from fastapi.testclient import TestClient

from dentalcare.main import app
from dentalcare.api.deps import get_limiter
from dentalcare.core.database import Base, SessionLocal, engine
from dentalcare.core.rate_limit import InMemoryRateLimiter
from dentalcare.core.security import UserRole
from dentalcare.models.user import User
from dentalcare.models.patient import Patient
from dentalcare.models.doctor import Doctor
from dentalcare.models.appointment import Appointment  # noqa: F401

from .helpers import TODAY

_sequence = count(1)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    """Injected into services so 'today' does not depend on the wall clock."""
    return lambda: TODAY


@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(test_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(test_db):
    limiter = InMemoryRateLimiter()
    app.dependency_overrides[get_limiter] = lambda: limiter
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_patient(db):
    """Insert a patient directly, bypassing registration and password hashing."""
    def factory(first_name="Amara", last_name="Okafor"):
        n = next(_sequence)
        user = User(email=f"patient{n}@kekedental.com", password_hash="unused", role=UserRole.PATIENT)
        patient = Patient(
            user=user,
            first_name=first_name,
            last_name=last_name,
            email=user.email,
            phone="0712 345 678",
            date_of_birth=date(1990, 5, 17),
            gender="female",
            address="12 Harbour Road",
        )
        db.add_all([user, patient])
        db.commit()
        db.refresh(patient)
        return patient
    return factory


@pytest.fixture
def make_doctor(db):
    def factory(first_name="Kwame", last_name="Mensah", specialization="Orthodontics"):
        n = next(_sequence)
        user = User(email=f"doctor{n}@kekedental.com", password_hash="unused", role=UserRole.DOCTOR)
        doctor = Doctor(
            user=user,
            first_name=first_name,
            last_name=last_name,
            email=user.email,
            phone="0722 000 111",
            specialization=specialization,
            license_number=f"LIC-{n:05d}",
        )
        db.add_all([user, doctor])
        db.commit()
        db.refresh(doctor)
        return doctor
    return factory
