"""Pytest configuration and shared fixtures.

Environment variables are pinned before the application package is imported
so the engine binds to an in-memory database and rate limiting stays off.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CALLS_MOCK_MODE"] = "true"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("CF_TURN_TOKEN_ID", None)
os.environ.pop("CF_TURN_API_TOKEN", None)

from collections.abc import Generator  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from telemed.database import Base, SessionLocal, engine  # noqa: E402
from telemed.main import app  # noqa: E402
from telemed.models import (  # noqa: E402
    Appointment,
    DoctorSpecialty,
    Patient,
    Specialty,
    Worker,
    WorkerSchedule,
)
from telemed.security_utils import create_access_token, hash_password  # noqa: E402
from telemed.session_store import session_store  # noqa: E402
from telemed.utils.timezone import jst_date_to_utc, jst_to_utc  # noqa: E402

TEST_PASSWORD = "Str0ng!Passw0rd"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Fresh schema per test on the shared in-memory engine."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_session_store() -> Generator[None, None, None]:
    session_store.clear()
    yield
    session_store.clear()


# =============================================================================
# Seed Data
# =============================================================================


@pytest.fixture
def specialty(db: Session) -> Specialty:
    item = Specialty(name="internal_medicine", display_name="Internal Medicine", display_order=1)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def make_patient(db: Session, email: str = "patient@example.com", name: str = "Hanako Sato") -> Patient:
    patient = Patient(
        email=email,
        name=name,
        password_hash=hash_password(TEST_PASSWORD),
        emergency_contact={},
        medical_history={},
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


def make_worker(
    db: Session,
    email: str,
    name: str,
    role: str,
    specialty: Optional[Specialty] = None,
    is_active: bool = True,
) -> Worker:
    worker = Worker(
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(TEST_PASSWORD),
        is_active=is_active,
    )
    db.add(worker)
    db.commit()
    if specialty is not None:
        db.add(DoctorSpecialty(worker_id=worker.id, specialty_id=specialty.id))
        db.commit()
    db.refresh(worker)
    return worker


def make_appointment(
    db: Session,
    patient: Patient,
    doctor: Optional[Worker],
    date: str,
    time: str,
    status: str = "scheduled",
    duration_minutes: int = 30,
    chief_complaint: Optional[str] = "Headache",
) -> Appointment:
    appointment = Appointment(
        patient_id=patient.id,
        assigned_worker_id=doctor.id if doctor else None,
        scheduled_at=jst_to_utc(date, time),
        status=status,
        duration_minutes=duration_minutes,
        appointment_type="initial",
        chief_complaint=chief_complaint,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def make_schedule(
    db: Session,
    doctor: Worker,
    date: str,
    start_time: str = "09:00",
    end_time: str = "12:00",
    status: str = "available",
) -> WorkerSchedule:
    schedule = WorkerSchedule(
        worker_id=doctor.id,
        schedule_date=jst_date_to_utc(date),
        start_time=start_time,
        end_time=end_time,
        status=status,
        max_appointments=10,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule


@pytest.fixture
def patient(db: Session) -> Patient:
    return make_patient(db)


@pytest.fixture
def other_patient(db: Session) -> Patient:
    return make_patient(db, email="other@example.com", name="Taro Yamada")


@pytest.fixture
def doctor(db: Session, specialty: Specialty) -> Worker:
    return make_worker(db, "doctor@clinic.example", "Dr. Suzuki", "doctor", specialty=specialty)


@pytest.fixture
def other_doctor(db: Session) -> Worker:
    return make_worker(db, "doctor2@clinic.example", "Dr. Tanaka", "doctor")


@pytest.fixture
def operator(db: Session) -> Worker:
    return make_worker(db, "operator@clinic.example", "Operator Ito", "operator")


@pytest.fixture
def admin(db: Session) -> Worker:
    return make_worker(db, "admin@clinic.example", "Admin Kato", "admin")


# =============================================================================
# Token Helpers
# =============================================================================


def auth_headers(account, user_type: str) -> dict[str, str]:
    role = account.role if user_type == "worker" else None
    token = create_access_token(account.id, account.email, user_type, role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers(patient: Patient) -> dict[str, str]:
    return auth_headers(patient, "patient")


@pytest.fixture
def other_patient_headers(other_patient: Patient) -> dict[str, str]:
    return auth_headers(other_patient, "patient")


@pytest.fixture
def doctor_headers(doctor: Worker) -> dict[str, str]:
    return auth_headers(doctor, "worker")


@pytest.fixture
def other_doctor_headers(other_doctor: Worker) -> dict[str, str]:
    return auth_headers(other_doctor, "worker")


@pytest.fixture
def operator_headers(operator: Worker) -> dict[str, str]:
    return auth_headers(operator, "worker")


@pytest.fixture
def admin_headers(admin: Worker) -> dict[str, str]:
    return auth_headers(admin, "worker")
