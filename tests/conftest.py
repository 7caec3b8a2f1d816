"""Test configuration for Evexia.

Every test gets a fresh in-memory SQLite database. The API client shares the
test's session so fixtures and requests see the same rows.
"""

import os
import re
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

# Set testing environment BEFORE any application imports
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production-use-only"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AI_ENABLED"] = "false"
os.environ["EMAIL_BACKEND"] = "log"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from evexia.access.auth_mode import AuthPolicy
from evexia.access.engine import AccessAuthorizationEngine, RequestContext
from evexia.api.deps import get_app_settings, get_email_service
from evexia.config import AuthMode, Settings
from evexia.core.database import build_engine, get_db, init_db
from evexia.models import (
    Employee,
    MedicalRecord,
    Organization,
    Patient,
    PatientProvider,
    Summary,
)
from evexia.services.email import Email, EmailProvider, EmailResult, EmailService, EmailStatus
from evexia.services.otp_service import OTPService

CODE_PATTERN = re.compile(r"verification code is (\d+)")

NOW = datetime(2024, 11, 1, 12, 0, 0)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "access_control: provider access decisions")
    config.addinivalue_line("markers", "audit_required: test checks the access log")
    config.addinivalue_line("markers", "emergency_access: break-glass access flow")
    config.addinivalue_line("markers", "ai: summary or consent generation")


class CapturingEmailProvider(EmailProvider):
    """Records outgoing email instead of sending it."""

    def __init__(self, fail: bool = False):
        self.sent: List[Email] = []
        self.fail = fail

    async def send_email(self, email: Email) -> EmailResult:
        if self.fail:
            return EmailResult(message_id=None, status=EmailStatus.FAILED, error="smtp down")
        self.sent.append(email)
        return EmailResult(message_id=f"msg-{len(self.sent)}", status=EmailStatus.SENT)

    def last_code(self) -> Optional[str]:
        """Passcode from the most recent email."""
        if not self.sent:
            return None
        match = CODE_PATTERN.search(self.sent[-1].body_text)
        return match.group(1) if match else None


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the developer's .env."""
    values: Dict[str, Any] = {
        "environment": "test",
        "jwt_secret_key": "test-secret-key-not-for-production-use-only",
        "database_url": "sqlite:///:memory:",
        "ai_enabled": False,
        "email_backend": "log",
        "auth_mode": AuthMode.NORMAL,
        "demo_patient_emails": [],
        "summary_cooldown_seconds": 30,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    """Default test settings."""
    return make_settings()


@pytest.fixture
def db_engine():
    """Fresh in-memory database."""
    engine = build_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Session bound to the test database."""
    factory = sessionmaker(
        bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_provider() -> CapturingEmailProvider:
    """Email provider that captures passcodes."""
    return CapturingEmailProvider()


@pytest.fixture
def email_service(email_provider) -> EmailService:
    """Email service without retry delays."""
    return EmailService(email_provider, retry_attempts=1, retry_delay=0)


@pytest.fixture
def otp_service(db_session, email_service, settings) -> OTPService:
    """OTP service on the test session."""
    return OTPService(db_session, email_service, settings)


@pytest.fixture
def access_engine(db_session, otp_service) -> AccessAuthorizationEngine:
    """Authorization engine in normal auth mode."""
    return AccessAuthorizationEngine(db_session, otp_service, AuthPolicy())


@pytest.fixture
def context() -> RequestContext:
    """Request metadata with a fixed clock."""
    return RequestContext(ip_address="10.0.0.5", user_agent="pytest", now=NOW)


@pytest.fixture
def app_factory(db_session, email_service):
    """Build an app wired to the test database with optional settings overrides."""
    from app import create_app  # pylint: disable=import-outside-toplevel

    def _build(**overrides: Any):
        application = create_app()
        test_settings = make_settings(**overrides)

        def override_get_db():
            try:
                yield db_session
                db_session.commit()
            except Exception:
                db_session.rollback()
                raise

        application.dependency_overrides[get_db] = override_get_db
        application.dependency_overrides[get_app_settings] = lambda: test_settings
        application.dependency_overrides[get_email_service] = lambda: email_service
        return application

    return _build


@pytest.fixture
def client(app_factory) -> TestClient:
    """API client in normal auth mode."""
    return TestClient(app_factory())


# Factories


@pytest.fixture
def make_patient(db_session):
    """Create patients."""

    def _make(
        name: str = "Maria Santos",
        email: Optional[str] = None,
        date_of_birth: date = date(1985, 3, 15),
        allow_emergency_access: bool = False,
    ) -> Patient:
        patient = Patient(
            name=name,
            email=email or f"patient-{uuid.uuid4().hex[:8]}@example.com",
            date_of_birth=date_of_birth,
            allow_emergency_access=allow_emergency_access,
        )
        patient.save(db_session)
        db_session.commit()
        return patient

    return _make


@pytest.fixture
def patient(make_patient) -> Patient:
    """The default patient."""
    return make_patient(email="maria.santos@example.com")


@pytest.fixture
def make_organization(db_session):
    """Create organizations."""

    def _make(slug: str = "banner-health", name: str = "Banner Health", is_active: bool = True):
        organization = Organization(slug=slug, name=name, is_active=is_active)
        organization.save(db_session)
        db_session.commit()
        return organization

    return _make


@pytest.fixture
def make_employee(db_session):
    """Create employees."""

    def _make(
        organization: Organization,
        employee_id: str = "EMP-001",
        name: str = "Dr. Sarah Chen",
        is_active: bool = True,
        is_emergency_staff: bool = False,
    ) -> Employee:
        employee = Employee(
            organization_id=organization.id,
            employee_id=employee_id,
            name=name,
            email=f"{employee_id.lower()}@{organization.slug}.example",
            department="Primary Care",
            is_active=is_active,
            is_emergency_staff=is_emergency_staff,
        )
        employee.save(db_session)
        db_session.commit()
        return employee

    return _make


@pytest.fixture
def make_provider(db_session):
    """Create provider authorizations."""

    def _make(
        patient: Patient,
        scope: List[str],
        employee: Optional[Employee] = None,
        provider_name: str = "Dr. Sarah Chen",
        provider_org: str = "Banner Health",
    ) -> PatientProvider:
        provider = PatientProvider(
            patient_id=patient.id,
            employee_id=employee.id if employee else None,
            provider_name=provider_name,
            provider_org=provider_org,
            scope=scope,
        )
        provider.save(db_session)
        db_session.commit()
        return provider

    return _make


@pytest.fixture
def make_record(db_session):
    """Create medical records."""

    def _make(
        patient: Patient,
        category: str,
        data: Dict[str, Any],
        hospital: str = "Banner Health",
    ) -> MedicalRecord:
        when = data.get("startDate") or data.get("date")
        record = MedicalRecord(
            patient_id=patient.id,
            hospital=hospital,
            category=category,
            data=data,
            record_date=date.fromisoformat(when) if when else None,
            source="test",
        )
        record.save(db_session)
        db_session.commit()
        return record

    return _make


@pytest.fixture
def patient_records(patient, make_record) -> List[MedicalRecord]:
    """One record in every category."""
    return [
        make_record(
            patient,
            "vitals",
            {"date": "2024-07-10", "bmi": 31.2, "blood_pressure": "142/91", "heart_rate": 74},
        ),
        make_record(
            patient,
            "labs",
            {"date": "2024-07-10", "total_cholesterol": 215, "a1c": 6.2},
        ),
        make_record(
            patient,
            "meds",
            {"medication": "Metformin", "dose": "500mg", "startDate": "2023-08-15"},
        ),
        make_record(
            patient,
            "encounters",
            {"date": "2024-07-10", "type": "Follow-up Visit", "notes": "Stable"},
        ),
    ]


@pytest.fixture
def make_summary(db_session):
    """Store a summary directly."""

    def _make(
        patient: Patient,
        anomalies: Optional[List[Dict[str, Any]]] = None,
        created_at: datetime = NOW,
    ) -> Summary:
        summary = Summary(
            patient_id=patient.id,
            clinician_summary="* BMI: 31.2 (Obese)",
            patient_summary="Here's a summary of your recent health data.",
            anomalies=anomalies or [],
            equity_concerns=[],
            predictions=[],
            model_used="mock-deterministic",
            used_fallback=True,
            created_at=created_at,
        )
        summary.save(db_session)
        db_session.commit()
        return summary

    return _make


@pytest.fixture
def login(client, email_provider):
    """Sign a patient in through the passcode flow; returns the client."""

    def _login(patient: Patient, test_client: Optional[TestClient] = None) -> TestClient:
        http = test_client or client
        response = http.post(
            "/auth/send-otp",
            json={
                "name": patient.name,
                "dateOfBirth": patient.date_of_birth.isoformat(),
            },
        )
        assert response.status_code == 200, response.text
        code = email_provider.last_code()
        response = http.post(
            "/auth/verify-otp", json={"patientId": str(patient.id), "code": code}
        )
        assert response.status_code == 200, response.text
        return http

    return _login


def past(minutes: int = 0, hours: int = 0) -> datetime:
    """A time before the fixed test clock."""
    return NOW - timedelta(minutes=minutes, hours=hours)
