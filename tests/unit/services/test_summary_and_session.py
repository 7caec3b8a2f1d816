"""Tests for summary storage, the regeneration cooldown and sessions."""

from datetime import timedelta

import pytest

from evexia.services import SessionService, SummaryService
from tests.conftest import NOW, make_settings

SUMMARY_DATA = {
    "clinician_summary": "* BMI: 31.2 (Obese)",
    "patient_summary": "Your BMI is 31.2.",
    "anomalies": [
        {"type": "high", "category": "vitals", "field": "bmi", "value": 31.2, "message": "m"}
    ],
    "equity_concerns": [],
    "predictions": [],
    "model_used": "mock-deterministic",
}


@pytest.fixture
def summaries(db_session, settings):
    return SummaryService(db_session, settings)


class TestCooldown:
    """Regeneration window."""

    def test_allowed_without_summary(self, summaries, patient):
        window = summaries.check_cooldown(patient.id, NOW)
        assert window.allowed
        assert window.retry_after_ms == 0

    def test_blocked_inside_window(self, summaries, patient):
        summaries.save(patient.id, SUMMARY_DATA, used_fallback=True, now=NOW)

        window = summaries.check_cooldown(patient.id, NOW + timedelta(seconds=10))
        assert not window.allowed
        assert window.retry_after_ms == 20000
        assert window.last_generated_at == NOW

    def test_allowed_at_boundary(self, summaries, patient):
        summaries.save(patient.id, SUMMARY_DATA, used_fallback=True, now=NOW)
        assert summaries.check_cooldown(patient.id, NOW + timedelta(seconds=30)).allowed

    def test_retry_after_never_zero_while_blocked(self, summaries, patient):
        summaries.save(patient.id, SUMMARY_DATA, used_fallback=True, now=NOW)
        window = summaries.check_cooldown(
            patient.id, NOW + timedelta(seconds=29, microseconds=999999)
        )
        assert not window.allowed
        assert window.retry_after_ms >= 1

    def test_configurable_window(self, db_session, patient):
        service = SummaryService(db_session, make_settings(summary_cooldown_seconds=5))
        service.save(patient.id, SUMMARY_DATA, used_fallback=True, now=NOW)
        assert service.check_cooldown(patient.id, NOW + timedelta(seconds=5)).allowed

    def test_cooldown_is_per_patient(self, summaries, patient, make_patient):
        other = make_patient(name="Someone Else")
        summaries.save(patient.id, SUMMARY_DATA, used_fallback=True, now=NOW)
        assert summaries.check_cooldown(other.id, NOW).allowed


class TestStorage:
    """Latest summary replaces earlier ones."""

    def test_save_replaces_previous(self, summaries, patient):
        summaries.save(patient.id, SUMMARY_DATA, used_fallback=True, now=NOW)
        newer = dict(SUMMARY_DATA, clinician_summary="newer")
        summaries.save(patient.id, newer, used_fallback=False, now=NOW + timedelta(minutes=1))

        latest = summaries.get_latest(patient.id)
        assert latest.clinician_summary == "newer"
        assert latest.used_fallback is False
        assert latest.created_at == NOW + timedelta(minutes=1)

    def test_anomalies_round_trip_as_json(self, summaries, patient, db_session):
        summaries.save(patient.id, SUMMARY_DATA, used_fallback=True, now=NOW)
        db_session.expire_all()
        assert summaries.get_latest(patient.id).anomalies[0]["field"] == "bmi"


class TestSessionService:
    """Signed session cookies."""

    def test_round_trip(self, settings):
        sessions = SessionService(settings)
        token = sessions.create_session_token("subject-1")
        assert sessions.decode_session_token(token) == "subject-1"

    def test_expired_session(self, settings):
        sessions = SessionService(settings)
        token = sessions.create_session_token("subject-1", now=NOW - timedelta(days=30))
        assert sessions.decode_session_token(token) is None

    def test_foreign_signature_rejected(self, settings):
        other = SessionService(make_settings(jwt_secret_key="another-secret-key-for-tests"))
        token = other.create_session_token("subject-1")
        assert SessionService(settings).decode_session_token(token) is None

    @pytest.mark.parametrize("value", [None, "", "not.a.jwt"])
    def test_garbage(self, settings, value):
        assert SessionService(settings).decode_session_token(value) is None

    def test_cookie_lifetime(self, settings):
        assert SessionService(settings).max_age_seconds == 24 * 3600
