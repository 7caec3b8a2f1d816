"""Patient sign-in over HTTP: passcode, cookie session, dev bypass."""

import pytest
from fastapi.testclient import TestClient

from evexia.config import AuthMode


class TestSendOTP:
    """POST /auth/send-otp."""

    def test_sends_code_to_matching_patient(self, client, patient, email_provider):
        response = client.post(
            "/auth/send-otp", json={"name": "  maria SANTOS ", "dateOfBirth": "1985-03-15"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body == {
            "success": True,
            "maskedEmail": "m***s@e***.com",
            "patientId": str(patient.id),
        }
        assert email_provider.sent[-1].to == ["maria.santos@example.com"]

    def test_missing_fields(self, client):
        response = client.post("/auth/send-otp", json={"name": "Maria Santos"})
        assert response.status_code == 400
        assert response.json() == {"error": "Name and date of birth are required"}

    def test_bad_date(self, client):
        response = client.post(
            "/auth/send-otp", json={"name": "Maria Santos", "dateOfBirth": "03/15/1985"}
        )
        assert response.status_code == 400

    def test_no_match(self, client, patient):
        response = client.post(
            "/auth/send-otp", json={"name": "Maria Santos", "dateOfBirth": "1990-01-01"}
        )
        assert response.status_code == 404

    def test_delivery_failure(self, client, patient, email_provider):
        email_provider.fail = True
        response = client.post(
            "/auth/send-otp", json={"name": "Maria Santos", "dateOfBirth": "1985-03-15"}
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to send verification code"}

    def test_rate_limited(self, client, patient):
        payload = {"name": "Maria Santos", "dateOfBirth": "1985-03-15"}
        for _ in range(5):
            assert client.post("/auth/send-otp", json=payload).status_code == 200
        response = client.post("/auth/send-otp", json=payload)
        assert response.status_code == 429


class TestVerifyOTP:
    """POST /auth/verify-otp and the session it creates."""

    def test_login_sets_session_cookie(self, client, patient, login):
        login(patient)

        assert client.cookies.get("evexia_session")
        session = client.get("/auth/session").json()
        assert session["authenticated"] is True
        assert session["patient"] == {
            "id": str(patient.id),
            "name": "Maria Santos",
            "email": "maria.santos@example.com",
        }
        assert session["bypass"] is False

    def test_wrong_code(self, client, patient):
        client.post("/auth/send-otp", json={"name": "Maria Santos", "dateOfBirth": "1985-03-15"})
        response = client.post(
            "/auth/verify-otp", json={"patientId": str(patient.id), "code": "not-it"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or expired verification code"}
        assert not client.cookies.get("evexia_session")

    def test_missing_fields(self, client):
        response = client.post("/auth/verify-otp", json={"code": "123456"})
        assert response.status_code == 400
        assert response.json() == {"error": "Patient ID and verification code are required"}

    def test_unknown_patient(self, client):
        response = client.post(
            "/auth/verify-otp",
            json={"patientId": "00000000-0000-4000-8000-000000000000", "code": "123456"},
        )
        assert response.status_code == 404

    def test_sign_out(self, client, patient, login):
        login(patient)
        assert client.delete("/auth/session").json() == {"success": True}
        assert client.get("/auth/session").json()["authenticated"] is False

    def test_anonymous_session(self, client):
        assert client.get("/auth/session").json() == {
            "authenticated": False,
            "patient": None,
            "bypass": False,
        }


class TestDevBypass:
    """Demo patient sign-in under dev bypass."""

    @pytest.fixture
    def demo_patient(self, make_patient):
        return make_patient(name="Demo Patient", email="demo@evexia.health")

    @pytest.fixture
    def bypass_client(self, app_factory, demo_patient):
        application = app_factory(
            auth_mode=AuthMode.DEV_BYPASS,
            demo_patient_emails=["demo@evexia.health"],
            demo_code="12345678",
            demo_patient_id=str(demo_patient.id),
        )
        return TestClient(application)

    def test_session_falls_back_to_demo_patient(self, bypass_client, demo_patient):
        session = bypass_client.get("/auth/session").json()
        assert session["authenticated"] is True
        assert session["bypass"] is True
        assert session["patient"]["id"] == str(demo_patient.id)

    def test_demo_code_signs_in_despite_send_failure(self, bypass_client, demo_patient, email_provider):
        email_provider.fail = True
        sent = bypass_client.post(
            "/auth/send-otp", json={"name": "Demo Patient", "dateOfBirth": "1985-03-15"}
        )
        assert sent.status_code == 200

        verified = bypass_client.post(
            "/auth/verify-otp", json={"patientId": str(demo_patient.id), "code": "12345678"}
        )
        assert verified.status_code == 200
        assert bypass_client.cookies.get("evexia_session")

    def test_demo_code_refused_for_regular_patient(self, bypass_client, patient):
        response = bypass_client.post(
            "/auth/verify-otp", json={"patientId": str(patient.id), "code": "12345678"}
        )
        assert response.status_code == 400

    def test_patient_routes_use_demo_patient_without_cookie(self, bypass_client, demo_patient):
        response = bypass_client.get(f"/patient/{demo_patient.id}/settings")
        assert response.status_code == 200

    def test_demo_code_refused_in_normal_mode(self, client, demo_patient):
        response = client.post(
            "/auth/verify-otp", json={"patientId": str(demo_patient.id), "code": "12345678"}
        )
        assert response.status_code == 400
