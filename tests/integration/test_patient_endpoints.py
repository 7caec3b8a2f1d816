"""Patient API: tokens, providers, records, summaries, logs, settings, consent."""

import io
import json

import pytest

from evexia.ai import SummaryGenerator
from evexia.ai.bedrock_client import BedrockClient
from evexia.ai.prompts import MEDICAL_DISCLAIMER
from evexia.api.deps import get_summary_generator
from tests.conftest import make_settings


@pytest.fixture
def signed_in(client, patient, login):
    """Client signed in as ``patient``."""
    return login(patient)


@pytest.fixture
def base(patient):
    return f"/patient/{patient.id}"


class TestOwnership:
    """Only the signed-in owner reaches patient routes."""

    def test_anonymous_is_forbidden(self, client, base):
        response = client.get(f"{base}/tokens")
        assert response.status_code == 403
        assert response.json() == {"error": "Authentication required"}

    def test_other_patient_is_not_found(self, signed_in, make_patient):
        stranger = make_patient(name="Someone Else")
        assert signed_in.get(f"/patient/{stranger.id}/tokens").status_code == 404

    def test_malformed_patient_id_is_not_found(self, signed_in):
        assert signed_in.get("/patient/not-a-uuid/tokens").status_code == 404


class TestTokens:
    """Share token endpoints."""

    def test_create_list_revoke_delete(self, signed_in, base):
        created = signed_in.post(f"{base}/tokens", json={"scope": ["vitals", "labs"], "expiryHours": 2})
        assert created.status_code == 200
        token = created.json()
        assert token["success"] is True
        assert token["scope"] == ["vitals", "labs"]
        assert len(token["token"]) >= 43

        listed = signed_in.get(f"{base}/tokens").json()["tokens"]
        assert [t["status"] for t in listed] == ["active"]

        revoked = signed_in.patch(f"{base}/tokens", json={"tokenId": token["id"], "action": "revoke"})
        assert revoked.status_code == 200
        assert revoked.json()["token"]["status"] == "revoked"
        assert revoked.json()["token"]["revokedAt"]

        again = signed_in.patch(f"{base}/tokens", json={"tokenId": token["id"], "action": "revoke"})
        assert again.json()["token"]["revokedAt"] == revoked.json()["token"]["revokedAt"]

        deleted = signed_in.delete(f"{base}/tokens", params={"tokenId": token["id"]})
        assert deleted.json() == {"success": True}
        assert signed_in.get(f"{base}/tokens").json()["tokens"] == []

    @pytest.mark.parametrize("payload", [{}, {"scope": []}])
    def test_scope_required(self, signed_in, base, payload):
        response = signed_in.post(f"{base}/tokens", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "Scope is required and must be a non-empty array"}

    def test_unknown_category(self, signed_in, base):
        response = signed_in.post(f"{base}/tokens", json={"scope": ["xrays"]})
        assert response.status_code == 400

    def test_non_positive_expiry(self, signed_in, base):
        response = signed_in.post(f"{base}/tokens", json={"scope": ["vitals"], "expiryHours": 0})
        assert response.status_code == 400

    def test_expiry_too_large(self, signed_in, base):
        response = signed_in.post(f"{base}/tokens", json={"scope": ["vitals"], "expiryHours": 1e8})
        assert response.status_code == 400
        assert response.json() == {"error": "expiryHours is too large"}
        assert signed_in.get(f"{base}/tokens").json()["tokens"] == []

    def test_revoke_requires_action(self, signed_in, base):
        response = signed_in.patch(f"{base}/tokens", json={"tokenId": "x", "action": "pause"})
        assert response.status_code == 400
        assert response.json() == {"error": "Token ID and action=revoke required"}

    def test_delete_requires_id(self, signed_in, base):
        response = signed_in.delete(f"{base}/tokens")
        assert response.status_code == 400
        assert response.json() == {"error": "Token ID is required"}

    def test_unknown_token(self, signed_in, base):
        response = signed_in.delete(
            f"{base}/tokens", params={"tokenId": "00000000-0000-4000-8000-000000000000"}
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Token not found"}


class TestProviders:
    """Provider authorization endpoints."""

    def test_create_update_delete(self, signed_in, base, make_organization, make_employee):
        banner = make_organization()
        employee = make_employee(banner)

        created = signed_in.post(
            f"{base}/providers",
            json={
                "providerName": "Dr. Sarah Chen",
                "providerOrg": "Banner Health",
                "scope": ["vitals"],
                "organizationSlug": "banner-health",
                "employeeId": "EMP-001",
            },
        )
        assert created.status_code == 200
        provider = created.json()["provider"]
        assert provider["linkedEmployeeId"] == str(employee.id)

        updated = signed_in.patch(
            f"{base}/providers", json={"providerId": provider["id"], "scope": ["vitals", "labs"]}
        )
        assert updated.json()["provider"]["scope"] == ["vitals", "labs"]
        assert updated.json()["provider"]["providerOrg"] == "Banner Health"
        assert updated.json()["provider"]["linkedEmployeeId"] == str(employee.id)

        listed = signed_in.get(f"{base}/providers").json()["providers"]
        assert len(listed) == 1

        deleted = signed_in.delete(f"{base}/providers", params={"providerId": provider["id"]})
        assert deleted.json() == {"success": True}

    def test_duplicate_link(self, signed_in, base, make_organization, make_employee):
        make_employee(make_organization())
        payload = {
            "providerName": "Dr. Sarah Chen",
            "scope": ["vitals"],
            "organizationSlug": "banner-health",
            "employeeId": "EMP-001",
        }
        assert signed_in.post(f"{base}/providers", json=payload).status_code == 200
        assert signed_in.post(f"{base}/providers", json=payload).status_code == 422

    def test_provider_id_required(self, signed_in, base):
        response = signed_in.patch(f"{base}/providers", json={"scope": []})
        assert response.status_code == 400
        assert response.json() == {"error": "Provider ID is required"}


class TestRecords:
    """GET /records."""

    def test_all_records_with_chart(self, signed_in, base, patient_records):
        body = signed_in.get(f"{base}/records").json()

        assert body["patient"]["name"] == "Maria Santos"
        assert body["patient"]["dateOfBirth"] == "1985-03-15"
        assert {r["category"] for r in body["records"]} == {"vitals", "labs", "meds", "encounters"}
        assert body["chartData"]["bmi"][0]["value"] == 31.2

    def test_filtered_by_categories(self, signed_in, base, patient_records):
        body = signed_in.get(f"{base}/records", params={"categories": "labs,meds"}).json()
        assert {r["category"] for r in body["records"]} == {"labs", "meds"}
        assert body["chartData"]["bmi"] == []

    def test_meds_keep_start_date_key(self, signed_in, base, patient_records):
        body = signed_in.get(f"{base}/records", params={"categories": "meds"}).json()
        assert body["records"][0]["data"]["startDate"] == "2023-08-15"

    def test_unknown_category(self, signed_in, base):
        response = signed_in.get(f"{base}/records", params={"categories": "genome"})
        assert response.status_code == 400

    def test_mistyped_value_does_not_hide_record(self, signed_in, base, patient, make_record):
        make_record(patient, "vitals", {"date": "2024-07-10", "heart_rate": "72 bpm", "bmi": 24})
        make_record(patient, "vitals", {"date": "2024-08-01", "heart_rate": 70})

        response = signed_in.get(f"{base}/records")

        assert response.status_code == 200
        body = response.json()
        assert sorted(r["data"].get("heart_rate") is None for r in body["records"]) == [False, True]
        assert [p["value"] for p in body["chartData"]["bmi"]] == [24]
        assert [p["value"] for p in body["chartData"]["heartRate"]] == [70]

        summary = signed_in.post(f"{base}/summary")
        assert summary.status_code == 200


@pytest.mark.ai
class TestSummary:
    """Summary generation and the cooldown."""

    def test_no_summary_yet(self, signed_in, base):
        response = signed_in.get(f"{base}/summary")
        assert response.status_code == 404
        assert response.json() == {"error": "No summary generated yet"}

    def test_generate_then_fetch(self, signed_in, base, patient_records):
        generated = signed_in.post(f"{base}/summary")
        assert generated.status_code == 200
        body = generated.json()
        assert body["usedFallback"] is True
        assert body["fallbackReason"] == "ai_disabled"
        assert body["modelUsed"] == "mock-deterministic"
        assert body["disclaimer"] == MEDICAL_DISCLAIMER
        assert {a["field"] for a in body["anomalies"]} >= {"bmi", "blood_pressure", "a1c"}

        fetched = signed_in.get(f"{base}/summary").json()
        assert fetched["clinicianSummary"] == body["clinicianSummary"]
        assert fetched["equityConcerns"] == body["equityConcerns"]

    def test_malformed_model_body_falls_back(self, signed_in, base, patient_records):
        class MalformedRuntime:
            def invoke_model(self, **kwargs):
                return {"body": io.BytesIO(json.dumps({"content": "x"}).encode("utf-8"))}

        ai_settings = make_settings(ai_enabled=True, ai_model_id="anthropic.claude-3-haiku-20240307-v1:0")
        generator = SummaryGenerator(
            ai_settings, client=BedrockClient(ai_settings, client=MalformedRuntime())
        )
        signed_in.app.dependency_overrides[get_summary_generator] = lambda: generator

        response = signed_in.post(f"{base}/summary")

        assert response.status_code == 200
        assert response.json()["usedFallback"] is True
        assert response.json()["fallbackReason"] == "generation_failed"

    def test_cooldown(self, signed_in, base, patient_records):
        assert signed_in.post(f"{base}/summary").status_code == 200

        response = signed_in.post(f"{base}/summary")

        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Summary was generated recently. Please wait before regenerating."
        assert 0 < body["retryAfterMs"] <= 30000
        assert 1 <= int(response.headers["Retry-After"]) <= 30

    def test_no_records(self, signed_in, base):
        response = signed_in.post(f"{base}/summary")
        assert response.status_code == 422
        assert response.json() == {"error": "No records found. Cannot generate summary."}


class TestSettingsAndLogs:
    """Emergency opt-in and the access log."""

    def test_toggle_emergency_access(self, signed_in, base):
        assert signed_in.get(f"{base}/settings").json()["allowEmergencyAccess"] is False

        response = signed_in.patch(f"{base}/settings", json={"allowEmergencyAccess": True})
        assert response.json() == {"success": True, "allowEmergencyAccess": True}
        assert signed_in.get(f"{base}/settings").json()["allowEmergencyAccess"] is True

    @pytest.mark.parametrize("value", ["yes", 1, None])
    def test_non_boolean_rejected(self, signed_in, base, value):
        response = signed_in.patch(f"{base}/settings", json={"allowEmergencyAccess": value})
        assert response.status_code == 400
        assert response.json() == {"error": "allowEmergencyAccess must be a boolean"}

    def test_empty_access_log(self, signed_in, base):
        assert signed_in.get(f"{base}/access-logs").json() == {"success": True, "logs": []}


class TestConsentExplainer:
    """POST /consent-explainer."""

    def test_explains_selection(self, signed_in, base):
        response = signed_in.post(
            f"{base}/consent-explainer",
            json={"recordTypes": ["vitals", "medications"], "purpose": "New primary care"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "Current prescriptions and dosages" in body["sharedData"]
        assert body["recommendation"].startswith("Sharing medications")

    def test_requires_record_types(self, signed_in, base):
        response = signed_in.post(f"{base}/consent-explainer", json={"recordTypes": []})
        assert response.status_code == 400
        assert response.json() == {"error": "At least one record type is required"}

    def test_invalid_record_types(self, signed_in, base):
        response = signed_in.post(
            f"{base}/consent-explainer", json={"recordTypes": ["vitals", "dna"]}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid record types: dna"}
