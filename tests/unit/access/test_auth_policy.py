"""Tests for the dev-bypass auth policy."""

from evexia.access.auth_mode import AuthPolicy
from evexia.config import AuthMode
from tests.conftest import make_settings


def bypass_policy(**kwargs):
    values = {
        "mode": AuthMode.DEV_BYPASS,
        "demo_emails": frozenset({"demo@evexia.health"}),
        "demo_code": "12345678",
        "demo_patient_id": "3f1c1d5e-0000-4000-8000-000000000001",
    }
    values.update(kwargs)
    return AuthPolicy(**values)


class TestAuthPolicy:
    """Every bypass path is closed outside dev bypass."""

    def test_normal_mode_closes_everything(self):
        policy = bypass_policy(mode=AuthMode.NORMAL)
        assert not policy.bypass_enabled
        assert not policy.is_demo_patient("demo@evexia.health")
        assert not policy.accepts_demo_code("demo@evexia.health", "12345678")
        assert not policy.tolerates_send_failure("demo@evexia.health")
        assert policy.session_fallback_patient_id() is None

    def test_demo_code_for_demo_patient(self):
        policy = bypass_policy()
        assert policy.accepts_demo_code("Demo@Evexia.health", "12345678")

    def test_demo_code_rejected_for_other_patients(self):
        policy = bypass_policy()
        assert not policy.accepts_demo_code("maria.santos@example.com", "12345678")

    def test_wrong_code_rejected(self):
        assert not bypass_policy().accepts_demo_code("demo@evexia.health", "00000000")

    def test_missing_demo_code_never_matches(self):
        policy = bypass_policy(demo_code=None)
        assert not policy.accepts_demo_code("demo@evexia.health", "12345678")

    def test_session_fallback(self):
        assert (
            bypass_policy().session_fallback_patient_id()
            == "3f1c1d5e-0000-4000-8000-000000000001"
        )

    def test_from_settings(self):
        settings = make_settings(
            auth_mode=AuthMode.DEV_BYPASS,
            demo_patient_emails=[" Demo@Evexia.health "],
            demo_code="11112222",
        )
        policy = AuthPolicy.from_settings(settings)
        assert policy.bypass_enabled
        assert policy.demo_emails == frozenset({"demo@evexia.health"})
        assert policy.accepts_demo_code("demo@evexia.health", "11112222")
