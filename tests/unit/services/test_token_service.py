"""Tests for share token lifecycle."""

from datetime import timedelta

import pytest

from evexia.core.exceptions import NotFoundError, ValidationError
from evexia.services import TokenService
from evexia.services.token_service import generate_token_value
from tests.conftest import NOW, make_settings


@pytest.fixture
def tokens(db_session, settings):
    return TokenService(db_session, settings)


class TestCreate:
    """Issuing tokens."""

    def test_default_ttl_is_24_hours(self, tokens, patient):
        token = tokens.create(patient.id, ["vitals"], now=NOW)
        assert token.expires_at == NOW + timedelta(hours=24)
        assert token.revoked_at is None
        assert token.status(NOW) == "active"

    def test_custom_ttl(self, tokens, patient):
        token = tokens.create(patient.id, ["labs"], ttl_hours=2, now=NOW)
        assert token.expires_at == NOW + timedelta(hours=2)

    def test_scope_deduplicated(self, tokens, patient):
        token = tokens.create(patient.id, ["labs", "labs", "meds"], now=NOW)
        assert token.scope == ["labs", "meds"]

    def test_empty_scope_rejected(self, tokens, patient):
        with pytest.raises(ValidationError):
            tokens.create(patient.id, [], now=NOW)

    def test_unknown_category_rejected(self, tokens, patient):
        with pytest.raises(ValidationError):
            tokens.create(patient.id, ["xrays"], now=NOW)

    @pytest.mark.parametrize("ttl", [0, -1, "12", True, float("nan"), float("inf")])
    def test_bad_ttl_rejected(self, tokens, patient, ttl):
        with pytest.raises(ValidationError) as exc_info:
            tokens.create(patient.id, ["vitals"], ttl_hours=ttl, now=NOW)
        assert exc_info.value.field == "expiryHours"

    @pytest.mark.parametrize("ttl", [1e8, 1e20])
    def test_ttl_past_calendar_range_rejected(self, tokens, patient, ttl):
        with pytest.raises(ValidationError, match="expiryHours is too large"):
            tokens.create(patient.id, ["vitals"], ttl_hours=ttl, now=NOW)
        assert tokens.list_by_patient(patient.id) == []

    def test_ttl_ceiling(self, db_session, patient):
        capped = TokenService(db_session, make_settings(share_token_max_ttl_hours=48))
        with pytest.raises(ValidationError):
            capped.create(patient.id, ["vitals"], ttl_hours=72, now=NOW)
        assert capped.create(patient.id, ["vitals"], ttl_hours=48, now=NOW)

    def test_token_values_are_unique_and_long(self):
        values = {generate_token_value() for _ in range(50)}
        assert len(values) == 50
        assert all(len(value) >= 43 for value in values)


class TestRevokeAndDelete:
    """Revocation and deletion with ownership checks."""

    def test_revoke_is_idempotent(self, tokens, patient):
        token = tokens.create(patient.id, ["vitals"], now=NOW)
        first = tokens.revoke(patient.id, token.id, now=NOW + timedelta(minutes=1))
        second = tokens.revoke(patient.id, token.id, now=NOW + timedelta(minutes=5))

        assert first.revoked_at == NOW + timedelta(minutes=1)
        assert second.revoked_at == NOW + timedelta(minutes=1)
        assert second.status(NOW + timedelta(minutes=5)) == "revoked"

    def test_revoked_token_no_longer_resolves(self, tokens, patient):
        token = tokens.create(patient.id, ["vitals"], now=NOW)
        assert tokens.resolve_valid(token.token, NOW) is not None

        tokens.revoke(patient.id, token.id, now=NOW)
        assert tokens.resolve_valid(token.token, NOW) is None

    def test_revoking_one_token_leaves_others_valid(self, tokens, patient):
        first = tokens.create(patient.id, ["vitals"], now=NOW)
        second = tokens.create(patient.id, ["vitals", "labs"], now=NOW)

        tokens.revoke(patient.id, first.id, now=NOW)

        assert tokens.resolve_valid(first.token, NOW) is None
        resolved = tokens.resolve_valid(second.token, NOW)
        assert resolved is not None
        assert resolved.id == second.id
        assert second.status(NOW) == "active"

    def test_other_patients_token_is_not_found(self, tokens, patient, make_patient):
        stranger = make_patient(name="Someone Else")
        token = tokens.create(stranger.id, ["vitals"], now=NOW)

        with pytest.raises(NotFoundError):
            tokens.revoke(patient.id, token.id, now=NOW)
        with pytest.raises(NotFoundError):
            tokens.delete(patient.id, token.id)

    def test_malformed_id_is_not_found(self, tokens, patient):
        with pytest.raises(NotFoundError):
            tokens.revoke(patient.id, "definitely-not-a-uuid")

    def test_delete(self, tokens, patient):
        token = tokens.create(patient.id, ["vitals"], now=NOW)
        tokens.delete(patient.id, token.id)
        assert tokens.list_by_patient(patient.id) == []


class TestResolve:
    """Expiry boundaries."""

    def test_expires_exactly_at_expiry(self, tokens, patient):
        token = tokens.create(patient.id, ["vitals"], ttl_hours=1, now=NOW)
        assert tokens.resolve_valid(token.token, token.expires_at - timedelta(microseconds=1))
        assert tokens.resolve_valid(token.token, token.expires_at) is None
        assert token.status(token.expires_at) == "expired"

    def test_empty_value(self, tokens):
        assert tokens.resolve_valid("", NOW) is None

    def test_list_oldest_first(self, tokens, patient, db_session):
        first = tokens.create(patient.id, ["vitals"], now=NOW)
        first.created_at = NOW - timedelta(hours=1)
        second = tokens.create(patient.id, ["labs"], now=NOW)
        second.created_at = NOW
        db_session.flush()

        assert [t.id for t in tokens.list_by_patient(patient.id)] == [first.id, second.id]
