"""Tests for record categories and scope filtering."""

import pytest

from evexia.access.payloads import Anomaly
from evexia.access.scope import (
    FULL_SCOPE,
    SCOPE_WARNING,
    RecordCategory,
    filter_by_scope,
    has_full_access,
    parse_scope,
    scope_warning,
)
from evexia.core.exceptions import ValidationError


class TestParseScope:
    """Client-supplied scope validation."""

    def test_accepts_known_categories(self):
        assert parse_scope(["labs", "vitals"]) == ["labs", "vitals"]

    def test_collapses_duplicates_keeping_first(self):
        assert parse_scope(["meds", "labs", "meds"]) == ["meds", "labs"]

    def test_accepts_enum_members(self):
        assert parse_scope([RecordCategory.VITALS]) == ["vitals"]

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_scope(["vitals", "genome"])
        assert "genome" in exc_info.value.message

    def test_string_rejected(self):
        with pytest.raises(ValidationError):
            parse_scope("vitals")

    def test_none_is_empty(self):
        assert parse_scope(None) == []

    def test_empty_rejected_when_required(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_scope([], allow_empty=False)
        assert exc_info.value.field == "scope"


class TestFilterByScope:
    """Scope filtering over records and anomalies."""

    def test_keeps_in_scope_items_in_order(self):
        items = [
            {"category": "labs", "id": 1},
            {"category": "vitals", "id": 2},
            {"category": "labs", "id": 3},
        ]
        assert [item["id"] for item in filter_by_scope(items, ["labs"])] == [1, 3]

    def test_empty_scope_yields_nothing(self):
        assert filter_by_scope([{"category": "labs"}], []) == []

    def test_none_items_yield_empty_list(self):
        assert filter_by_scope(None, FULL_SCOPE) == []

    def test_scope_order_and_repeats_do_not_matter(self):
        items = [{"category": c} for c in FULL_SCOPE]
        assert filter_by_scope(items, ["meds", "vitals", "meds"]) == filter_by_scope(
            items, ["vitals", "meds"]
        )

    def test_filters_anomaly_models(self):
        anomalies = [
            Anomaly(type="high", category="vitals", field="bmi", value=31.2, message="m"),
            Anomaly(type="high", category="labs", field="a1c", value=6.2, message="m"),
        ]
        filtered = filter_by_scope(anomalies, ["vitals"])
        assert len(filtered) == 1
        assert filtered[0].field == "bmi"

    def test_result_is_subset_of_input(self):
        items = [{"category": "vitals"}, {"category": "unknown"}]
        assert filter_by_scope(items, FULL_SCOPE) == [{"category": "vitals"}]


class TestFullAccess:
    """Full access and the partial-scope warning."""

    def test_full_scope_any_order(self):
        assert has_full_access(["encounters", "meds", "labs", "vitals"])

    def test_partial_scope(self):
        assert not has_full_access(["vitals", "labs", "meds"])

    def test_warning_only_for_partial(self):
        assert scope_warning(FULL_SCOPE) is None
        assert scope_warning(["vitals"]) == SCOPE_WARNING
