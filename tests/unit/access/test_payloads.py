"""Tests for decoding stored record payloads."""

import pytest

from evexia.access.payloads import (
    LabsPayload,
    MedsPayload,
    VitalsPayload,
    decode_record_payload,
    encode_record_payload,
)


class TestDecodeRecordPayload:
    """Stored JSON to typed payloads."""

    def test_vitals(self):
        vitals = decode_record_payload("vitals", {"date": "2024-07-10", "bmi": 31.2, "heart_rate": 74})
        assert isinstance(vitals, VitalsPayload)
        assert vitals.bmi == 31.2
        assert vitals.heart_rate == 74

    def test_numeric_strings_are_coerced(self):
        labs = decode_record_payload("labs", {"a1c": "6.2"})
        assert isinstance(labs, LabsPayload)
        assert labs.a1c_value == 6.2

    def test_unknown_keys_are_kept(self):
        labs = decode_record_payload("labs", {"ferritin": 40})
        assert encode_record_payload(labs) == {"ferritin": 40}

    def test_mistyped_field_is_dropped(self):
        vitals = decode_record_payload(
            "vitals", {"date": "2024-07-10", "heart_rate": "72 bpm", "bmi": 24}
        )
        assert vitals.heart_rate is None
        assert vitals.bmi == 24
        assert encode_record_payload(vitals) == {"date": "2024-07-10", "bmi": 24.0}

    def test_mistyped_aliased_field_is_dropped(self):
        meds = decode_record_payload("meds", {"medication": "Metformin", "startDate": 20230815})
        assert isinstance(meds, MedsPayload)
        assert meds.start_date is None
        assert meds.medication == "Metformin"

    @pytest.mark.parametrize("data", [None, [], "not-an-object"])
    def test_non_object_data_decodes_empty(self, data):
        assert encode_record_payload(decode_record_payload("encounters", data)) == {}

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            decode_record_payload("genome", {})
