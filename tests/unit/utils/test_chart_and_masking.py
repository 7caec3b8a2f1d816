"""Tests for chart extraction and contact masking."""

from datetime import date
from types import SimpleNamespace

import pytest

from evexia.utils.masking import mask_email
from evexia.utils.medical import extract_chart_data, parse_blood_pressure


def record(category, data, hospital="Banner Health", record_date=None):
    return SimpleNamespace(
        category=category, data=data, hospital=hospital, record_date=record_date
    )


class TestChartData:
    """Series extraction."""

    def test_series_sorted_by_date(self):
        records = [
            record("vitals", {"date": "2024-10-05", "bmi": 25.5, "blood_pressure": "120/76", "heart_rate": 66}),
            record("vitals", {"date": "2024-02-28", "bmi": 26.3, "blood_pressure": "126/81"}, "Mayo Clinic"),
            record("labs", {"date": "2024-05-20", "total_cholesterol": 208, "a1c": 6.0}),
        ]

        chart = extract_chart_data(records)

        assert [p["date"] for p in chart["bmi"]] == ["2024-02-28", "2024-10-05"]
        assert chart["bmi"][0] == {
            "date": "2024-02-28",
            "hospital": "Mayo Clinic",
            "value": 26.3,
            "label": "BMI",
            "unit": "kg/m2",
        }
        assert [p["value"] for p in chart["bloodPressure"]["systolic"]] == [126, 120]
        assert [p["value"] for p in chart["bloodPressure"]["diastolic"]] == [81, 76]
        assert [p["value"] for p in chart["heartRate"]] == [66]
        assert chart["cholesterol"][0]["unit"] == "mg/dL"
        assert chart["a1c"][0]["value"] == 6.0

    def test_ignores_other_categories(self):
        chart = extract_chart_data([record("meds", {"medication": "Metformin"})])
        assert chart == {
            "bmi": [],
            "bloodPressure": {"systolic": [], "diastolic": []},
            "heartRate": [],
            "cholesterol": [],
            "a1c": [],
        }

    def test_falls_back_to_record_date(self):
        chart = extract_chart_data(
            [record("vitals", {"bmi": 24}, record_date=date(2024, 1, 2))]
        )
        assert chart["bmi"][0]["date"] == "2024-01-02"

    def test_unparseable_blood_pressure_skipped(self):
        chart = extract_chart_data([record("vitals", {"date": "2024-01-01", "blood_pressure": "high"})])
        assert chart["bloodPressure"]["systolic"] == []

    @pytest.mark.parametrize(
        "value, expected",
        [("120/80", (120, 80)), ("128 / 82", (128, 82)), ("", None), (None, None), ("n/a", None)],
    )
    def test_parse_blood_pressure(self, value, expected):
        assert parse_blood_pressure(value) == expected


class TestMaskEmail:
    """Email masking."""

    @pytest.mark.parametrize(
        "email, masked",
        [
            ("maria.santos@example.com", "m***s@e***.com"),
            ("demo@evexia.health", "d***o@e***.health"),
            ("a@b.org", "a***@b***.org"),
            ("not-an-email", "***@***.***"),
        ],
    )
    def test_mask(self, email, masked):
        assert mask_email(email) == masked
