"""Chart series extracted from vitals and lab records."""

import re
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from evexia.access.payloads import LabsPayload, VitalsPayload, decode_record_payload
from evexia.access.scope import RecordCategory

BLOOD_PRESSURE_PATTERN = re.compile(r"(\d+)\s*/\s*(\d+)")

ChartPoint = Dict[str, Any]


def parse_blood_pressure(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Split ``"120/80"`` into systolic and diastolic."""
    if not value:
        return None
    match = BLOOD_PRESSURE_PATTERN.search(value)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def _point(
    when: str, hospital: str, value: Any, label: str, unit: str
) -> ChartPoint:
    return {
        "date": when,
        "hospital": hospital,
        "value": value,
        "label": label,
        "unit": unit,
    }


def _record_date(payload_date: Optional[str], record_date: Optional[date]) -> str:
    if payload_date:
        return payload_date
    return record_date.isoformat() if record_date else ""


def _sort_key(point: ChartPoint) -> str:
    # ISO dates sort lexically; undated points go first
    return point["date"] or ""


def extract_chart_data(records: Iterable[Any]) -> Dict[str, Any]:
    """Build date-sorted BMI, blood pressure, heart rate, cholesterol and A1C series."""
    bmi: List[ChartPoint] = []
    systolic: List[ChartPoint] = []
    diastolic: List[ChartPoint] = []
    heart_rate: List[ChartPoint] = []
    cholesterol: List[ChartPoint] = []
    a1c: List[ChartPoint] = []

    for record in records:
        if record.category == RecordCategory.VITALS.value:
            vitals = decode_record_payload(record.category, record.data)
            assert isinstance(vitals, VitalsPayload)
            when = _record_date(vitals.date, record.record_date)
            if vitals.bmi is not None:
                bmi.append(_point(when, record.hospital, vitals.bmi, "BMI", "kg/m2"))
            pressure = parse_blood_pressure(vitals.blood_pressure)
            if pressure:
                systolic.append(
                    _point(when, record.hospital, pressure[0], "Systolic", "mmHg")
                )
                diastolic.append(
                    _point(when, record.hospital, pressure[1], "Diastolic", "mmHg")
                )
            if vitals.heart_rate is not None:
                heart_rate.append(
                    _point(when, record.hospital, vitals.heart_rate, "Heart Rate", "bpm")
                )
        elif record.category == RecordCategory.LABS.value:
            labs = decode_record_payload(record.category, record.data)
            assert isinstance(labs, LabsPayload)
            when = _record_date(labs.date, record.record_date)
            if labs.total_cholesterol is not None:
                cholesterol.append(
                    _point(
                        when,
                        record.hospital,
                        labs.total_cholesterol,
                        "Total Cholesterol",
                        "mg/dL",
                    )
                )
            if labs.a1c_value is not None:
                a1c.append(_point(when, record.hospital, labs.a1c_value, "A1C", "%"))

    for series in (bmi, systolic, diastolic, heart_rate, cholesterol, a1c):
        series.sort(key=_sort_key)

    return {
        "bmi": bmi,
        "bloodPressure": {"systolic": systolic, "diastolic": diastolic},
        "heartRate": heart_rate,
        "cholesterol": cholesterol,
        "a1c": a1c,
    }
