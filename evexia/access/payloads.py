"""Typed record payloads and anomalies.

Stored record ``data`` is JSON; it is decoded into the payload model for the
record's category when it leaves the database. Unknown keys are kept so
imported data is never silently dropped.
"""

from typing import Any, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from evexia.access.scope import RecordCategory
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class RecordPayload(BaseModel):
    """Common configuration for record payloads."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    date: Optional[str] = None


class VitalsPayload(RecordPayload):
    """Vital signs reading."""

    blood_pressure: Optional[str] = None
    heart_rate: Optional[float] = None
    bmi: Optional[float] = None
    weight: Optional[float] = None
    height: Optional[float] = None


class LabsPayload(RecordPayload):
    """Laboratory results."""

    total_cholesterol: Optional[float] = None
    a1c: Optional[float] = None
    hemoglobin_a1c: Optional[float] = None
    ldl: Optional[float] = None
    hdl: Optional[float] = None
    triglycerides: Optional[float] = None

    @property
    def a1c_value(self) -> Optional[float]:
        """A1C under either of its source spellings."""
        return self.a1c if self.a1c is not None else self.hemoglobin_a1c


class MedsPayload(RecordPayload):
    """Medication entry."""

    medication: Optional[str] = None
    dose: Optional[str] = None
    frequency: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    indication: Optional[str] = None


class EncountersPayload(RecordPayload):
    """Clinical encounter."""

    type: Optional[str] = None
    provider: Optional[str] = None
    notes: Optional[str] = None


AnyPayload = Union[VitalsPayload, LabsPayload, MedsPayload, EncountersPayload]

PAYLOAD_TYPES: Dict[str, Type[RecordPayload]] = {
    RecordCategory.VITALS.value: VitalsPayload,
    RecordCategory.LABS.value: LabsPayload,
    RecordCategory.MEDS.value: MedsPayload,
    RecordCategory.ENCOUNTERS.value: EncountersPayload,
}


def decode_record_payload(category: str, data: Optional[Dict[str, Any]]) -> RecordPayload:
    """Decode stored JSON into the payload model for ``category``.

    Fields whose stored value does not fit the payload type (for example a
    ``heart_rate`` of ``"72 bpm"``) are dropped and logged so a single bad
    value never hides the rest of the record.
    """
    payload_type = PAYLOAD_TYPES.get(category)
    if payload_type is None:
        raise ValueError(f"Unknown record category: {category}")
    raw = data if isinstance(data, dict) else {}
    try:
        return payload_type.model_validate(raw)
    except ValidationError as e:
        invalid = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        logger.warning("record_payload_invalid", category=category, fields=invalid)
        return payload_type.model_validate(
            {key: value for key, value in raw.items() if key not in invalid}
        )


def encode_record_payload(payload: RecordPayload) -> Dict[str, Any]:
    """Dump a payload for storage, keeping source field names."""
    return payload.model_dump(mode="json", by_alias=True, exclude_none=True)


class Anomaly(BaseModel):
    """A flagged value attached to a summary, filterable by category."""

    model_config = ConfigDict(use_enum_values=True)

    type: Literal["high", "low", "duplicate", "missing"]
    category: RecordCategory
    field: str
    value: Union[float, int, str]
    message: str


def parse_anomaly(raw: Any) -> Optional[Anomaly]:
    """Validate one anomaly, returning None and logging when malformed."""
    try:
        return Anomaly.model_validate(raw)
    except ValidationError as e:
        logger.warning("anomaly_discarded", error_count=e.error_count())
        return None
