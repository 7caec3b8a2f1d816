"""Medical record retrieval."""

from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from evexia.access.payloads import decode_record_payload, encode_record_payload
from evexia.access.scope import FULL_SCOPE
from evexia.models import MedicalRecord
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class RecordService:
    """Reads a patient's records, narrowed to a set of categories."""

    def __init__(self, session: Session):
        """Initialize record service."""
        self.session = session

    def list_for_patient(
        self, patient_id: UUID, categories: Optional[Sequence[str]] = None
    ) -> List[MedicalRecord]:
        """Records newest first; ``categories=None`` means every category.

        An empty category list yields no records.
        """
        wanted = FULL_SCOPE if categories is None else list(categories)
        if not wanted:
            return []
        stmt = (
            select(MedicalRecord)
            .where(
                MedicalRecord.patient_id == patient_id,
                MedicalRecord.category.in_(wanted),
            )
            .order_by(MedicalRecord.record_date.desc(), MedicalRecord.created_at.desc())
        )
        return list(self.session.scalars(stmt))

    @staticmethod
    def typed_payload(record: MedicalRecord) -> Dict[str, Any]:
        """Record data decoded through its category payload."""
        return encode_record_payload(decode_record_payload(record.category, record.data))
