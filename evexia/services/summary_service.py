"""Stored summaries and the regeneration cooldown."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from evexia.config import Settings, get_settings
from evexia.models import Summary
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegenerationWindow:
    """Whether a summary may be regenerated now."""

    allowed: bool
    retry_after_ms: int = 0
    last_generated_at: Optional[datetime] = None


class SummaryService:
    """Latest-summary storage with a per-patient regeneration cooldown."""

    def __init__(self, session: Session, settings: Optional[Settings] = None):
        """Initialize summary service."""
        self.session = session
        self.settings = settings or get_settings()

    def get_latest(self, patient_id: UUID) -> Optional[Summary]:
        """Most recent summary for a patient."""
        stmt = (
            select(Summary)
            .where(Summary.patient_id == patient_id)
            .order_by(Summary.created_at.desc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def check_cooldown(self, patient_id: UUID, now: datetime) -> RegenerationWindow:
        """Compare ``now`` against the latest summary's creation time."""
        latest = self.get_latest(patient_id)
        if latest is None:
            return RegenerationWindow(allowed=True)

        cooldown = timedelta(seconds=self.settings.summary_cooldown_seconds)
        elapsed = now - latest.created_at
        if elapsed >= cooldown:
            return RegenerationWindow(allowed=True, last_generated_at=latest.created_at)

        remaining_ms = int((cooldown - elapsed).total_seconds() * 1000)
        return RegenerationWindow(
            allowed=False,
            retry_after_ms=max(remaining_ms, 1),
            last_generated_at=latest.created_at,
        )

    def save(
        self, patient_id: UUID, data: Dict[str, Any], used_fallback: bool, now: datetime
    ) -> Summary:
        """Store a new summary, replacing any earlier one."""
        self.session.execute(delete(Summary).where(Summary.patient_id == patient_id))

        summary = Summary(
            patient_id=patient_id,
            clinician_summary=data["clinician_summary"],
            patient_summary=data["patient_summary"],
            anomalies=data.get("anomalies", []),
            equity_concerns=data.get("equity_concerns", []),
            predictions=data.get("predictions", []),
            model_used=data.get("model_used"),
            used_fallback=used_fallback,
            created_at=now,
        )
        summary.save(self.session)

        logger.info(
            "summary_saved",
            patient_id=str(patient_id),
            model_used=summary.model_used,
            used_fallback=used_fallback,
            anomaly_count=len(summary.anomalies),
        )
        return summary
