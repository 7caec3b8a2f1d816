"""Append-only audit trail of granted provider access."""

from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from evexia.models import AccessLog, AccessMethod, ShareToken
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class AccessLogService:
    """Writes and lists access log entries.

    Entries are never updated or deleted by the application.
    """

    def __init__(self, session: Session):
        """Initialize access log service."""
        self.session = session

    def log_access(
        self,
        patient_id: UUID,
        access_method: AccessMethod,
        scope: Sequence[str],
        provider_name: Optional[str] = None,
        provider_org: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        token_id: Optional[UUID] = None,
        is_emergency_access: bool = False,
    ) -> AccessLog:
        """Insert an entry and flush it so a failed write fails the request."""
        entry = AccessLog(
            token_id=token_id,
            patient_id=patient_id,
            provider_name=provider_name,
            provider_org=provider_org,
            ip_address=ip_address,
            user_agent=user_agent,
            access_method=AccessMethod(access_method).value,
            scope=list(scope),
            is_emergency_access=is_emergency_access,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "access_logged",
            access_log_id=str(entry.id),
            patient_id=str(patient_id),
            access_method=entry.access_method,
            is_emergency_access=is_emergency_access,
        )
        return entry

    def list_for_patient(self, patient_id: UUID) -> List[Tuple[AccessLog, Optional[str]]]:
        """Entries newest first, each paired with its token value if any."""
        stmt = (
            select(AccessLog, ShareToken.token)
            .outerjoin(ShareToken, AccessLog.token_id == ShareToken.id)
            .where(AccessLog.patient_id == patient_id)
            .order_by(AccessLog.accessed_at.desc())
        )
        return [(entry, token) for entry, token in self.session.execute(stmt)]
