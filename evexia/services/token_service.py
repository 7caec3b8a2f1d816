"""Share token lifecycle."""

import math
import secrets
from datetime import datetime, timedelta
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from evexia.access.scope import parse_scope
from evexia.config import Settings, get_settings
from evexia.core.exceptions import ValidationError
from evexia.models import ShareToken
from evexia.services.base import BaseService
from evexia.utils.clock import utcnow
from evexia.utils.logging import get_logger

logger = get_logger(__name__)

TOKEN_BYTES = 32


def generate_token_value() -> str:
    """URL-safe, unpadded token carrying 256 bits of randomness."""
    return secrets.token_urlsafe(TOKEN_BYTES)


class TokenService(BaseService[ShareToken]):
    """Creates, revokes and resolves share tokens."""

    model_class = ShareToken
    resource_name = "Token"

    def __init__(self, session: Session, settings: Optional[Settings] = None):
        """Initialize token service."""
        super().__init__(session)
        self.settings = settings or get_settings()

    def create(
        self,
        patient_id: UUID,
        scope: Any,
        ttl_hours: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> ShareToken:
        """Issue a token for ``patient_id`` limited to ``scope``."""
        categories = parse_scope(scope, allow_empty=False)
        hours = self._validate_ttl(ttl_hours)
        now = now or utcnow()
        try:
            expires_at = now + timedelta(hours=hours)
        except OverflowError as e:
            raise ValidationError("expiryHours is too large", field="expiryHours") from e

        token = ShareToken(
            patient_id=patient_id,
            token=generate_token_value(),
            scope=categories,
            expires_at=expires_at,
        )
        token.save(self.session)

        logger.info(
            "share_token_created",
            patient_id=str(patient_id),
            token_id=str(token.id),
            scope=categories,
            ttl_hours=hours,
        )
        return token

    def _validate_ttl(self, ttl_hours: Optional[float]) -> float:
        if ttl_hours is None:
            return self.settings.share_token_default_ttl_hours
        if (
            isinstance(ttl_hours, bool)
            or not isinstance(ttl_hours, (int, float))
            or not math.isfinite(ttl_hours)
        ):
            raise ValidationError("expiryHours must be a number", field="expiryHours")
        if ttl_hours <= 0:
            raise ValidationError("expiryHours must be positive", field="expiryHours")
        ceiling = self.settings.share_token_max_ttl_hours
        if ceiling is not None and ttl_hours > ceiling:
            raise ValidationError(
                f"expiryHours must not exceed {ceiling:g}", field="expiryHours"
            )
        return float(ttl_hours)

    def revoke(
        self, patient_id: UUID, token_id: Any, now: Optional[datetime] = None
    ) -> ShareToken:
        """Revoke a token; revoking twice keeps the first timestamp."""
        token = self.get_owned(patient_id, token_id)
        if token.revoked_at is None:
            token.revoked_at = now or utcnow()
            self.session.flush()
            logger.info("share_token_revoked", token_id=str(token.id))
        return token

    def delete(self, patient_id: UUID, token_id: Any) -> None:
        """Delete a token owned by ``patient_id``."""
        token = self.get_owned(patient_id, token_id)
        self.session.delete(token)
        self.session.flush()
        logger.info("share_token_deleted", token_id=str(token_id))

    def list_by_patient(self, patient_id: UUID) -> List[ShareToken]:
        """All tokens for a patient, oldest first."""
        stmt = (
            select(ShareToken)
            .where(ShareToken.patient_id == patient_id)
            .order_by(ShareToken.created_at.asc())
        )
        return list(self.session.scalars(stmt))

    def resolve_valid(self, value: str, now: datetime) -> Optional[ShareToken]:
        """Resolve a token value that is unrevoked and unexpired at ``now``."""
        if not value:
            return None
        stmt = select(ShareToken).where(
            ShareToken.token == value,
            ShareToken.revoked_at.is_(None),
            ShareToken.expires_at > now,
        )
        return self.session.scalars(stmt).first()
