"""Signed patient sessions carried in an HTTP-only cookie."""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from evexia.config import Settings, get_settings
from evexia.utils.clock import utcnow
from evexia.utils.logging import get_logger

logger = get_logger(__name__)

SESSION_TOKEN_TYPE = "patient_session"


class SessionService:
    """Encodes and decodes session JWTs.

    The subject is the patient's ``auth_subject``, never the record id, so
    rotating the subject invalidates outstanding sessions.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize session service."""
        self.settings = settings or get_settings()

    def create_session_token(self, subject: str, now: Optional[datetime] = None) -> str:
        """Sign a session for ``subject``."""
        now = now or utcnow()
        claims: Dict[str, Any] = {
            "sub": subject,
            "type": SESSION_TOKEN_TYPE,
            "iat": now,
            "exp": now + timedelta(hours=self.settings.session_ttl_hours),
        }
        return jwt.encode(
            claims, self.settings.jwt_secret_key, algorithm=self.settings.jwt_algorithm
        )

    def decode_session_token(self, token: Optional[str]) -> Optional[str]:
        """Return the subject of a valid session, None otherwise."""
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
            )
        except ExpiredSignatureError:
            logger.info("session_expired")
            return None
        except JWTError as e:
            logger.warning("session_invalid", error=str(e))
            return None

        if claims.get("type") != SESSION_TOKEN_TYPE:
            return None
        subject = claims.get("sub")
        return subject if isinstance(subject, str) and subject else None

    @property
    def max_age_seconds(self) -> int:
        """Cookie lifetime matching the token expiry."""
        return int(self.settings.session_ttl_hours * 3600)
