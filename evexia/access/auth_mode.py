"""Authentication policy derived from the configured auth mode."""

import hmac
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from evexia.config import AuthMode, Settings


@dataclass(frozen=True)
class AuthPolicy:
    """Decides when the development bypass applies.

    Every bypass path requires ``AuthMode.DEV_BYPASS``; in normal mode all of
    them are closed regardless of the demo settings.
    """

    mode: AuthMode = AuthMode.NORMAL
    demo_emails: FrozenSet[str] = field(default_factory=frozenset)
    demo_code: Optional[str] = None
    demo_patient_id: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthPolicy":
        """Build the policy once at startup."""
        return cls(
            mode=settings.auth_mode,
            demo_emails=frozenset(settings.demo_patient_emails),
            demo_code=settings.demo_code,
            demo_patient_id=settings.demo_patient_id,
        )

    @property
    def bypass_enabled(self) -> bool:
        """Whether dev bypass is active."""
        return self.mode == AuthMode.DEV_BYPASS

    def is_demo_patient(self, email: Optional[str]) -> bool:
        """Demo patient check, only true under dev bypass."""
        return (
            self.bypass_enabled
            and bool(email)
            and email.strip().lower() in self.demo_emails  # type: ignore[union-attr]
        )

    def accepts_demo_code(self, email: Optional[str], code: Optional[str]) -> bool:
        """Whether ``code`` is the demo code for a demo patient."""
        if not self.is_demo_patient(email) or not self.demo_code or not code:
            return False
        return hmac.compare_digest(code.strip(), self.demo_code)

    def tolerates_send_failure(self, email: Optional[str]) -> bool:
        """Demo patients can sign in even when email delivery fails."""
        return self.is_demo_patient(email)

    def session_fallback_patient_id(self) -> Optional[str]:
        """Patient a cookie-less session resolves to under dev bypass."""
        return self.demo_patient_id if self.bypass_enabled else None
