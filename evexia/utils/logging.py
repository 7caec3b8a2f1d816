"""Structured logging for the Evexia API.

Every log line is a structlog event with a snake_case name describing what
happened (``access_granted``, ``otp_mismatch``, ``record_payload_invalid``)
and keyword fields carrying the details. Loggers live under the ``evexia``
namespace; two streams have fixed names:

* ``evexia.request``: one line per HTTP request, tagged with a request id
  that is also bound to every other event logged while the request runs.
* ``evexia.audit``: provider access decisions and patient sign-ins. Denials
  never reach the access_logs table, so this stream is their only record.

Fields never carry raw passcodes, share token values or full email
addresses; callers pass ``mask_email`` output instead.
"""

import logging
import sys
import uuid
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from structlog.stdlib import BoundLogger, LoggerFactory

from evexia.config import Settings, get_settings

REQUEST_ID_HEADER = "X-Request-ID"

# Libraries that log every HTTP call; the request stream already covers ours
QUIET_LOGGERS = ("botocore", "urllib3", "uvicorn.access")


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Route structlog events through stdlib logging at the configured level."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    renderer: Any
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> BoundLogger:
    """Logger for a module, usually called with ``__name__``."""
    bound_logger: BoundLogger = structlog.get_logger(name)
    return bound_logger


@dataclass
class RequestInfo:
    """What the request stream records about one in-flight request."""

    request_id: str
    method: str
    path: str
    client_host: Optional[str]


class RequestLogger:
    """Request stream: one completion line per request, keyed by request id.

    Only method, path and client address are recorded. Query strings, headers
    and bodies stay out because they carry share tokens and passcodes.
    """

    def __init__(self) -> None:
        self.logger = get_logger("evexia.request")

    def start(self, request: Any) -> RequestInfo:
        """Assign the request id and bind it to the logging context."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        info = RequestInfo(
            request_id=request_id[:64],
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )
        structlog.contextvars.bind_contextvars(request_id=info.request_id)
        return info

    def finish(self, info: RequestInfo, status_code: int, duration: float) -> None:
        """Log the outcome and unbind the request id."""
        fields = {
            "method": info.method,
            "path": info.path,
            "client_host": info.client_host,
            "status_code": status_code,
            "duration_ms": round(duration * 1000, 2),
        }
        try:
            if status_code >= 500:
                self.logger.error("request_failed", **fields)
            elif status_code >= 400:
                self.logger.warning("request_rejected", **fields)
            else:
                self.logger.info("request_completed", **fields)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")


class AuditLogger:
    """Audit stream for access grants, denials and patient sign-ins."""

    def __init__(self) -> None:
        self.logger = get_logger("evexia.audit")

    def log_grant(
        self,
        patient_id: str,
        access_method: str,
        scope: Any,
        provider_org: Optional[str] = None,
        is_emergency_access: bool = False,
    ) -> None:
        self.logger.info(
            "access_granted",
            patient_id=patient_id,
            access_method=access_method,
            scope=list(scope),
            provider_org=provider_org,
            is_emergency_access=is_emergency_access,
        )

    def log_denial(
        self,
        access_method: str,
        reason: str,
        organization_slug: Optional[str] = None,
        patient_id: Optional[str] = None,
    ) -> None:
        self.logger.warning(
            "access_denied",
            access_method=access_method,
            reason=reason,
            organization_slug=organization_slug,
            patient_id=patient_id,
        )

    def log_authentication(
        self,
        patient_id: str,
        action: str,
        success: bool,
        ip_address: Optional[str] = None,
    ) -> None:
        self.logger.info(
            "authentication_event",
            patient_id=patient_id,
            action=action,
            success=success,
            ip_address=ip_address,
        )


audit_logger = AuditLogger()
request_logger = RequestLogger()
