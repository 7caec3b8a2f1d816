"""Business services for Evexia."""

from evexia.services.access_log_service import AccessLogService
from evexia.services.directory_service import DirectoryService
from evexia.services.otp_service import OTPService
from evexia.services.patient_service import PatientService
from evexia.services.provider_service import ProviderService
from evexia.services.record_service import RecordService
from evexia.services.session_service import SessionService
from evexia.services.summary_service import RegenerationWindow, SummaryService
from evexia.services.token_service import TokenService

__all__ = [
    "AccessLogService",
    "DirectoryService",
    "OTPService",
    "PatientService",
    "ProviderService",
    "RecordService",
    "RegenerationWindow",
    "SessionService",
    "SummaryService",
    "TokenService",
]
