"""Build response models from ORM rows."""

from typing import List, Optional, Sequence

from evexia.access.engine import AccessGrant
from evexia.access.payloads import Anomaly, parse_anomaly
from evexia.access.scope import filter_by_scope, has_full_access, scope_warning
from evexia.ai.prompts import MEDICAL_DISCLAIMER
from evexia.models import MedicalRecord, Summary
from evexia.schemas.patient import RecordOut, SummaryResponse
from evexia.schemas.provider_access import ProviderAccessResponse, ScopedSummary
from evexia.services import RecordService, SummaryService
from evexia.utils.medical import extract_chart_data


def record_out(record: MedicalRecord) -> RecordOut:
    """A record with its payload decoded by category."""
    return RecordOut(
        id=record.id,
        hospital=record.hospital,
        category=record.category,
        data=RecordService.typed_payload(record),
        record_date=record.record_date,
        source=record.source,
    )


def stored_anomalies(summary: Summary) -> List[Anomaly]:
    """Anomalies from the summary's JSON column, skipping malformed entries."""
    anomalies = [parse_anomaly(raw) for raw in summary.anomalies or []]
    return [anomaly for anomaly in anomalies if anomaly is not None]


def summary_response(summary: Summary) -> SummaryResponse:
    """A stored summary for its owner."""
    return SummaryResponse(
        clinician_summary=summary.clinician_summary,
        patient_summary=summary.patient_summary,
        anomalies=stored_anomalies(summary),
        equity_concerns=summary.equity_concerns or [],
        predictions=summary.predictions or [],
        model_used=summary.model_used,
        used_fallback=bool(summary.used_fallback),
        generated_at=summary.created_at,
        disclaimer=MEDICAL_DISCLAIMER,
    )


def scoped_summary(summary: Optional[Summary], scope: Sequence[str]) -> Optional[ScopedSummary]:
    """A summary for a provider, with anomalies narrowed to ``scope``.

    Summary text is not redacted; partial scopes carry a warning instead.
    """
    if summary is None:
        return None
    return ScopedSummary(
        clinician_summary=summary.clinician_summary,
        patient_summary=summary.patient_summary,
        anomalies=filter_by_scope(stored_anomalies(summary), scope),
        has_full_access=has_full_access(scope),
        scope_warning=scope_warning(scope),
    )


def provider_access_response(
    grant: AccessGrant, records: RecordService, summaries: SummaryService
) -> ProviderAccessResponse:
    """Patient data released under an audited grant."""
    patient = grant.patient
    rows = filter_by_scope(records.list_for_patient(patient.id, grant.scope), grant.scope)
    return ProviderAccessResponse(
        patient_name=patient.name,
        date_of_birth=patient.date_of_birth,
        scope=grant.scope,
        records=[record_out(row) for row in rows],
        summary=scoped_summary(summaries.get_latest(patient.id), grant.scope),
        chart_data=extract_chart_data(rows),
        provider_name=grant.provider_name,
        provider_org=grant.provider_org,
        is_emergency_access=grant.is_emergency_access,
        disclaimer=MEDICAL_DISCLAIMER,
    )
