"""Summary generation with a deterministic fallback."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from evexia.access.payloads import Anomaly, parse_anomaly
from evexia.ai.bedrock_client import BedrockClient
from evexia.ai.fallback import FallbackSummarizer
from evexia.ai.json_extraction import extract_json_object
from evexia.ai.prompts import build_medical_prompt
from evexia.ai.types import FallbackReason, GeneratedSummary, SummaryData
from evexia.config import Settings, get_settings
from evexia.core.exceptions import AIGenerationError
from evexia.models import MedicalRecord
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class SummaryGenerator:
    """Generates summaries with Bedrock, falling back to rules.

    AI failures never propagate: they are logged and answered with the
    rule-based summary. Equity concerns and predictions always come from
    the rules; the model contributes the two summaries and anomalies.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[BedrockClient] = None,
        fallback: Optional[FallbackSummarizer] = None,
    ):
        """Initialize summary generator."""
        self.settings = settings or get_settings()
        self._client = client
        self.fallback = fallback or FallbackSummarizer()

    @property
    def client(self) -> BedrockClient:
        """Lazily constructed Bedrock client."""
        if self._client is None:
            self._client = BedrockClient(self.settings)
        return self._client

    def _fallback(
        self, records: Sequence[MedicalRecord], reason: FallbackReason
    ) -> GeneratedSummary:
        logger.info("summary_fallback", reason=reason, record_count=len(records))
        return GeneratedSummary(
            data=self.fallback.summarize(records),
            used_fallback=True,
            fallback_reason=reason,
        )

    async def generate(self, records: Sequence[MedicalRecord]) -> GeneratedSummary:
        """Summarize ``records``."""
        if not self.settings.ai_enabled:
            return self._fallback(records, "ai_disabled")
        if not self.settings.ai_model_id:
            logger.warning("ai_model_not_configured")
            return self._fallback(records, "model_not_configured")

        prompt = build_medical_prompt(records)
        try:
            text = await asyncio.to_thread(self.client.complete, prompt)
            data = self._parse_response(text, records)
        except AIGenerationError as e:
            logger.error("summary_generation_failed", error=str(e))
            return self._fallback(records, "generation_failed")

        return GeneratedSummary(data=data, used_fallback=False)

    def _parse_response(
        self, text: str, records: Sequence[MedicalRecord]
    ) -> SummaryData:
        parsed = extract_json_object(text)
        if parsed is None:
            raise AIGenerationError("No JSON found in model response")

        clinician_summary = parsed.get("clinician_summary")
        patient_summary = parsed.get("patient_summary")
        if not isinstance(clinician_summary, str) or not clinician_summary.strip():
            raise AIGenerationError("Model response is missing clinician_summary")
        if not isinstance(patient_summary, str):
            patient_summary = ""

        rules = self.fallback.summarize(records)
        return SummaryData(
            clinician_summary=clinician_summary,
            patient_summary=patient_summary,
            anomalies=self._parse_anomalies(parsed),
            equity_concerns=rules.equity_concerns,
            predictions=rules.predictions,
            model_used=self.settings.ai_model_id or "unknown",
        )

    @staticmethod
    def _parse_anomalies(parsed: Dict[str, Any]) -> List[Anomaly]:
        raw = parsed.get("anomalies")
        if not isinstance(raw, list):
            return []
        anomalies = [parse_anomaly(item) for item in raw]
        return [anomaly for anomaly in anomalies if anomaly is not None]
