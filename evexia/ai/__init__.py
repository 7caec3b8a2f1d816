"""AI summaries and consent explanations."""

from evexia.ai.consent_explainer import ConsentExplainer, ConsentExplanation
from evexia.ai.fallback import FALLBACK_MODEL, FallbackSummarizer
from evexia.ai.json_extraction import extract_json_object
from evexia.ai.prompts import MEDICAL_DISCLAIMER
from evexia.ai.summary_generator import SummaryGenerator
from evexia.ai.types import GeneratedSummary, SummaryData

__all__ = [
    "ConsentExplainer",
    "ConsentExplanation",
    "FALLBACK_MODEL",
    "FallbackSummarizer",
    "GeneratedSummary",
    "MEDICAL_DISCLAIMER",
    "SummaryData",
    "SummaryGenerator",
    "extract_json_object",
]
