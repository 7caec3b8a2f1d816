"""Explains what sharing a set of record categories reveals."""

import asyncio
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from evexia.access.scope import RecordCategory
from evexia.ai.bedrock_client import BedrockClient
from evexia.ai.json_extraction import extract_json_object
from evexia.ai.prompts import build_consent_prompt
from evexia.config import Settings, get_settings
from evexia.core.exceptions import AIGenerationError
from evexia.utils.logging import get_logger

logger = get_logger(__name__)

CONSENT_MAX_TOKENS = 1000

SHARED_DATA = {
    RecordCategory.VITALS.value: [
        "Blood pressure readings over time",
        "Heart rate measurements",
        "Body weight and BMI trends",
        "Temperature readings",
    ],
    RecordCategory.LABS.value: [
        "Blood glucose levels (A1C, fasting glucose)",
        "Cholesterol panel (LDL, HDL, triglycerides)",
        "Complete blood count results",
        "Kidney and liver function markers",
    ],
    RecordCategory.MEDS.value: [
        "Current prescriptions and dosages",
        "Medication history and changes",
        "Refill patterns and compliance",
    ],
    RecordCategory.ENCOUNTERS.value: [
        "Visit dates and reasons",
        "Diagnoses and ICD codes",
        "Provider notes and assessments",
        "Referrals and follow-up plans",
    ],
}

INFERRED_CONDITIONS = {
    RecordCategory.VITALS.value: [
        "Hypertension or hypotension patterns",
        "Weight management challenges",
        "Potential cardiovascular concerns",
    ],
    RecordCategory.LABS.value: [
        "Diabetes or pre-diabetes status",
        "Metabolic syndrome indicators",
        "Organ function concerns",
    ],
    RecordCategory.MEDS.value: [
        "Chronic conditions being treated",
        "Mental health treatment history",
        "Pain management needs",
    ],
    RecordCategory.ENCOUNTERS.value: [
        "Full diagnostic history",
        "Specialist consultations",
        "Treatment outcomes",
    ],
}

SENSITIVE_INFERENCES = {
    RecordCategory.VITALS.value: [],
    RecordCategory.LABS.value: [
        "Substance use patterns from liver enzymes",
        "HIV/STI testing history if included",
    ],
    RecordCategory.MEDS.value: [
        "Psychiatric conditions from psychotropic medications",
        "Substance use disorder treatment (if applicable)",
        "Reproductive health choices from contraceptives",
    ],
    RecordCategory.ENCOUNTERS.value: [
        "Mental health visit history",
        "Reproductive health consultations",
        "Substance use counseling records",
    ],
}


class ConsentExplanation(BaseModel):
    """What a provider would see and could infer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    shared_data: List[str] = Field(default_factory=list)
    inferred_conditions: List[str] = Field(default_factory=list)
    sensitive_inferences: List[str] = Field(default_factory=list)
    minimum_required: List[str] = Field(default_factory=list)
    recommendation: str = ""


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def explain_deterministically(categories: List[str]) -> ConsentExplanation:
    """Canned explanation assembled per category."""
    shared: List[str] = []
    inferred: List[str] = []
    sensitive: List[str] = []
    for category in RecordCategory:
        if category.value in categories:
            shared.extend(SHARED_DATA[category.value])
            inferred.extend(INFERRED_CONDITIONS[category.value])
            sensitive.extend(SENSITIVE_INFERENCES[category.value])

    if len(categories) == len(RecordCategory):
        minimum = [
            "For routine care: Vitals and recent labs are usually sufficient",
            "Medications may be needed for prescribing safety",
            "Full encounters rarely needed for initial consultation",
        ]
    else:
        minimum = [
            "Your selection appears focused",
            "Consider if all selected types are necessary for the consultation",
        ]

    if sensitive and RecordCategory.MEDS.value in categories:
        recommendation = (
            "Sharing medications may reveal treatment for sensitive conditions. "
            "Consider if this level of detail is necessary for your visit purpose."
        )
    elif len(categories) >= 3:
        recommendation = (
            "You are sharing comprehensive data. This is appropriate for "
            "establishing care with a new primary provider, but may be more than "
            "needed for a specialist consultation."
        )
    else:
        recommendation = (
            "Your selection provides focused access appropriate for most "
            "consultation types."
        )

    return ConsentExplanation(
        shared_data=shared,
        inferred_conditions=inferred,
        sensitive_inferences=list(dict.fromkeys(sensitive)),
        minimum_required=minimum,
        recommendation=recommendation,
    )


class ConsentExplainer:
    """Bedrock-backed consent explanation with a canned fallback."""

    def __init__(
        self, settings: Optional[Settings] = None, client: Optional[BedrockClient] = None
    ):
        """Initialize consent explainer."""
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> BedrockClient:
        """Lazily constructed Bedrock client."""
        if self._client is None:
            self._client = BedrockClient(self.settings)
        return self._client

    async def explain(
        self, categories: List[str], purpose: Optional[str] = None
    ) -> ConsentExplanation:
        """Explain sharing ``categories`` for ``purpose``."""
        if not self.settings.ai_enabled or not self.settings.ai_model_id:
            return explain_deterministically(categories)

        prompt = build_consent_prompt(categories, purpose)
        try:
            text = await asyncio.to_thread(
                self.client.complete, prompt, CONSENT_MAX_TOKENS
            )
        except AIGenerationError as e:
            logger.error("consent_explainer_failed", error=str(e))
            return explain_deterministically(categories)

        parsed: Optional[Dict[str, Any]] = extract_json_object(text)
        if parsed is None:
            logger.error("consent_explainer_unparseable")
            return explain_deterministically(categories)

        recommendation = parsed.get("recommendation")
        return ConsentExplanation(
            shared_data=_string_list(parsed.get("shared_data")),
            inferred_conditions=_string_list(parsed.get("inferred_conditions")),
            sensitive_inferences=_string_list(parsed.get("sensitive_inferences")),
            minimum_required=_string_list(parsed.get("minimum_required")),
            recommendation=recommendation if isinstance(recommendation, str) else "",
        )
