"""Prompt templates for the summary and consent explainer models."""

import json
from typing import Iterable, List, Optional, Sequence

from evexia.access.scope import RecordCategory
from evexia.models import MedicalRecord

MEDICAL_DISCLAIMER = (
    "DISCLAIMER: This is informational only, not medical advice. "
    "AI summaries may be inaccurate. Always verify with original records "
    "and consult your healthcare provider."
)

SECTION_TITLES = {
    RecordCategory.VITALS.value: "VITALS",
    RecordCategory.LABS.value: "LAB RESULTS",
    RecordCategory.MEDS.value: "MEDICATIONS",
    RecordCategory.ENCOUNTERS.value: "ENCOUNTERS",
}

SUMMARY_RESPONSE_FORMAT = """Respond ONLY with valid JSON in this exact format:
{
  "clinician_summary": "Clinical bullet-point summary for healthcare providers. Include key metrics, trends, and concerns.",
  "patient_summary": "Plain-language summary for the patient. Explain what the numbers mean and any lifestyle recommendations.",
  "anomalies": [
    {
      "type": "high|low|duplicate|missing",
      "category": "vitals|labs|meds|encounters",
      "field": "field name",
      "value": "the concerning value",
      "message": "brief explanation"
    }
  ]
}

Focus on:
- BMI trends (normal: 18.5-24.9, overweight: 25-29.9, obese: 30+)
- Blood pressure patterns (normal: <120/80, elevated: 120-129/<80, high: 130+/80+)
- A1C levels (normal: <5.7%, prediabetes: 5.7-6.4%, diabetes: 6.5%+)
- Cholesterol (desirable: <200, borderline: 200-239, high: 240+)
- Medication interactions or duplicates
- Missing follow-ups or screenings"""

CATEGORY_DESCRIPTIONS = {
    RecordCategory.VITALS.value: (
        "vital signs (blood pressure, heart rate, temperature, weight, height, BMI)"
    ),
    RecordCategory.LABS.value: (
        "laboratory results (blood tests, urine tests, metabolic panels)"
    ),
    RecordCategory.MEDS.value: (
        "medication records (prescriptions, dosages, refill history)"
    ),
    RecordCategory.ENCOUNTERS.value: (
        "clinical encounters (visit notes, diagnoses, procedures, referrals)"
    ),
}


def _section(category: str, records: Sequence[MedicalRecord]) -> str:
    data = [record.data for record in records if record.category == category]
    return f"{SECTION_TITLES[category]} ({len(data)} records):\n{json.dumps(data, indent=2)}"


def build_medical_prompt(records: Iterable[MedicalRecord]) -> str:
    """Prompt asking for clinician and patient summaries plus anomalies."""
    records = list(records)
    sections = "\n\n".join(_section(category, records) for category in SECTION_TITLES)
    return (
        "You are a medical AI assistant analyzing patient health records.\n"
        "Generate two summaries and identify any anomalies.\n\n"
        f"PATIENT HEALTH RECORDS:\n\n{sections}\n\n{SUMMARY_RESPONSE_FORMAT}"
    )


def build_consent_prompt(categories: List[str], purpose: Optional[str] = None) -> str:
    """Prompt explaining what sharing ``categories`` reveals."""
    shared = "\n- ".join(CATEGORY_DESCRIPTIONS[category] for category in categories)
    return f"""You are a healthcare privacy advisor helping patients understand what they're sharing.

A patient is about to share the following medical record types with a healthcare provider:
- {shared}

The stated purpose is: {purpose or "General healthcare consultation"}

Explain in plain, non-alarming language:
1. What specific data will the provider see from these record types?
2. What health conditions could be INFERRED from this combination of data (even if not explicitly stated)?
3. Are there any SENSITIVE inferences that could be made? (mental health indicators, reproductive health, substance use patterns, HIV status, genetic conditions)
4. What would be the MINIMUM data needed for the stated purpose?

Be helpful and educational, not alarming. Help the patient make an informed choice.

Respond ONLY with valid JSON in this exact format:
{{
  "shared_data": ["list of specific data types they will see"],
  "inferred_conditions": ["health conditions that can be inferred from this data"],
  "sensitive_inferences": ["sensitive information that could potentially be inferred"],
  "minimum_required": ["minimum data typically needed for the stated purpose"],
  "recommendation": "A brief, balanced recommendation (1-2 sentences)"
}}"""
