"""Structured summary content."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from evexia.access.payloads import Anomaly

FallbackReason = Literal["ai_disabled", "model_not_configured", "generation_failed"]


class EquityConcern(BaseModel):
    """Gap between a patient metric and the population average."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    metric: str
    patient_value: str
    population_average: str
    gap_percentage: int
    suggested_action: str


class Prediction(BaseModel):
    """Risk projection for a condition."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    condition: str
    current_risk: Literal["low", "moderate", "high"]
    probability: float = Field(ge=0, le=1)
    timeframe: str
    trend_direction: Literal["improving", "stable", "worsening"]
    actionable_steps: List[str] = Field(default_factory=list)
    evidence_basis: str


class SummaryData(BaseModel):
    """A generated summary before it is stored."""

    clinician_summary: str
    patient_summary: str
    anomalies: List[Anomaly] = Field(default_factory=list)
    equity_concerns: List[EquityConcern] = Field(default_factory=list)
    predictions: List[Prediction] = Field(default_factory=list)
    model_used: str


class GeneratedSummary(BaseModel):
    """Summary plus how it was produced."""

    data: SummaryData
    used_fallback: bool = False
    fallback_reason: Optional[FallbackReason] = None
