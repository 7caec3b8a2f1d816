"""Rule-based summary used whenever the AI model is unavailable.

Thresholds follow common adult screening guidelines. The "latest" value of a
metric is the last one seen in record order.
"""

import math
from typing import Iterable, List, Optional, Union

from evexia.access.payloads import (
    Anomaly,
    LabsPayload,
    VitalsPayload,
    decode_record_payload,
)
from evexia.access.scope import RecordCategory
from evexia.ai.types import EquityConcern, Prediction, SummaryData
from evexia.models import MedicalRecord

FALLBACK_MODEL = "mock-deterministic"

# Approximate adult population averages (CDC)
AVG_BMI = 26.5
AVG_A1C = 5.5
AVG_SYSTOLIC = 122
AVG_CHOLESTEROL = 192

EQUITY_GAP_THRESHOLD = 15

Number = Union[int, float]


def _fmt(value: Number) -> str:
    """Render a number without a trailing ``.0``."""
    return f"{value:g}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _systolic(blood_pressure: Optional[str]) -> Optional[int]:
    if not blood_pressure:
        return None
    head = blood_pressure.split("/")[0].strip()
    try:
        return int(float(head))
    except ValueError:
        return None


def bmi_category(bmi: float) -> str:
    """BMI band label."""
    if bmi < 18.5:
        return "Underweight"
    if bmi < 25:
        return "Normal"
    if bmi < 30:
        return "Overweight"
    return "Obese"


class FallbackSummarizer:
    """Produces anomalies, equity concerns, predictions and both summaries."""

    def summarize(self, records: Iterable[MedicalRecord]) -> SummaryData:
        """Summarize ``records`` deterministically."""
        records = list(records)
        anomalies: List[Anomaly] = []

        latest_bmi: Optional[float] = None
        latest_bp: Optional[str] = None
        latest_a1c: Optional[float] = None
        latest_cholesterol: Optional[float] = None
        med_count = 0

        for record in records:
            if record.category == RecordCategory.VITALS.value:
                vitals = decode_record_payload(record.category, record.data)
                assert isinstance(vitals, VitalsPayload)
                if vitals.bmi:
                    latest_bmi = vitals.bmi
                    anomalies.extend(self._bmi_anomalies(vitals.bmi))
                if vitals.blood_pressure:
                    latest_bp = vitals.blood_pressure
                    anomalies.extend(self._bp_anomalies(vitals.blood_pressure))
            elif record.category == RecordCategory.LABS.value:
                labs = decode_record_payload(record.category, record.data)
                assert isinstance(labs, LabsPayload)
                a1c = labs.a1c_value
                if a1c:
                    latest_a1c = a1c
                    anomalies.extend(self._a1c_anomalies(a1c))
                if labs.total_cholesterol:
                    latest_cholesterol = labs.total_cholesterol
                    anomalies.extend(self._cholesterol_anomalies(labs.total_cholesterol))
            elif record.category == RecordCategory.MEDS.value:
                med_count += 1

        equity_concerns = self.equity_concerns(
            latest_bmi, latest_bp, latest_a1c, latest_cholesterol
        )
        predictions = self.predictions(latest_bmi, latest_a1c, latest_bp, anomalies)

        return SummaryData(
            clinician_summary=self._clinician_summary(
                latest_bmi,
                latest_bp,
                latest_a1c,
                latest_cholesterol,
                med_count,
                len(anomalies),
            ),
            patient_summary=self._patient_summary(
                latest_bmi, latest_bp, latest_a1c, latest_cholesterol, anomalies
            ),
            anomalies=anomalies,
            equity_concerns=equity_concerns,
            predictions=predictions,
            model_used=FALLBACK_MODEL,
        )

    # Anomaly rules

    @staticmethod
    def _bmi_anomalies(bmi: float) -> List[Anomaly]:
        if bmi > 30:
            return [
                Anomaly(
                    type="high",
                    category=RecordCategory.VITALS,
                    field="bmi",
                    value=bmi,
                    message=f"BMI of {_fmt(bmi)} indicates obesity (>30)",
                )
            ]
        if bmi < 18.5:
            return [
                Anomaly(
                    type="low",
                    category=RecordCategory.VITALS,
                    field="bmi",
                    value=bmi,
                    message=f"BMI of {_fmt(bmi)} indicates underweight (<18.5)",
                )
            ]
        return []

    @staticmethod
    def _bp_anomalies(blood_pressure: str) -> List[Anomaly]:
        systolic = _systolic(blood_pressure)
        if systolic and systolic >= 140:
            return [
                Anomaly(
                    type="high",
                    category=RecordCategory.VITALS,
                    field="blood_pressure",
                    value=blood_pressure,
                    message=(
                        f"Blood pressure of {blood_pressure} indicates "
                        "hypertension (>=140/90)"
                    ),
                )
            ]
        return []

    @staticmethod
    def _a1c_anomalies(a1c: float) -> List[Anomaly]:
        if a1c >= 6.5:
            message = f"A1C of {_fmt(a1c)}% indicates diabetes (>=6.5%)"
        elif a1c >= 5.7:
            message = f"A1C of {_fmt(a1c)}% indicates prediabetes (5.7-6.4%)"
        else:
            return []
        return [
            Anomaly(
                type="high",
                category=RecordCategory.LABS,
                field="a1c",
                value=a1c,
                message=message,
            )
        ]

    @staticmethod
    def _cholesterol_anomalies(cholesterol: float) -> List[Anomaly]:
        if cholesterol >= 240:
            return [
                Anomaly(
                    type="high",
                    category=RecordCategory.LABS,
                    field="total_cholesterol",
                    value=cholesterol,
                    message=(
                        f"Total cholesterol of {_fmt(cholesterol)} mg/dL is high (>=240)"
                    ),
                )
            ]
        return []

    # Equity concerns

    @staticmethod
    def _gap(value: float, average: float) -> int:
        return _round_half_up((value - average) / average * 100)

    def equity_concerns(
        self,
        bmi: Optional[float],
        blood_pressure: Optional[str],
        a1c: Optional[float],
        cholesterol: Optional[float],
    ) -> List[EquityConcern]:
        """Metrics more than 15% above the population average."""
        concerns: List[EquityConcern] = []

        if bmi and bmi > AVG_BMI:
            gap = self._gap(bmi, AVG_BMI)
            if gap > EQUITY_GAP_THRESHOLD:
                concerns.append(
                    EquityConcern(
                        metric="BMI",
                        patient_value=_fmt(bmi),
                        population_average=_fmt(AVG_BMI),
                        gap_percentage=gap,
                        suggested_action=(
                            "Opportunity for early intervention with nutrition "
                            "counseling and physical activity program"
                        ),
                    )
                )

        if a1c and a1c > AVG_A1C:
            gap = self._gap(a1c, AVG_A1C)
            if gap > EQUITY_GAP_THRESHOLD:
                concerns.append(
                    EquityConcern(
                        metric="A1C",
                        patient_value=f"{_fmt(a1c)}%",
                        population_average=f"{_fmt(AVG_A1C)}%",
                        gap_percentage=gap,
                        suggested_action=(
                            "Discuss diabetes prevention program and lifestyle "
                            "modifications"
                        ),
                    )
                )

        systolic = _systolic(blood_pressure)
        if blood_pressure and systolic and systolic > AVG_SYSTOLIC:
            gap = self._gap(systolic, AVG_SYSTOLIC)
            if gap > EQUITY_GAP_THRESHOLD:
                concerns.append(
                    EquityConcern(
                        metric="Blood Pressure (Systolic)",
                        patient_value=blood_pressure,
                        population_average=f"{AVG_SYSTOLIC}/80",
                        gap_percentage=gap,
                        suggested_action=(
                            "Consider DASH diet education and sodium intake "
                            "reduction counseling"
                        ),
                    )
                )

        if cholesterol and cholesterol > AVG_CHOLESTEROL:
            gap = self._gap(cholesterol, AVG_CHOLESTEROL)
            if gap > EQUITY_GAP_THRESHOLD:
                concerns.append(
                    EquityConcern(
                        metric="Total Cholesterol",
                        patient_value=f"{_fmt(cholesterol)} mg/dL",
                        population_average=f"{AVG_CHOLESTEROL} mg/dL",
                        gap_percentage=gap,
                        suggested_action=(
                            "Discuss heart-healthy diet and potential statin "
                            "therapy evaluation"
                        ),
                    )
                )

        return concerns

    # Predictions

    def predictions(
        self,
        bmi: Optional[float],
        a1c: Optional[float],
        blood_pressure: Optional[str],
        anomalies: List[Anomaly],
    ) -> List[Prediction]:
        """Risk projections from the latest metrics."""
        predictions: List[Prediction] = []

        if a1c and 5.7 <= a1c < 6.5:
            predictions.append(
                Prediction(
                    condition="Type 2 Diabetes",
                    current_risk="moderate",
                    probability=0.58,
                    timeframe="36 months",
                    trend_direction="worsening",
                    actionable_steps=[
                        "Enroll in CDC-recognized Diabetes Prevention Program",
                        "Target 7% body weight loss through diet and exercise",
                        "Schedule quarterly A1C monitoring",
                    ],
                    evidence_basis=(
                        "Based on CDC Diabetes Prevention Program outcomes data "
                        "showing 58% progression rate without intervention"
                    ),
                )
            )
        elif a1c and a1c >= 6.5:
            predictions.append(
                Prediction(
                    condition="Diabetic Complications",
                    current_risk="high",
                    probability=0.72,
                    timeframe="24 months",
                    trend_direction="worsening",
                    actionable_steps=[
                        "Initiate comprehensive diabetes management plan",
                        "Schedule annual retinopathy and nephropathy screening",
                        "Consider referral to endocrinology",
                    ],
                    evidence_basis=(
                        "Based on ADA guidelines for diabetes management and "
                        "complication prevention"
                    ),
                )
            )

        systolic = _systolic(blood_pressure)
        if systolic and systolic >= 130:
            high = systolic >= 140
            predictions.append(
                Prediction(
                    condition="Cardiovascular Disease",
                    current_risk="high" if high else "moderate",
                    probability=0.65 if high else 0.42,
                    timeframe="60 months",
                    trend_direction="worsening" if high else "stable",
                    actionable_steps=[
                        "Implement DASH diet with sodium restriction to <2300mg/day",
                        "Target 150 minutes moderate aerobic activity weekly",
                        "Monitor home blood pressure twice daily",
                    ],
                    evidence_basis=(
                        "Based on Framingham Heart Study risk calculations and "
                        "ACC/AHA hypertension guidelines"
                    ),
                )
            )

        if bmi and bmi >= 30:
            severe = bmi >= 35
            predictions.append(
                Prediction(
                    condition="Obesity-Related Metabolic Syndrome",
                    current_risk="high" if severe else "moderate",
                    probability=0.68 if severe else 0.45,
                    timeframe="24 months",
                    trend_direction="stable",
                    actionable_steps=[
                        "Referral to registered dietitian for personalized meal planning",
                        "Structured exercise program starting with 30 min daily walking",
                        "Consider behavioral therapy for sustainable lifestyle changes",
                    ],
                    evidence_basis=(
                        "Based on NIH obesity management guidelines and metabolic "
                        "syndrome diagnostic criteria"
                    ),
                )
            )

        if not predictions and not anomalies:
            predictions.append(
                Prediction(
                    condition="Overall Health Maintenance",
                    current_risk="low",
                    probability=0.15,
                    timeframe="12 months",
                    trend_direction="improving",
                    actionable_steps=[
                        "Continue current healthy lifestyle practices",
                        "Maintain routine preventive care schedule",
                        "Complete age-appropriate health screenings",
                    ],
                    evidence_basis=(
                        "Based on USPSTF preventive care recommendations for "
                        "healthy adults"
                    ),
                )
            )

        return predictions

    # Text

    @staticmethod
    def _clinician_summary(
        bmi: Optional[float],
        blood_pressure: Optional[str],
        a1c: Optional[float],
        cholesterol: Optional[float],
        med_count: int,
        anomaly_count: int,
    ) -> str:
        points: List[str] = []
        if bmi:
            points.append(f"* BMI: {_fmt(bmi)} ({bmi_category(bmi)})")
        if blood_pressure:
            points.append(f"* Blood Pressure: {blood_pressure}")
        if a1c:
            points.append(f"* HbA1c: {_fmt(a1c)}%")
        if cholesterol:
            points.append(f"* Total Cholesterol: {_fmt(cholesterol)} mg/dL")
        points.append(f"* Active Medications: {med_count}")
        if anomaly_count > 0:
            points.append(f"* Flagged Anomalies: {anomaly_count}")
        return "\n".join(points)

    @staticmethod
    def _patient_summary(
        bmi: Optional[float],
        blood_pressure: Optional[str],
        a1c: Optional[float],
        cholesterol: Optional[float],
        anomalies: List[Anomaly],
    ) -> str:
        parts = ["Here's a summary of your recent health data:\n"]
        if bmi:
            parts.append(
                f"Your BMI is {_fmt(bmi)}, which is in the "
                f"{bmi_category(bmi).lower()} range."
            )
        if blood_pressure:
            parts.append(f"Your most recent blood pressure reading was {blood_pressure}.")
        if a1c:
            parts.append(
                f"Your A1C level is {_fmt(a1c)}%, which measures your average "
                "blood sugar over the past 2-3 months."
            )
        if cholesterol:
            parts.append(f"Your total cholesterol is {_fmt(cholesterol)} mg/dL.")
        if anomalies:
            parts.append(
                f"\nThere are {len(anomalies)} item(s) that may need attention - "
                "please review with your healthcare provider."
            )
        else:
            parts.append("\nNo significant concerns were identified in your recent records.")
        return " ".join(parts)
