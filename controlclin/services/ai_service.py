"""
AI collaborator for exam interpretation and plan critique.

The model is an opaque producer of text. When no key is configured, or the
call or its parsing fails, a deterministic local result is returned instead
and tagged ``is_fallback=True``.
"""
import json
import re
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from pydantic import ValidationError

from controlclin.core.config import settings
from controlclin.core.logger import logger
from controlclin.core.utils import calculate_age
from controlclin.db.models import (
    Exam,
    ExamAnalysisResult,
    ExamMarker,
    MarkerFinding,
    MarkerInterpretation,
    NutritionalPlan,
    Patient,
)
from controlclin.schemas.patient import PlanCritique, PlanTotals

_CAMEL_KEYS = {
    "possibleCauses": "possible_causes",
    "suggestedTreatments": "suggested_treatments",
    "nextSteps": "next_steps",
}


def _extract_json_object(text: str) -> str:
    text = (text or "").strip()
    text = text.replace("```json", "").replace("```", "").strip()
    if text.startswith("{") and text.endswith("}"):
        return text
    m = re.search(r"\{.*\}", text, flags=re.DOTALL)
    return m.group(0).strip() if m else text


def fallback_analysis(markers: List[ExamMarker]) -> ExamAnalysisResult:
    altered = [m for m in markers if m.interpretation != MarkerInterpretation.NORMAL]
    return ExamAnalysisResult(
        summary="Offline analysis based on individual markers.",
        findings=[
            MarkerFinding(
                marker=m.name,
                correlation=f"Marker flagged as {m.interpretation.value}.",
                impact="NEGATIVE",
            )
            for m in altered
        ],
        possible_causes=["AI connection required to cross-reference markers."],
        suggested_treatments=["See the individual guidance of each marker in the reference table."],
        next_steps=["Configure the AI key for a full analysis."],
        is_fallback=True,
    )


def plan_totals(plan: NutritionalPlan) -> PlanTotals:
    totals = PlanTotals()
    for meal in plan.meals:
        for item in meal.items:
            totals.calories += item.calculated_calories
            totals.protein_g += item.calculated_protein
            totals.carbs_g += item.calculated_carbs
            totals.fat_g += item.calculated_fat
    return PlanTotals(**{k: round(v, 1) for k, v in totals.model_dump().items()})


def _deviation(label: str, actual: float, target: float) -> Optional[str]:
    if not target:
        return None
    diff = (actual - target) / target * 100
    if abs(diff) <= 10:
        return None
    direction = "above" if diff > 0 else "below"
    return f"{label} is {abs(diff):.0f}% {direction} target ({actual:g} vs {target:g})."


def fallback_critique(plan: NutritionalPlan) -> PlanCritique:
    totals = plan_totals(plan)
    targets = PlanTotals(
        calories=plan.caloric_target,
        protein_g=plan.macro_targets.protein_g,
        carbs_g=plan.macro_targets.carbs_g,
        fat_g=plan.macro_targets.fat_g,
    )
    comments = [
        c for c in (
            _deviation("Calories", totals.calories, targets.calories),
            _deviation("Protein", totals.protein_g, targets.protein_g),
            _deviation("Carbohydrates", totals.carbs_g, targets.carbs_g),
            _deviation("Fat", totals.fat_g, targets.fat_g),
        ) if c
    ]
    if not plan.meals:
        comments.append("The plan has no meals.")
    if not comments:
        comments.append("Plan totals are within 10% of every target.")
    return PlanCritique(plan_id=plan.id, totals=totals, targets=targets, comments=comments,
                        text=" ".join(comments), is_fallback=True)


class ExamAnalyzer:
    def __init__(self, api_key: Optional[str] = settings.GEMINI_API_KEY,
                 model_name: str = settings.GEMINI_MODEL, model: Any = None):
        self.model = model
        if self.model is None and api_key:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(
                model_name,
                generation_config={"temperature": 0.2, "response_mime_type": "application/json"},
            )
        if self.model is None:
            logger.warning("GEMINI_API_KEY missing, AI analysis will use the offline fallback")

    @property
    def enabled(self) -> bool:
        return self.model is not None

    async def analyze(self, patient: Patient, exams: List[Exam]) -> ExamAnalysisResult:
        markers = [m for exam in exams for m in exam.markers]
        if not self.enabled:
            return fallback_analysis(markers)

        try:
            resp = await self.model.generate_content_async(self._exam_prompt(patient, markers))
            data: Dict[str, Any] = json.loads(_extract_json_object(resp.text))
            for camel, snake in _CAMEL_KEYS.items():
                if camel in data:
                    data[snake] = data.pop(camel)
            data["is_fallback"] = False
            return ExamAnalysisResult.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"AI exam analysis returned unusable output: {e}")
        except Exception as e:
            logger.error(f"AI exam analysis failed: {e}")
        return fallback_analysis(markers)

    async def critique_plan(self, patient: Patient, plan: NutritionalPlan) -> PlanCritique:
        local = fallback_critique(plan)
        if not self.enabled:
            return local
        try:
            resp = await self.model.generate_content_async(self._plan_prompt(patient, plan, local))
            text = (resp.text or "").strip()
            if not text:
                raise ValueError("empty response")
        except Exception as e:
            logger.error(f"AI plan critique failed: {e}")
            return local
        return local.model_copy(update={"text": text, "is_fallback": False})

    def _exam_prompt(self, patient: Patient, markers: List[ExamMarker]) -> str:
        summary = patient.clinical_summary
        results = [
            {"marker": m.name, "value": m.value, "unit": m.unit,
             "reference": m.reference.label, "interpretation": m.interpretation.value}
            for m in markers
        ]
        return f"""
You are a clinical nutritionist and laboratory medicine specialist.
Analyze the lab results of patient {patient.name} ({patient.gender.value}, {calculate_age(patient.birth_date)} years).

Clinical context:
Diagnoses: {", ".join(summary.active_diagnoses) if summary and summary.active_diagnoses else "None"}
Goal: {summary.clinical_goal if summary and summary.clinical_goal else "Not defined"}

Results:
{json.dumps(results, ensure_ascii=False)}

Answer with a JSON object:
{{
  "summary": "overall clinical summary",
  "findings": [{{"marker": "name", "correlation": "effect on other markers or the goal", "impact": "POSITIVE|NEUTRAL|NEGATIVE"}}],
  "possible_causes": ["..."],
  "suggested_treatments": ["..."],
  "next_steps": ["..."]
}}
""".strip()

    def _plan_prompt(self, patient: Patient, plan: NutritionalPlan, local: PlanCritique) -> str:
        return f"""
You are a clinical nutritionist reviewing a meal plan for {patient.name}.
Strategy: {plan.strategy_name or "not informed"}
Targets: {local.targets.model_dump_json()}
Computed totals: {local.totals.model_dump_json()}
Meals: {json.dumps([m.model_dump(mode="json") for m in plan.meals], ensure_ascii=False)}

Write a short critique (max 150 words) pointing out imbalances and one concrete adjustment.
""".strip()
