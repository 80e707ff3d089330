"""
Lab marker interpretation against a static reference table.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from controlclin.db.models import ExamMarker, MarkerInterpretation, ReferenceRange


@dataclass(frozen=True)
class MarkerReference:
    name: str
    unit: str
    min: float
    max: float
    low: Tuple[str, str] # (risk, suggestion)
    high: Tuple[str, str]
    normal: str
    aliases: List[str] = field(default_factory=list)


REFERENCE_MARKERS: Dict[str, MarkerReference] = {
    "GLUCOSE": MarkerReference(
        "Fasting Glucose", "mg/dL", 70, 99,
        ("Hypoglycemia.", "Investigate causes of low blood sugar."),
        ("Diabetes or hyperglycemia.", "Review glycemic load and confirm with HbA1c."),
        "Healthy blood sugar levels.",
        aliases=["Glicemia", "Glicose", "Glucose", "Blood Sugar"],
    ),
    "HBA1C": MarkerReference(
        "Glycated Hemoglobin (HbA1c)", "%", 4.0, 5.6,
        ("Chronic hypoglycemia or anemia.", "Investigate causes of low glycemia."),
        ("Prediabetes or diabetes.", "Glycemic load control and exercise."),
        "Adequate glycemic control over the last 3 months.",
        aliases=["HbA1c", "Glicada", "A1c"],
    ),
    "INSULIN": MarkerReference(
        "Fasting Insulin", "uIU/mL", 2.0, 10.0,
        ("Low insulin production.", "Evaluate pancreatic function."),
        ("Insulin resistance.", "Reduce refined carbohydrates and increase physical activity."),
        "Adequate insulin sensitivity.",
        aliases=["Insulin", "Insulina", "IRI"],
    ),
    "TOTAL_CHOLESTEROL": MarkerReference(
        "Total Cholesterol", "mg/dL", 120, 190,
        ("Possible malnutrition or hyperthyroidism.", "Review dietary fat intake."),
        ("Cardiovascular risk.", "Reduce saturated fat and review lipid fractions."),
        "Total cholesterol within target.",
        aliases=["Colesterol Total", "CHOL"],
    ),
    "HDL": MarkerReference(
        "HDL Cholesterol", "mg/dL", 45, 100,
        ("Reduced cardiovascular protection.", "Aerobic exercise and unsaturated fats."),
        ("Usually protective.", "No action needed in most cases."),
        "Protective HDL level.",
        aliases=["HDL-c"],
    ),
    "LDL": MarkerReference(
        "LDL Cholesterol", "mg/dL", 0, 130,
        ("Very low LDL.", "Clinical correlation."),
        ("Atherogenic risk.", "Dietary adjustment and medical follow-up."),
        "LDL within target.",
        aliases=["LDL-c"],
    ),
    "TRIGLYCERIDES": MarkerReference(
        "Triglycerides", "mg/dL", 50, 150,
        ("Low triglycerides.", "Check caloric intake."),
        ("Hypertriglyceridemia.", "Cut sugars and alcohol, add omega-3."),
        "Triglycerides within target.",
        aliases=["Triglicerideos", "Triglicérides", "TRIG"],
    ),
    "AST": MarkerReference(
        "AST (TGO)", "U/L", 10, 35,
        ("Low AST, rarely significant.", "Clinical correlation."),
        ("Liver or muscle injury.", "Investigate liver function."),
        "Normal liver enzyme.",
        aliases=["TGO", "AST"],
    ),
    "ALT": MarkerReference(
        "ALT (TGP)", "U/L", 10, 35,
        ("Low ALT, rarely significant.", "Clinical correlation."),
        ("Hepatocellular injury.", "Investigate fatty liver and hepatotoxic drugs."),
        "Normal liver enzyme.",
        aliases=["TGP", "ALT"],
    ),
    "GGT": MarkerReference(
        "Gamma-GT (GGT)", "U/L", 10, 50,
        ("Low GGT, rarely significant.", "Clinical correlation."),
        ("Cholestasis or alcohol use.", "Review alcohol intake and liver function."),
        "Normal GGT.",
        aliases=["GGT", "Gama-GT"],
    ),
    "CREATININE": MarkerReference(
        "Creatinine", "mg/dL", 0.6, 1.2,
        ("Low muscle mass.", "Evaluate protein intake and muscle mass."),
        ("Reduced kidney function.", "Evaluate glomerular filtration rate."),
        "Normal kidney function.",
        aliases=["Creatinina", "CREA"],
    ),
    "UREA": MarkerReference(
        "Urea", "mg/dL", 15, 45,
        ("Low protein intake or liver disease.", "Review protein intake."),
        ("Dehydration or kidney dysfunction.", "Check hydration and kidney function."),
        "Normal urea.",
        aliases=["Ureia", "Urea"],
    ),
    "SODIUM": MarkerReference(
        "Sodium", "mEq/L", 135, 145,
        ("Hyponatremia.", "Evaluate fluid balance."),
        ("Hypernatremia.", "Evaluate hydration."),
        "Normal sodium.",
        aliases=["Sodio", "Sódio", "Na"],
    ),
    "POTASSIUM": MarkerReference(
        "Potassium", "mEq/L", 3.5, 5.1,
        ("Hypokalemia.", "Review diuretics and potassium intake."),
        ("Hyperkalemia.", "Urgent clinical evaluation."),
        "Normal potassium.",
        aliases=["Potassio", "Potássio", "K"],
    ),
    "VITAMIN_D": MarkerReference(
        "Vitamin D (25-OH)", "ng/mL", 30, 100,
        ("Vitamin D insufficiency.", "Sun exposure and supplementation under supervision."),
        ("Possible toxicity.", "Review supplementation."),
        "Adequate vitamin D.",
        aliases=["Vitamina D", "25-OH Vitamin D", "25OHD"],
    ),
    "TSH": MarkerReference(
        "TSH", "uIU/mL", 0.4, 4.0,
        ("Possible hyperthyroidism.", "Evaluate free T4."),
        ("Possible hypothyroidism.", "Evaluate free T4 and antibodies."),
        "Normal thyroid stimulation.",
        aliases=["Tireotrofina"],
    ),
}


def find_reference(name: str) -> Optional[MarkerReference]:
    """Case-insensitive match on the marker name or one of its aliases."""
    wanted = name.strip().upper()
    for ref in REFERENCE_MARKERS.values():
        if ref.name.upper() == wanted or any(a.upper() == wanted for a in ref.aliases):
            return ref
    return None


def parse_value(raw: Union[float, int, str, None]) -> float:
    # Accepts "5,4" as well as "5.4"
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        try:
            value = float(str(raw).strip().replace(",", "."))
        except ValueError:
            return 0.0
    return 0.0 if math.isnan(value) else value


def interpret(name: str, raw_value: Union[float, str], unit: Optional[str] = None) -> ExamMarker:
    ref = find_reference(name)
    value = parse_value(raw_value)
    if ref is None:
        return ExamMarker(name=name, value=value, unit=unit or "un")

    marker = ExamMarker(
        name=ref.name,
        value=value,
        unit=unit or ref.unit,
        reference=ReferenceRange(min=ref.min, max=ref.max, label=f"{ref.min} - {ref.max} {ref.unit}"),
    )
    if value < ref.min:
        risk, suggestion = ref.low
        interpretation = MarkerInterpretation.LOW
    elif value > ref.max:
        risk, suggestion = ref.high
        interpretation = MarkerInterpretation.HIGH
    else:
        risk, suggestion = "Desirable", ref.normal
        interpretation = MarkerInterpretation.NORMAL
    return marker.model_copy(update={"interpretation": interpretation, "risk": risk, "suggestion": suggestion})


def process_markers(raw_markers: Iterable) -> List[ExamMarker]:
    """Interpret raw ``{name, value, unit}`` entries (dicts or objects)."""
    processed = []
    for raw in raw_markers:
        if isinstance(raw, dict):
            processed.append(interpret(raw["name"], raw.get("value"), raw.get("unit")))
        else:
            processed.append(interpret(raw.name, raw.value, getattr(raw, "unit", None)))
    return processed


def exam_score(markers: List[ExamMarker]) -> float:
    """100 when every marker is normal, minus an equal share per altered marker."""
    if not markers:
        return 0
    altered = sum(1 for m in markers if m.interpretation != MarkerInterpretation.NORMAL)
    return max(0.0, 100 - altered * (100 / len(markers)))
