"""
Body composition from anthropometric measurements.

Body density equations by skinfold protocol, converted to fat percentage with
the Siri equation (495 / density - 450). Faulkner is a direct linear estimate
of fat percentage. ISAK is a measurement set without an equation.
"""
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from controlclin.core.utils import calculate_age
from controlclin.db.models import Anthropometry, Gender, Patient, SkinfoldProtocol

CHEST = "skinfold_chest"
AXILLARY = "skinfold_axillary"
TRICEPS = "skinfold_triceps"
SUBSCAPULAR = "skinfold_subscapular"
ABDOMINAL = "skinfold_abdominal"
SUPRAILIAC = "skinfold_suprailiac"
THIGH = "skinfold_thigh"
BICEPS = "skinfold_biceps"
CALF = "skinfold_calf"

PROTOCOL_FOLDS: Dict[SkinfoldProtocol, Callable[[bool], List[str]]] = {
    SkinfoldProtocol.JACKSON_POLLOCK_7: lambda male: [CHEST, AXILLARY, TRICEPS, SUBSCAPULAR, ABDOMINAL, SUPRAILIAC, THIGH],
    SkinfoldProtocol.JACKSON_POLLOCK_3: lambda male: [CHEST, ABDOMINAL, THIGH] if male else [TRICEPS, SUPRAILIAC, THIGH],
    SkinfoldProtocol.DURNIN_WOMERSLEY: lambda male: [BICEPS, TRICEPS, SUBSCAPULAR, SUPRAILIAC],
    SkinfoldProtocol.FAULKNER: lambda male: [TRICEPS, SUBSCAPULAR, SUPRAILIAC, ABDOMINAL],
    SkinfoldProtocol.GUEDES: lambda male: [TRICEPS, SUPRAILIAC, ABDOMINAL] if male else [THIGH, SUPRAILIAC, SUBSCAPULAR],
    SkinfoldProtocol.ISAK: lambda male: [TRICEPS, BICEPS, SUBSCAPULAR, SUPRAILIAC, ABDOMINAL, THIGH, CALF, AXILLARY, CHEST],
}

# Durnin & Womersley (c, m) by age bracket upper bound
_DW_MALE: List[Tuple[int, float, float]] = [
    (20, 1.1620, 0.0630), (30, 1.1631, 0.0632), (40, 1.1422, 0.0544), (50, 1.1333, 0.0612),
]
_DW_MALE_50_PLUS = (1.1715, 0.0779)
_DW_FEMALE: List[Tuple[int, float, float]] = [
    (20, 1.1549, 0.0678), (30, 1.1599, 0.0717), (40, 1.1423, 0.0632), (50, 1.1333, 0.0612),
]
_DW_FEMALE_50_PLUS = (1.1339, 0.0645)


@dataclass
class BodyComposition:
    bmi: float = 0
    body_fat_percentage: float = 0
    fat_mass: float = 0
    lean_mass: float = 0
    waist_to_hip_ratio: float = 0
    height_m: float = 0
    height_cm: float = 0
    protocol: SkinfoldProtocol = SkinfoldProtocol.JACKSON_POLLOCK_7
    warnings: List[str] = field(default_factory=list)


def normalize_height(height: Optional[float]) -> Tuple[float, float]:
    """Return (meters, centimeters). Values above 3 are taken as centimeters."""
    if not height or height <= 0 or math.isnan(height):
        return 0.0, 0.0
    if 3 < height <= 300:
        return height / 100, height
    return height, height * 100


def required_folds(protocol: SkinfoldProtocol, gender: Gender) -> List[str]:
    return PROTOCOL_FOLDS[protocol](gender == Gender.MALE)


def has_all_folds(anthro: Anthropometry, folds: List[str]) -> bool:
    for name in folds:
        value = getattr(anthro, name)
        if value is None or not value > 0:
            return False
    return True


def _siri(density: float) -> float:
    if density <= 0:
        return 0
    return 495 / density - 450


def _durnin_coefficients(age: int, male: bool) -> Tuple[float, float]:
    table, oldest = (_DW_MALE, _DW_MALE_50_PLUS) if male else (_DW_FEMALE, _DW_FEMALE_50_PLUS)
    for upper, c, m in table:
        if age < upper:
            return c, m
    return oldest


def body_fat_percentage(anthro: Anthropometry, gender: Gender, age: int) -> float:
    """Fat percentage for the record's protocol, 0 when any required fold is missing."""
    protocol = anthro.skinfold_protocol or SkinfoldProtocol.JACKSON_POLLOCK_7
    male = gender == Gender.MALE
    folds = PROTOCOL_FOLDS[protocol](male)
    if not has_all_folds(anthro, folds):
        return 0
    total = sum(getattr(anthro, name) for name in folds)

    if protocol == SkinfoldProtocol.JACKSON_POLLOCK_7:
        if age <= 0:
            return 0
        if male:
            density = 1.112 - 0.00043499 * total + 0.00000055 * total ** 2 - 0.00028826 * age
        else:
            density = 1.097 - 0.00046971 * total + 0.00000056 * total ** 2 - 0.00012828 * age
        fat = _siri(density)
    elif protocol == SkinfoldProtocol.JACKSON_POLLOCK_3:
        if male:
            density = 1.10938 - 0.0008267 * total + 0.0000016 * total ** 2 - 0.0002574 * age
        else:
            density = 1.0994921 - 0.0009929 * total + 0.0000023 * total ** 2 - 0.0001392 * age
        fat = _siri(density)
    elif protocol == SkinfoldProtocol.GUEDES:
        if male:
            density = 1.17136 - 0.06706 * math.log10(total)
        else:
            density = 1.16650 - 0.07063 * math.log10(total)
        fat = _siri(density)
    elif protocol == SkinfoldProtocol.DURNIN_WOMERSLEY:
        c, m = _durnin_coefficients(age, male)
        fat = _siri(c - m * math.log10(total))
    elif protocol == SkinfoldProtocol.FAULKNER:
        fat = total * 0.153 + 5.783
    else:
        fat = 0

    if math.isnan(fat):
        return 0
    return max(0.0, round(fat, 1))


def compute(anthro: Anthropometry, gender: Gender, age: int) -> BodyComposition:
    result = BodyComposition(protocol=anthro.skinfold_protocol or SkinfoldProtocol.JACKSON_POLLOCK_7)
    result.height_m, result.height_cm = normalize_height(anthro.height)

    weight = anthro.weight or 0
    if weight and result.height_m > 0:
        result.bmi = round(weight / (result.height_m * result.height_m), 1)
    else:
        result.warnings.append("Weight and height are required for BMI.")

    folds = required_folds(result.protocol, gender)
    if not has_all_folds(anthro, folds):
        result.warnings.append(f"Incomplete skinfolds for {result.protocol.value}; body fat not computed.")
    result.body_fat_percentage = body_fat_percentage(anthro, gender, age)

    if weight and result.body_fat_percentage:
        result.fat_mass = round(weight * result.body_fat_percentage / 100, 1)
    if weight and result.fat_mass:
        result.lean_mass = round(weight - result.fat_mass, 1)

    if anthro.circ_waist and anthro.circ_hip:
        result.waist_to_hip_ratio = round(anthro.circ_waist / anthro.circ_hip, 2)
    return result


def apply(anthro: Anthropometry, gender: Gender, age: int) -> Anthropometry:
    """Copy of ``anthro`` with the derived fields filled in."""
    comp = compute(anthro, gender, age)
    return anthro.model_copy(update={
        "bmi": comp.bmi,
        "body_fat_percentage": comp.body_fat_percentage,
        "fat_mass": comp.fat_mass,
        "lean_mass": comp.lean_mass,
        "waist_to_hip_ratio": comp.waist_to_hip_ratio,
    })


def snapshot_for_patient(patient: Patient, today: Optional[date] = None) -> Tuple[Optional[dict], List[str]]:
    anthro = patient.anthropometry
    if not anthro or not anthro.weight or not anthro.height:
        return None, ["Insufficient data: weight and height are required."]
    age = calculate_age(patient.birth_date, today)
    comp = compute(anthro, patient.gender, age)
    snapshot = {
        "patient": {"name": patient.name, "gender": patient.gender.value, "age": age},
        "weight_kg": anthro.weight,
        "height_m": comp.height_m,
        "circumferences_cm": {
            "neck": anthro.circ_neck,
            "chest": anthro.circ_chest,
            "waist": anthro.circ_waist,
            "abdomen": anthro.circ_abdomen,
            "hip": anthro.circ_hip,
            "arm": anthro.circ_arm_contracted,
            "thigh": anthro.circ_thigh,
            "calf": anthro.circ_calf,
        },
        "body_composition": {
            "bmi": comp.bmi,
            "body_fat_pct": comp.body_fat_percentage,
            "fat_mass_kg": comp.fat_mass,
            "lean_mass_kg": comp.lean_mass,
            "whr": comp.waist_to_hip_ratio,
            "protocol": comp.protocol.value,
        },
    }
    return snapshot, comp.warnings
