from sqlmodel import SQLModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, date

from controlclin.core.utils import generate_id, utcnow
from .enums import (
    FinancialStatus,
    Gender,
    PatientStatus,
    PaymentMethod,
    PaymentMode,
    PlanStatus,
    SkinfoldProtocol,
)


class Anthropometry(SQLModel):
    weight: Optional[float] = None # kg
    height: Optional[float] = None # m or cm, normalized on use

    skinfold_triceps: Optional[float] = None
    skinfold_subscapular: Optional[float] = None
    skinfold_biceps: Optional[float] = None
    skinfold_chest: Optional[float] = None
    skinfold_axillary: Optional[float] = None
    skinfold_suprailiac: Optional[float] = None
    skinfold_abdominal: Optional[float] = None
    skinfold_thigh: Optional[float] = None
    skinfold_calf: Optional[float] = None
    skinfold_protocol: SkinfoldProtocol = SkinfoldProtocol.JACKSON_POLLOCK_7

    circ_neck: Optional[float] = None
    circ_chest: Optional[float] = None
    circ_waist: Optional[float] = None
    circ_abdomen: Optional[float] = None
    circ_hip: Optional[float] = None
    circ_arm_relaxed: Optional[float] = None
    circ_arm_contracted: Optional[float] = None
    circ_forearm: Optional[float] = None
    circ_thigh: Optional[float] = None
    circ_calf: Optional[float] = None

    # Derived by the body composition calculator
    bmi: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    fat_mass: Optional[float] = None
    lean_mass: Optional[float] = None
    waist_to_hip_ratio: Optional[float] = None

    notes: Optional[str] = None


class AnthropometryRecord(Anthropometry):
    recorded_at: date


class ClinicalSummary(SQLModel):
    clinical_goal: str = ""
    active_diagnoses: List[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


class ClinicalHistory(SQLModel):
    pathologies: List[str] = Field(default_factory=list)
    medications: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    habits: str = ""
    symptoms: str = ""


class FinancialTransaction(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("tx"))
    occurred_on: date
    description: str
    amount: float
    method: PaymentMethod = PaymentMethod.CASH
    status: FinancialStatus = FinancialStatus.PENDING
    appointment_id: Optional[str] = None
    authorization_code: Optional[str] = None


class FinancialInfo(SQLModel):
    mode: PaymentMode = PaymentMode.PRIVATE
    insurance_name: Optional[str] = None
    insurance_card_number: Optional[str] = None
    transactions: List[FinancialTransaction] = Field(default_factory=list)


class ClinicalNote(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("note"))
    created_at: datetime = Field(default_factory=utcnow)
    author_name: str
    content: str


class TimelineEvent(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("tl"))
    occurred_on: date
    type: str
    title: str
    description: Optional[str] = None
    author_name: Optional[str] = None
    professional_id: Optional[str] = None


class MealItem(SQLModel):
    food_id: str
    name: str
    quantity: float
    unit: str = "g"
    calculated_calories: float = 0
    calculated_protein: float = 0
    calculated_carbs: float = 0
    calculated_fat: float = 0


class Meal(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("meal"))
    name: str
    time: Optional[str] = None
    items: List[MealItem] = Field(default_factory=list)


class MacroTargets(SQLModel):
    protein_g: float = 0
    carbs_g: float = 0
    fat_g: float = 0


class NutritionalPlan(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("plan"))
    title: Optional[str] = None
    status: PlanStatus = PlanStatus.ACTIVE
    author_id: Optional[str] = None
    strategy_name: str = ""
    methodology: str = "FOODS"
    caloric_target: float = 0
    macro_targets: MacroTargets = Field(default_factory=MacroTargets)
    meals: List[Meal] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class Patient(SQLModel):
    id: str = Field(default_factory=lambda: generate_id("pt"))
    tenant_id: str
    assigned_professional_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Gender = Gender.OTHER
    status: PatientStatus = PatientStatus.ACTIVE

    clinical_summary: Optional[ClinicalSummary] = None
    clinical_history: Optional[ClinicalHistory] = None
    anthropometry: Optional[Anthropometry] = None
    anthropometry_history: List[AnthropometryRecord] = Field(default_factory=list)
    nutritional_plans: List[NutritionalPlan] = Field(default_factory=list)
    financial: FinancialInfo = Field(default_factory=FinancialInfo)
    clinical_notes: List[ClinicalNote] = Field(default_factory=list)
    timeline_events: List[TimelineEvent] = Field(default_factory=list)
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=utcnow)
