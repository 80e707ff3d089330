from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import date

from controlclin.db.models import (
    Anthropometry,
    ClinicalHistory,
    ClinicalSummary,
    FinancialInfo,
    FinancialStatus,
    Gender,
    MacroTargets,
    Meal,
    PatientStatus,
    PaymentMethod,
    PlanStatus,
)

class PatientCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Gender = Gender.OTHER
    assigned_professional_id: Optional[str] = None
    clinical_summary: Optional[ClinicalSummary] = None
    clinical_history: Optional[ClinicalHistory] = None
    financial: Optional[FinancialInfo] = None

class PatientUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    status: Optional[PatientStatus] = None
    assigned_professional_id: Optional[str] = None
    clinical_summary: Optional[ClinicalSummary] = None
    clinical_history: Optional[ClinicalHistory] = None
    anthropometry: Optional[Anthropometry] = None
    meta: Optional[Dict[str, Any]] = None

class AnthropometryInput(Anthropometry):
    recorded_at: Optional[date] = None

class TransactionCreate(BaseModel):
    occurred_on: Optional[date] = None
    description: str
    amount: float
    method: PaymentMethod = PaymentMethod.CASH
    status: FinancialStatus = FinancialStatus.PENDING
    appointment_id: Optional[str] = None
    authorization_code: Optional[str] = None

class ClinicalNoteCreate(BaseModel):
    content: str

class NutritionalPlanUpsert(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    status: PlanStatus = PlanStatus.ACTIVE
    strategy_name: str = ""
    methodology: str = "FOODS"
    caloric_target: float = 0
    macro_targets: MacroTargets = MacroTargets()
    meals: List[Meal] = []

class PlanTotals(BaseModel):
    calories: float = 0
    protein_g: float = 0
    carbs_g: float = 0
    fat_g: float = 0

class PlanCritique(BaseModel):
    plan_id: str
    totals: PlanTotals
    targets: PlanTotals
    comments: List[str] = []
    text: str = ""
    is_fallback: bool = False
