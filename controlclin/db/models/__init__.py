from sqlmodel import SQLModel
from .enums import (
    AlertSeverity,
    AlertStatus,
    AlertType,
    AppointmentStatus,
    AppointmentType,
    EventType,
    ExamStatus,
    FinancialStatus,
    Gender,
    MarkerInterpretation,
    PatientStatus,
    PaymentMethod,
    PaymentMode,
    PlanStatus,
    Role,
    SkinfoldProtocol,
)
from .tenant import Clinic, AIConfig, ScheduleConfig
from .user import User
from .professional import Professional
from .patient import (
    Anthropometry,
    AnthropometryRecord,
    ClinicalHistory,
    ClinicalNote,
    ClinicalSummary,
    FinancialInfo,
    FinancialTransaction,
    MacroTargets,
    Meal,
    MealItem,
    NutritionalPlan,
    Patient,
    TimelineEvent,
)
from .appointment import Appointment
from .exam import Exam, ExamAnalysisResult, ExamMarker, MarkerFinding, ReferenceRange
from .alert import ClinicalAlert
from .patient_event import EventActor, PatientEvent
from .clinical_document import Assessment, ExamRequest, Prescription, PrescriptionItem
from .storage import Credential, StateBlob

__all__ = [
    "SQLModel",
    "AlertSeverity",
    "AlertStatus",
    "AlertType",
    "AppointmentStatus",
    "AppointmentType",
    "EventType",
    "ExamStatus",
    "FinancialStatus",
    "Gender",
    "MarkerInterpretation",
    "PatientStatus",
    "PaymentMethod",
    "PaymentMode",
    "PlanStatus",
    "Role",
    "SkinfoldProtocol",
    "Clinic",
    "AIConfig",
    "ScheduleConfig",
    "User",
    "Professional",
    "Anthropometry",
    "AnthropometryRecord",
    "ClinicalHistory",
    "ClinicalNote",
    "ClinicalSummary",
    "FinancialInfo",
    "FinancialTransaction",
    "MacroTargets",
    "Meal",
    "MealItem",
    "NutritionalPlan",
    "Patient",
    "TimelineEvent",
    "Appointment",
    "Exam",
    "ExamAnalysisResult",
    "ExamMarker",
    "MarkerFinding",
    "ReferenceRange",
    "ClinicalAlert",
    "EventActor",
    "PatientEvent",
    "Assessment",
    "ExamRequest",
    "Prescription",
    "PrescriptionItem",
    "Credential",
    "StateBlob",
]
