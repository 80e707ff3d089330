from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    CLINIC_ADMIN = "CLINIC_ADMIN"
    PROFESSIONAL = "PROFESSIONAL"
    SECRETARY = "SECRETARY"


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    MISSED = "MISSED"


class AppointmentType(str, Enum):
    ASSESSMENT = "ASSESSMENT"
    RETURN = "RETURN"
    ROUTINE = "ROUTINE"


class PatientStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class FinancialStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELED = "CANCELED"
    DENIED = "DENIED"
    AWAITING_AUTHORIZATION = "AWAITING_AUTHORIZATION"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    PIX = "PIX"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_SLIP = "BANK_SLIP"
    INSURANCE = "INSURANCE"


class PaymentMode(str, Enum):
    PRIVATE = "PRIVATE"
    INSURANCE = "INSURANCE"


class PlanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"


class SkinfoldProtocol(str, Enum):
    JACKSON_POLLOCK_7 = "JacksonPollock7"
    JACKSON_POLLOCK_3 = "JacksonPollock3"
    GUEDES = "Guedes"
    DURNIN_WOMERSLEY = "DurninWomersley"
    FAULKNER = "Faulkner"
    ISAK = "ISAK"


class ExamStatus(str, Enum):
    PENDING = "PENDING"
    ANALYZED = "ANALYZED"


class MarkerInterpretation(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"


class AlertType(str, Enum):
    RETURN_OVERDUE = "RETURN_OVERDUE"
    EXAM_ATTENTION = "EXAM_ATTENTION"
    RECURRING_ABSENCE = "RECURRING_ABSENCE"
    GOAL_EXPIRED = "GOAL_EXPIRED"
    MISSED_CRITICAL = "MISSED_CRITICAL"
    ANTHROPOMETRY_OVERDUE = "ANTHROPOMETRY_OVERDUE"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AlertStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"


class EventType(str, Enum):
    PATIENT_UPDATED = "PATIENT_UPDATED"
    ANTHRO_RECORDED = "ANTHRO_RECORDED"
    EXAM_UPLOADED = "EXAM_UPLOADED"
    NOTE_ADDED = "NOTE_ADDED"
    DIAGNOSIS_UPDATED = "DIAGNOSIS_UPDATED"
    MEDICATION_UPDATED = "MEDICATION_UPDATED"
    PLAN_CREATED = "PLAN_CREATED"
    PLAN_UPDATED = "PLAN_UPDATED"
    APPOINTMENT_STATUS = "APPOINTMENT_STATUS"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    CUSTOM = "CUSTOM"
    BACKFILL_INIT = "BACKFILL_INIT"
