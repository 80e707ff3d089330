# db/seed.py
from datetime import date
from typing import Any, Dict

from controlclin.core.utils import utcnow
from controlclin.db.models import (
    Anthropometry,
    AnthropometryRecord,
    Clinic,
    ClinicalSummary,
    Gender,
    MacroTargets,
    Meal,
    MealItem,
    NutritionalPlan,
    Patient,
    PlanStatus,
    Professional,
    Role,
    ScheduleConfig,
    SkinfoldProtocol,
    User,
)
from controlclin.db.state import ClinicState


def _clinics():
    return [
        Clinic(
            id="c1",
            name="ControlClin Excellence",
            slug="control",
            primary_color="#7c3aed",
            schedule_config=ScheduleConfig(open_time="08:00", close_time="18:00", days_open=[1, 2, 3, 4, 5], slot_duration=30),
        )
    ]


def _users():
    return [
        User(id="u0", tenant_id="system", name="Super Admin", email="root@control.com", role=Role.SUPER_ADMIN),
        User(id="u1", tenant_id="c1", name="Dr. Roberto Mendes", email="roberto@control.com", role=Role.CLINIC_ADMIN, professional_id="p1"),
        User(id="u2", tenant_id="c1", name="Dra. Camila Nutri", email="camila@control.com", role=Role.PROFESSIONAL, professional_id="p2"),
        User(id="u3", tenant_id="c1", name="Dr. Rangel Angelo", email="rangel@control.com", role=Role.PROFESSIONAL, professional_id="p3"),
    ]


def _professionals():
    return [
        Professional(id="p1", tenant_id="c1", user_id="u1", name="Dr. Roberto Mendes", email="roberto@control.com",
                     phone="999", specialty="Neurology", registration_number="CRM 123", color="bg-blue-200"),
        Professional(id="p2", tenant_id="c1", user_id="u2", name="Dra. Camila Nutri", email="camila@control.com",
                     phone="888", specialty="Nutrition", registration_number="CRN 555", color="bg-green-200"),
        Professional(id="p3", tenant_id="c1", user_id="u3", name="Dr. Rangel Angelo", email="rangel@control.com",
                     phone="777", specialty="Psychiatry", registration_number="CRM 999", color="bg-red-200"),
    ]


def _patients():
    now = utcnow()
    first_plan = NutritionalPlan(
        id="plan-pt1-v1",
        title="Initial strategy",
        status=PlanStatus.ACTIVE,
        author_id="p3",
        strategy_name="Weight loss and glycemic control",
        caloric_target=2405,
        macro_targets=MacroTargets(protein_g=200, carbs_g=176, fat_g=100),
        meals=[
            Meal(id="meal-1", name="Breakfast", time="08:00", items=[
                MealItem(food_id="f-legacy-1", name="White cheese", quantity=50, calculated_calories=132,
                         calculated_protein=8, calculated_carbs=1, calculated_fat=10),
                MealItem(food_id="f-legacy-3", name="Fried egg", quantity=60, calculated_calories=110,
                         calculated_protein=7, calculated_carbs=0.5, calculated_fat=9),
            ]),
        ],
        created_at=now,
        updated_at=now,
    )
    return [
        Patient(
            id="pt1", tenant_id="c1", name="Antonio Carlos", email="antonio@email.com", phone="111",
            birth_date=date(1953, 5, 20), gender=Gender.MALE,
            clinical_summary=ClinicalSummary(clinical_goal="Weight loss",
                                             active_diagnoses=["Type 2 diabetes", "Hypertension", "COPD"]),
            anthropometry=Anthropometry(weight=102, height=1.70, bmi=35.3, body_fat_percentage=33.6,
                                        lean_mass=67.7, fat_mass=34.3, circ_waist=100, circ_hip=105,
                                        waist_to_hip_ratio=0.97),
            nutritional_plans=[first_plan],
        ),
        Patient(id="pt2", tenant_id="c1", name="Mariana Souza", email="mari@email.com", phone="222",
                birth_date=date(2001, 8, 15), gender=Gender.FEMALE),
        Patient(
            id="pt_meire", tenant_id="c1", name="Meire Mendes", email="meire@email.com", phone="999",
            birth_date=date(1970, 1, 1), gender=Gender.FEMALE,
            clinical_summary=ClinicalSummary(clinical_goal="Weight loss and glycemic control",
                                             active_diagnoses=["Overweight"]),
            anthropometry=Anthropometry(weight=72.6, height=1.62, bmi=27.7, body_fat_percentage=33.2,
                                        fat_mass=24.1, lean_mass=48.5, circ_waist=82.5, circ_hip=104,
                                        waist_to_hip_ratio=0.79, skinfold_triceps=26, skinfold_biceps=7,
                                        skinfold_subscapular=24, skinfold_suprailiac=20,
                                        skinfold_protocol=SkinfoldProtocol.DURNIN_WOMERSLEY),
            anthropometry_history=[
                AnthropometryRecord(recorded_at=date(2025, 10, 7), weight=78.3, height=1.62, bmi=29.8,
                                    body_fat_percentage=34.7, skinfold_protocol=SkinfoldProtocol.DURNIN_WOMERSLEY),
                AnthropometryRecord(recorded_at=date(2025, 12, 4), weight=74.65, height=1.62, bmi=28.4,
                                    body_fat_percentage=33.9, skinfold_protocol=SkinfoldProtocol.DURNIN_WOMERSLEY),
                AnthropometryRecord(recorded_at=date(2026, 2, 14), weight=72.6, height=1.62, bmi=27.7,
                                    body_fat_percentage=33.2, skinfold_protocol=SkinfoldProtocol.DURNIN_WOMERSLEY),
            ],
        ),
    ]


# Used by the "looks freshly seeded" reconciliation heuristic
SEED_PATIENT_COUNT = 3


def build_seed_state() -> ClinicState:
    state = ClinicState()
    state.tenants.reset(_clinics())
    state.users.reset(_users())
    state.professionals.reset(_professionals())
    state.patients.reset(_patients())
    return state


def build_seed_payload() -> Dict[str, Any]:
    return build_seed_state().to_payload()
