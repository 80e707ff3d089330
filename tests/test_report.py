from datetime import date, datetime, timedelta

import pytest

from controlclin.core.exceptions import NotFound
from controlclin.db.models import (
    Appointment,
    AppointmentStatus,
    EventType,
    FinancialInfo,
    FinancialStatus,
    FinancialTransaction,
    PatientEvent,
)
from controlclin.services.access import AccessMode, AccessScope
from controlclin.services.report_service import ReportService

NOW = datetime(2026, 6, 1, 12, 0)


def _appointment(start: datetime, status: AppointmentStatus) -> Appointment:
    return Appointment(
        tenant_id="c1", professional_id="p2", patient_id="pt2",
        start_time=start, end_time=start + timedelta(minutes=30), status=status,
    )


@pytest.fixture
def followed_patient(store):
    for start, status in [
        (datetime(2026, 3, 2, 10), AppointmentStatus.COMPLETED),
        (datetime(2026, 4, 6, 10), AppointmentStatus.MISSED),
        (datetime(2026, 6, 5, 10), AppointmentStatus.CANCELED),
        (datetime(2026, 7, 10, 10), AppointmentStatus.SCHEDULED),
        (datetime(2026, 6, 10, 10), AppointmentStatus.SCHEDULED),
    ]:
        store.state.appointments.add(_appointment(start, status))

    transactions = [
        FinancialTransaction(occurred_on=date(2026, 3, 2), description="Visit", amount=150, status=FinancialStatus.PAID),
        FinancialTransaction(occurred_on=date(2026, 4, 6), description="Visit", amount=50),
        FinancialTransaction(occurred_on=date(2026, 4, 6), description="Insurance", amount=30,
                             status=FinancialStatus.AWAITING_AUTHORIZATION),
        FinancialTransaction(occurred_on=date(2026, 4, 6), description="Voided", amount=99,
                             status=FinancialStatus.CANCELED),
    ]
    store.state.patients.update("pt2", financial=FinancialInfo(transactions=transactions).model_dump())
    store.state.events.add(PatientEvent(tenant_id="c1", patient_id="pt2", type=EventType.BACKFILL_INIT,
                                        created_at=datetime(2025, 1, 10)))
    store.state.events.add(PatientEvent(tenant_id="c1", patient_id="pt2", type=EventType.CUSTOM,
                                        created_at=datetime(2026, 3, 2)))
    return store


class TestIndividualReport:
    async def test_metrics_and_financials(self, followed_patient, clinic_admin):
        report = await ReportService(followed_patient).build_individual_report("pt2", clinic_admin, now=NOW)

        assert report.metrics.total_appointments == 5
        assert report.metrics.attendance_rate == 20
        assert report.metrics.next_appointment_at == datetime(2026, 6, 10, 10)
        assert report.metrics.patient_since == date(2025, 1, 10)
        assert report.financial.total_paid == 150
        assert report.financial.total_pending == 80
        assert report.generated_at == NOW
        assert [e.type for e in report.timeline] == [EventType.CUSTOM, EventType.BACKFILL_INIT]

    async def test_missing_measurements_are_reported(self, followed_patient, clinic_admin):
        report = await ReportService(followed_patient).build_individual_report("pt2", clinic_admin, now=NOW)

        assert not report.anthropometry.has_sufficient_data
        assert report.anthropometry.current is None
        assert report.nutritional.active_plan_title is None
        assert report.nutritional.targets is None

    async def test_plan_and_clinical_context(self, store, clinic_admin):
        report = await ReportService(store).build_individual_report("pt1", clinic_admin, now=NOW)

        assert report.nutritional.active_plan_title == "Initial strategy"
        assert report.nutritional.targets == {"kcal": 2405, "protein_g": 200, "carbs_g": 176, "fat_g": 100}
        assert report.anthropometry.has_sufficient_data
        assert report.anthropometry.current["patient"]["age"] == 73
        assert "Hypertension" in report.clinical.active_diagnoses
        assert report.metrics.total_appointments == 0
        assert report.metrics.attendance_rate == 0

    async def test_scope_hides_patient(self, store, clinic_admin):
        with pytest.raises(NotFound):
            await ReportService(store).build_individual_report(
                "pt1", clinic_admin, AccessScope(mode=AccessMode.PROFESSIONAL, professional_id="p2"), now=NOW
            )
