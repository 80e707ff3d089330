from datetime import datetime, timedelta

import pytest

from controlclin.core.exceptions import (
    CompensatedTransactionError,
    PermissionDenied,
    StorageQuotaExceeded,
    ValidationFailed,
)
from controlclin.db.models import AppointmentStatus, EventType, FinancialStatus
from controlclin.schemas.appointment import AppointmentCreate, AppointmentUpdate
from controlclin.services.appointment_service import AppointmentService

# Monday, inside the seed clinic's 08:00-18:00 window
MONDAY_10 = datetime(2030, 3, 4, 10, 0)


def _request(**overrides) -> AppointmentCreate:
    values = dict(
        patient_id="pt2",
        professional_id="p2",
        start_time=MONDAY_10,
        end_time=MONDAY_10 + timedelta(minutes=30),
    )
    values.update(overrides)
    return AppointmentCreate(**values)


@pytest.fixture
def service(store):
    return AppointmentService(store)


class TestCreateAppointment:
    async def test_price_records_linked_transaction(self, store, service, clinic_admin):
        appointment = await service.create_appointment(
            "c1", _request(price=150, financial_status=FinancialStatus.PAID), clinic_admin
        )

        patient = store.state.patients.get("pt2")
        linked = [t for t in patient.financial.transactions if t.appointment_id == appointment.id]
        assert len(linked) == 1
        assert linked[0].amount == 150
        assert linked[0].status == FinancialStatus.PAID
        assert appointment.patient_name == "Mariana Souza"

        persisted = store.local.load_all()
        assert any(a["id"] == appointment.id for a in persisted["appointments"])

    async def test_no_price_no_transaction(self, store, service, clinic_admin):
        await service.create_appointment("c1", _request(), clinic_admin)
        assert store.state.patients.get("pt2").financial.transactions == []

    async def test_failed_payment_rolls_back_appointment(self, store, service, clinic_admin, monkeypatch):
        async def broken_add_transaction(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(service.patients, "add_transaction", broken_add_transaction)

        with pytest.raises(CompensatedTransactionError) as exc_info:
            await service.create_appointment("c1", _request(price=200), clinic_admin)

        error = exc_info.value
        assert "Recording the appointment payment failed" in error.detail
        assert "disk on fire" in error.detail
        assert "was not scheduled" in error.detail
        assert isinstance(error.cause, RuntimeError)

        assert len(store.state.appointments) == 0
        assert store.state.patients.get("pt2").financial.transactions == []
        assert not store.state.events.filter(lambda e: e.type == EventType.APPOINTMENT_STATUS)
        assert store.local.load_all()["appointments"] == []

    async def test_full_disk_on_payment_leaves_no_trace(self, store, service, clinic_admin, monkeypatch):
        real_save_all = store.local.save_all
        calls = []

        def save_all(state):
            calls.append(state)
            if len(calls) == 2:
                raise StorageQuotaExceeded(10_000, 100)
            real_save_all(state)

        monkeypatch.setattr(store.local, "save_all", save_all)

        with pytest.raises(CompensatedTransactionError) as exc_info:
            await service.create_appointment("c1", _request(price=200), clinic_admin)
        assert isinstance(exc_info.value.cause, StorageQuotaExceeded)

        assert len(store.state.appointments) == 0
        assert store.state.patients.get("pt2").financial.transactions == []
        assert not store.state.events.filter(lambda e: e.patient_id == "pt2")

        persisted = store.local.load_all()
        assert persisted["appointments"] == []
        assert not [e for e in persisted["events"] if e["patient_id"] == "pt2"]

    async def test_payment_event_names_its_appointment(self, store, service, clinic_admin):
        appointment = await service.create_appointment("c1", _request(price=90), clinic_admin)

        payments = store.state.events.filter(lambda e: e.type == EventType.PAYMENT_RECORDED)
        assert [e.payload["appointment_id"] for e in payments] == [appointment.id]

    async def test_outside_opening_hours(self, service, clinic_admin):
        early = MONDAY_10.replace(hour=7)
        with pytest.raises(ValidationFailed):
            await service.create_appointment(
                "c1", _request(start_time=early, end_time=early + timedelta(minutes=30)), clinic_admin
            )

    async def test_closed_day(self, service, clinic_admin):
        sunday = MONDAY_10 - timedelta(days=1)
        with pytest.raises(ValidationFailed):
            await service.create_appointment(
                "c1", _request(start_time=sunday, end_time=sunday + timedelta(minutes=30)), clinic_admin
            )

    async def test_start_must_precede_end(self, service, clinic_admin):
        with pytest.raises(ValidationFailed):
            await service.create_appointment("c1", _request(end_time=MONDAY_10), clinic_admin)

    async def test_unknown_patient(self, service, clinic_admin):
        with pytest.raises(ValidationFailed):
            await service.create_appointment("c1", _request(patient_id="nope"), clinic_admin)

    async def test_professional_books_only_own_agenda(self, service, professional):
        with pytest.raises(PermissionDenied):
            await service.create_appointment("c1", _request(professional_id="p3"), professional)


class TestUpdateAppointment:
    async def test_price_change_updates_linked_transaction(self, store, service, clinic_admin):
        appointment = await service.create_appointment("c1", _request(price=100), clinic_admin)
        await service.update_appointment(appointment.id, AppointmentUpdate(price=180), clinic_admin)

        linked = [t for t in store.state.patients.get("pt2").financial.transactions
                  if t.appointment_id == appointment.id]
        assert [t.amount for t in linked] == [180]

    async def test_status_change_is_logged(self, store, service, clinic_admin):
        appointment = await service.create_appointment("c1", _request(), clinic_admin)
        await service.update_appointment(
            appointment.id, AppointmentUpdate(status=AppointmentStatus.COMPLETED), clinic_admin
        )
        summaries = [e.summary for e in store.state.events.filter(lambda e: e.patient_id == "pt2")]
        assert "Status changed to COMPLETED" in summaries

    async def test_failed_payment_on_update_is_not_compensated(self, store, service, clinic_admin, monkeypatch):
        appointment = await service.create_appointment("c1", _request(), clinic_admin)

        async def broken_add_transaction(*args, **kwargs):
            raise RuntimeError("ledger offline")

        monkeypatch.setattr(service.patients, "add_transaction", broken_add_transaction)
        with pytest.raises(RuntimeError):
            await service.update_appointment(appointment.id, AppointmentUpdate(price=90), clinic_admin)

        assert store.state.appointments.get(appointment.id).price == 90


class TestQueries:
    async def test_list_in_range_is_sorted(self, service, clinic_admin):
        later = await service.create_appointment(
            "c1", _request(start_time=MONDAY_10 + timedelta(hours=2),
                           end_time=MONDAY_10 + timedelta(hours=2, minutes=30)), clinic_admin
        )
        earlier = await service.create_appointment("c1", _request(), clinic_admin)

        found = await service.list_appointments(
            "c1", MONDAY_10 - timedelta(hours=1), MONDAY_10 + timedelta(hours=5), clinic_admin
        )
        assert [a.id for a in found] == [earlier.id, later.id]

    async def test_upcoming_skips_canceled(self, service, clinic_admin):
        kept = await service.create_appointment("c1", _request(), clinic_admin)
        await service.create_appointment(
            "c1", _request(status=AppointmentStatus.CANCELED, start_time=MONDAY_10 + timedelta(hours=1),
                           end_time=MONDAY_10 + timedelta(hours=1, minutes=30)), clinic_admin
        )
        upcoming = await service.upcoming_appointments("c1", clinic_admin)
        assert [a.id for a in upcoming] == [kept.id]
