from datetime import datetime
from typing import List

from controlclin.core.exceptions import CompensatedTransactionError, NotFound, PermissionDenied, ValidationFailed
from controlclin.core.logger import logger
from controlclin.core.utils import to_naive_utc, utcnow
from controlclin.db.models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    EventType,
    FinancialStatus,
    PaymentMethod,
    Role,
    User,
)
from controlclin.db.store import ClinicStore
from controlclin.schemas.appointment import AppointmentCreate, AppointmentUpdate
from controlclin.schemas.patient import TransactionCreate
from controlclin.services.access import ADMIN_SCOPE, AccessScope, ensure_tenant_access
from controlclin.services.event_service import EventService
from controlclin.services.patient_service import PatientService


def ensure_within_opening_hours(clinic: Clinic, start: datetime, end: datetime) -> None:
    config = clinic.schedule_config
    # ScheduleConfig counts days from Sunday=0, Python from Monday=0
    day = (start.weekday() + 1) % 7
    if day not in config.days_open:
        raise ValidationFailed(f"The clinic is closed on {start.strftime('%A')}")
    if start.date() != end.date():
        raise ValidationFailed("An appointment must start and end on the same day")
    if start.strftime("%H:%M") < config.open_time or end.strftime("%H:%M") > config.close_time:
        raise ValidationFailed(
            f"Appointment must be within opening hours ({config.open_time} - {config.close_time})"
        )


class AppointmentService:
    def __init__(self, store: ClinicStore):
        self.store = store
        self.patients = PatientService(store)
        self.events = EventService(store)

    def _scoped(self, tenant_id: str, scope: AccessScope) -> List[Appointment]:
        in_tenant = self.store.state.appointments.filter(lambda a: a.tenant_id == tenant_id)
        return scope.apply(in_tenant, owner=lambda a: a.professional_id)

    async def list_appointments(self, tenant_id: str, start: datetime, end: datetime, current_user: User,
                                scope: AccessScope = ADMIN_SCOPE) -> List[Appointment]:
        ensure_tenant_access(current_user, tenant_id)
        start, end = to_naive_utc(start), to_naive_utc(end)
        found = [a for a in self._scoped(tenant_id, scope) if start <= a.start_time <= end]
        return sorted(found, key=lambda a: a.start_time)

    async def upcoming_appointments(self, tenant_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE,
                                    limit: int = 5) -> List[Appointment]:
        ensure_tenant_access(current_user, tenant_id)
        now = utcnow()
        found = [
            a for a in self._scoped(tenant_id, scope)
            if a.start_time >= now and a.status != AppointmentStatus.CANCELED
        ]
        return sorted(found, key=lambda a: a.start_time)[:limit]

    async def patient_history(self, patient_id: str, current_user: User,
                              scope: AccessScope = ADMIN_SCOPE) -> List[Appointment]:
        if scope.denies_everything:
            return []
        patient = self.store.state.patients.get(patient_id)
        if not patient:
            raise NotFound("Patient not found")
        ensure_tenant_access(current_user, patient.tenant_id)
        found = scope.apply(
            self.store.state.appointments.filter(lambda a: a.patient_id == patient_id),
            owner=lambda a: a.professional_id,
        )
        return sorted(found, key=lambda a: a.start_time, reverse=True)

    async def get_appointment(self, appointment_id: str, current_user: User,
                              scope: AccessScope = ADMIN_SCOPE) -> Appointment:
        appointment = self.store.state.appointments.get(appointment_id)
        if not appointment:
            raise NotFound("Appointment not found")
        ensure_tenant_access(current_user, appointment.tenant_id)
        if not scope.allows(appointment.professional_id):
            raise NotFound("Appointment not found")
        return appointment

    async def create_appointment(self, tenant_id: str, data: AppointmentCreate, current_user: User) -> Appointment:
        """
        Schedule an appointment. A non-zero price also records a financial
        transaction on the patient; if that write fails the appointment is
        deleted again and a CompensatedTransactionError is raised.
        """
        ensure_tenant_access(current_user, tenant_id)
        state = self.store.state

        # 1. Validate
        clinic = state.tenants.get(tenant_id)
        if not clinic:
            raise NotFound("Clinic not found")
        patient = state.patients.get(data.patient_id)
        if not patient or patient.tenant_id != tenant_id:
            raise ValidationFailed("Patient not found in this clinic")
        self._check_professional(tenant_id, data.professional_id, current_user)
        start, end = to_naive_utc(data.start_time), to_naive_utc(data.end_time)
        if start >= end:
            raise ValidationFailed("Appointment start must be before its end")
        ensure_within_opening_hours(clinic, start, end)
        if data.price is not None and data.price < 0:
            raise ValidationFailed("Price cannot be negative")

        # 2. Create
        appointment = Appointment(
            tenant_id=tenant_id,
            patient_name=patient.name,
            **data.model_dump(exclude={"start_time", "end_time"}),
            start_time=start,
            end_time=end,
        )
        state.appointments.add(appointment)
        self.events.log_event(
            patient.id, EventType.APPOINTMENT_STATUS,
            {"appointment_id": appointment.id, "status": appointment.status.value},
            f"Appointment scheduled: {appointment.type.value}", current_user,
        )
        try:
            self.store.commit()
        except Exception:
            self._discard(appointment)
            raise

        # 3. Paired financial transaction
        if appointment.price:
            try:
                await self.patients.add_transaction(
                    patient.id, self._transaction_for(appointment), current_user
                )
            except Exception as e:
                self._discard(appointment)
                try:
                    self.store.commit()
                except Exception:
                    logger.exception(f"Could not persist the rollback of appointment {appointment.id}")
                logger.error(f"Financial record for appointment {appointment.id} failed, appointment removed: {e}")
                raise CompensatedTransactionError(
                    intent="Recording the appointment payment",
                    rollback="The appointment was not scheduled; please try again.",
                    cause=e,
                ) from e

        logger.info(f"Appointment {appointment.id} created for patient {patient.id}")
        return appointment

    async def update_appointment(self, appointment_id: str, data: AppointmentUpdate, current_user: User,
                                 scope: AccessScope = ADMIN_SCOPE) -> Appointment:
        appointment = await self.get_appointment(appointment_id, current_user, scope)
        state = self.store.state
        changes = data.model_dump(exclude_unset=True)

        for key in ("start_time", "end_time"):
            if changes.get(key) is not None:
                changes[key] = to_naive_utc(changes[key])
        if "professional_id" in changes:
            self._check_professional(appointment.tenant_id, changes["professional_id"], current_user)
        start = changes.get("start_time") or appointment.start_time
        end = changes.get("end_time") or appointment.end_time
        if "start_time" in changes or "end_time" in changes:
            if start >= end:
                raise ValidationFailed("Appointment start must be before its end")
            clinic = state.tenants.get(appointment.tenant_id)
            if clinic:
                ensure_within_opening_hours(clinic, start, end)
        if changes.get("price") is not None and changes["price"] < 0:
            raise ValidationFailed("Price cannot be negative")

        updated = state.appointments.update(appointment_id, **changes)
        if "status" in changes and changes["status"] != appointment.status:
            self.events.log_event(
                updated.patient_id, EventType.APPOINTMENT_STATUS,
                {"appointment_id": updated.id, "status": updated.status.value},
                f"Status changed to {updated.status.value}", current_user,
            )
        self.store.commit()

        # No compensation here: a failing financial write propagates as is
        if updated.price:
            await self._sync_transaction(updated, current_user)
        return updated

    async def delete_appointment(self, appointment_id: str, current_user: User,
                                 scope: AccessScope = ADMIN_SCOPE) -> None:
        appointment = await self.get_appointment(appointment_id, current_user, scope)
        self.store.state.appointments.remove(appointment.id)
        self.store.commit()

    async def _sync_transaction(self, appointment: Appointment, current_user: User) -> None:
        patient = self.store.state.patients.get(appointment.patient_id)
        if not patient:
            raise NotFound("Patient not found")
        linked = [t for t in patient.financial.transactions if t.appointment_id == appointment.id]
        if not linked:
            await self.patients.add_transaction(patient.id, self._transaction_for(appointment), current_user)
            return

        wanted = self._transaction_for(appointment)
        transactions = [
            t.model_copy(update={"amount": wanted.amount, "status": wanted.status, "method": wanted.method})
            if t.appointment_id == appointment.id else t
            for t in patient.financial.transactions
        ]
        financial = patient.financial.model_copy(update={"transactions": transactions})
        self.store.state.patients.update(patient.id, financial=financial.model_dump())
        self.store.commit()

    def _transaction_for(self, appointment: Appointment) -> TransactionCreate:
        return TransactionCreate(
            occurred_on=appointment.start_time.date(),
            description=f"Appointment ({appointment.type.value.lower()})",
            amount=appointment.price,
            method=appointment.payment_method or PaymentMethod.CASH,
            status=appointment.financial_status or FinancialStatus.PENDING,
            appointment_id=appointment.id,
        )

    def _discard(self, appointment: Appointment) -> None:
        state = self.store.state
        state.appointments.remove(appointment.id)
        # Scheduling and payment events both carry the appointment id
        state.events.remove_where(lambda e: e.payload.get("appointment_id") == appointment.id)
        patient = state.patients.get(appointment.patient_id)
        if patient and any(t.appointment_id == appointment.id for t in patient.financial.transactions):
            kept = [t for t in patient.financial.transactions if t.appointment_id != appointment.id]
            financial = patient.financial.model_copy(update={"transactions": kept})
            state.patients.update(patient.id, financial=financial.model_dump())

    def _check_professional(self, tenant_id: str, professional_id: str, current_user: User) -> None:
        professional = self.store.state.professionals.get(professional_id)
        if not professional or professional.tenant_id != tenant_id:
            raise ValidationFailed("Professional not found in this clinic")
        if not professional.is_active:
            raise ValidationFailed("Professional is inactive")
        if current_user.role == Role.PROFESSIONAL and current_user.professional_id != professional_id:
            raise PermissionDenied("Professionals can only manage their own agenda")
