from collections import Counter
from typing import Dict, List

from controlclin.db.models import Appointment, AppointmentStatus, FinancialStatus, Gender, Patient, PatientStatus, User
from controlclin.db.store import ClinicStore
from controlclin.schemas.dashboard import DashboardInsight, DashboardResponse, DashboardStats, PathologyCount
from controlclin.services.access import ADMIN_SCOPE, AccessScope, ensure_tenant_access
from controlclin.services.patient_service import PatientService

TOP_PATHOLOGIES = 5


def calculate_no_show_rate(appointments: List[Appointment]) -> int:
    if not appointments:
        return 0
    missed = sum(1 for a in appointments if a.status == AppointmentStatus.MISSED)
    return round(missed / len(appointments) * 100)


def calculate_revenue(patients: List[Patient]):
    """Sum and count of PAID transactions."""
    revenue = 0.0
    paid = 0
    for patient in patients:
        for tx in patient.financial.transactions:
            if tx.status == FinancialStatus.PAID:
                revenue += tx.amount
                paid += 1
    return revenue, paid


def gender_distribution(patients: List[Patient]) -> Dict[str, int]:
    counts = {gender.value: 0 for gender in Gender}
    for patient in patients:
        counts[patient.gender.value] += 1
    return counts


def top_pathologies(patients: List[Patient], limit: int = TOP_PATHOLOGIES) -> List[PathologyCount]:
    counter: Counter = Counter()
    for patient in patients:
        if patient.clinical_summary:
            counter.update(patient.clinical_summary.active_diagnoses)
        if patient.clinical_history:
            counter.update(patient.clinical_history.pathologies)
    # Counter.most_common keeps first-seen order among ties
    return [PathologyCount(name=name, count=count) for name, count in counter.most_common(limit)]


def build_insight(stats: DashboardStats) -> DashboardInsight:
    if stats.no_show_rate > 20:
        return DashboardInsight(insight="Critical no-show rate (>20%).",
                                action="Confirm appointments with patients the day before.")
    if stats.revenue == 0:
        return DashboardInsight(insight="No billing recorded.",
                                action="Start recording payments on patient records.")
    return DashboardInsight(insight="Indicators are stable.", action="Keep monitoring.")


class DashboardService:
    def __init__(self, store: ClinicStore):
        self.store = store
        self.patients = PatientService(store)

    async def get_stats(self, tenant_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> DashboardStats:
        ensure_tenant_access(current_user, tenant_id)
        patients = self.patients.visible_patients(tenant_id, scope)
        appointments = scope.apply(
            self.store.state.appointments.filter(lambda a: a.tenant_id == tenant_id),
            owner=lambda a: a.professional_id,
        )
        revenue, paid = calculate_revenue(patients)
        return DashboardStats(
            revenue=revenue,
            average_ticket=revenue / paid if paid else 0,
            active_patients=sum(1 for p in patients if p.status == PatientStatus.ACTIVE),
            appointments_count=len(appointments),
            no_show_rate=calculate_no_show_rate(appointments),
            gender_distribution=gender_distribution(patients),
            top_pathologies=top_pathologies(patients),
        )

    async def get_dashboard(self, tenant_id: str, current_user: User, scope: AccessScope = ADMIN_SCOPE) -> DashboardResponse:
        stats = await self.get_stats(tenant_id, current_user, scope)
        return DashboardResponse(stats=stats, insight=build_insight(stats))
