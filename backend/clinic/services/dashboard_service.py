from datetime import datetime
from typing import Iterable, Optional
from clinic.config import get_settings
from clinic.schemas.dashboard import AdminOverview, PatientOverview, TopPatient
from clinic.schemas.incident import Incident, OPEN_STATUSES
from clinic.schemas.patient import Patient


def _completed_spend(incidents: Iterable[Incident]) -> float:
    return sum(i.cost for i in incidents if i.cost and i.status == "Completed")


class DashboardService:
    def __init__(self, settings=None):
        self.settings = settings or get_settings()

    def upcoming_scheduled(self, incidents: Iterable[Incident], now: datetime) -> list[Incident]:
        return sorted(
            (i for i in incidents if i.appointment_date > now and i.status == "Scheduled"),
            key=lambda i: i.appointment_date,
        )

    def admin_overview(
        self, patients: list[Patient], incidents: list[Incident], now: Optional[datetime] = None
    ) -> AdminOverview:
        now = now or datetime.now()
        completed = [i for i in incidents if i.status == "Completed"]
        pending = [i for i in incidents if i.status in OPEN_STATUSES]

        top = []
        for patient in patients:
            own = [i for i in incidents if i.patient_id == patient.id]
            top.append(TopPatient(patient=patient, total_spent=_completed_spend(own), treatment_count=len(own)))
        # stable sort: ties keep patient order
        top.sort(key=lambda t: t.total_spent, reverse=True)

        return AdminOverview(
            total_patients=len(patients),
            pending_treatments=len(pending),
            completed_treatments=len(completed),
            revenue=_completed_spend(completed),
            upcoming_appointments=self.upcoming_scheduled(incidents, now)[: self.settings.upcoming_limit],
            top_patients=top[: self.settings.top_patients_limit],
        )

    def patient_overview(
        self,
        incidents: list[Incident],
        patient_id: str,
        patient: Optional[Patient] = None,
        now: Optional[datetime] = None,
    ) -> PatientOverview:
        now = now or datetime.now()
        own = [i for i in incidents if i.patient_id == patient_id]
        recent = sorted(
            (i for i in own if i.status == "Completed"),
            key=lambda i: i.appointment_date,
            reverse=True,
        )
        return PatientOverview(
            patient_id=patient_id,
            patient=patient,
            upcoming_appointments=self.upcoming_scheduled(own, now),
            recent_treatments=recent[: self.settings.recent_treatments_limit],
            total_cost=sum(i.cost for i in own if i.cost),
            incident_count=len(own),
        )


dashboard_service = DashboardService()
