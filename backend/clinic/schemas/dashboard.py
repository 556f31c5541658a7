from pydantic import BaseModel
from datetime import date
from typing import Optional
from clinic.schemas.incident import Incident
from clinic.schemas.patient import Patient


class TopPatient(BaseModel):
    patient: Patient
    total_spent: float
    treatment_count: int


class AdminOverview(BaseModel):
    total_patients: int
    pending_treatments: int
    completed_treatments: int
    revenue: float
    upcoming_appointments: list[Incident]
    top_patients: list[TopPatient]


class PatientOverview(BaseModel):
    patient_id: str
    patient: Optional[Patient] = None
    upcoming_appointments: list[Incident]
    recent_treatments: list[Incident]
    total_cost: float
    incident_count: int


class CalendarDay(BaseModel):
    day: date
    incidents: list[Incident]

    @property
    def has_appointments(self) -> bool:
        return bool(self.incidents)


class MonthView(BaseModel):
    year: int
    month: int
    days: list[CalendarDay]
