import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, Optional
from clinic.config import get_settings
from clinic.schemas.dashboard import CalendarDay, MonthView
from clinic.schemas.incident import Incident
from clinic.schemas.patient import Patient

UNKNOWN_PATIENT = "Unknown Patient"


class CalendarService:
    """Appointment views over open (Scheduled or Pending) incidents."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()

    def incidents_on(self, incidents: Iterable[Incident], day: date) -> list[Incident]:
        return sorted(
            (i for i in incidents if i.is_open and i.appointment_date.date() == day),
            key=lambda i: i.appointment_date,
        )

    def month_view(self, incidents: Iterable[Incident], year: int, month: int) -> MonthView:
        if not 1 <= month <= 12:
            raise ValueError(f"month must be 1-12, got {month}")
        incidents = list(incidents)
        first = date(year, month, 1)
        _, length = calendar.monthrange(year, month)
        days = []
        for offset in range(length):
            day = first + timedelta(days=offset)
            days.append(CalendarDay(day=day, incidents=self.incidents_on(incidents, day)))
        return MonthView(year=year, month=month, days=days)

    def upcoming(
        self, incidents: Iterable[Incident], now: Optional[datetime] = None, limit: Optional[int] = None
    ) -> list[Incident]:
        now = now or datetime.now()
        limit = self.settings.upcoming_limit if limit is None else limit
        found = sorted(
            (i for i in incidents if i.is_open and i.appointment_date >= now),
            key=lambda i: i.appointment_date,
        )
        return found[:limit]


def filter_incidents(incidents: Iterable[Incident], patient_id: Optional[str] = None) -> list[Incident]:
    """Appointment list, newest first, optionally for one patient."""
    selected = [i for i in incidents if patient_id is None or i.patient_id == patient_id]
    return sorted(selected, key=lambda i: i.appointment_date, reverse=True)


def patient_name(patients: Iterable[Patient], patient_id: str) -> str:
    for patient in patients:
        if patient.id == patient_id:
            return patient.name
    return UNKNOWN_PATIENT


calendar_service = CalendarService()
