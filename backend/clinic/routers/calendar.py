from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from clinic.auth import UserPrincipal
from clinic.dependencies import get_store, require_admin
from clinic.services.calendar_service import calendar_service, patient_name
from clinic.store import ClinicStore

router = APIRouter()


def _entry(store: ClinicStore, incident) -> dict:
    record = incident.to_record()
    record["patientName"] = patient_name(store.patients, incident.patient_id)
    return record


@router.get("/month")
async def get_month(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(require_admin),
):
    view = calendar_service.month_view(store.list_incidents(current_user), year, month)
    return {
        "year": view.year,
        "month": view.month,
        "days": [
            {"day": d.day.isoformat(), "incidents": [_entry(store, i) for i in d.incidents]}
            for d in view.days
        ],
    }


@router.get("/day")
async def get_day(
    day: date = Query(..., description="ISO date, e.g. 2025-01-15"),
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(require_admin),
):
    incidents = calendar_service.incidents_on(store.list_incidents(current_user), day)
    return {"day": day.isoformat(), "incidents": [_entry(store, i) for i in incidents]}


@router.get("/upcoming")
async def get_upcoming(
    limit: Optional[int] = Query(None, ge=1, le=100),
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(require_admin),
):
    incidents = calendar_service.upcoming(store.list_incidents(current_user), limit=limit)
    return {"incidents": [_entry(store, i) for i in incidents]}
