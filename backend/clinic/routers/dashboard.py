from fastapi import APIRouter, Depends
from clinic.auth import UserPrincipal
from clinic.dependencies import get_current_user, get_store
from clinic.services.dashboard_service import dashboard_service
from clinic.store import ClinicStore

router = APIRouter()


@router.get("/stats")
async def get_dashboard_stats(
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    incidents = store.list_incidents(current_user)
    if current_user.is_admin:
        overview = dashboard_service.admin_overview(store.list_patients(current_user), incidents)
        return {"role": "Admin", "overview": overview.model_dump(mode="json", by_alias=True)}

    patient = store.get_patient(current_user.patient_id, current_user) if current_user.patient_id else None
    overview = dashboard_service.patient_overview(incidents, current_user.patient_id or "", patient=patient)
    return {"role": "Patient", "overview": overview.model_dump(mode="json", by_alias=True)}
