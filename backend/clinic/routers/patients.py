from fastapi import APIRouter, Depends, HTTPException
from clinic.auth import UserPrincipal
from clinic.dependencies import get_current_user, get_store
from clinic.schemas.patient import PatientCreate, PatientUpdate
from clinic.store import ClinicStore

router = APIRouter()


@router.get("")
async def list_patients(
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    # Patients only ever see their own record
    patients = store.list_patients(current_user)
    return {"patients": [p.to_record() for p in patients], "total": len(patients)}


@router.get("/{patient_id}")
async def get_patient(
    patient_id: str,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patient = store.get_patient(patient_id, current_user)
    if not patient:
        raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found")
    return patient.to_record()


@router.post("", status_code=201)
async def create_patient(
    data: PatientCreate,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    return store.add_patient(data, current_user).to_record()


@router.put("/{patient_id}")
async def update_patient(
    patient_id: str,
    data: PatientUpdate,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patient = store.update_patient(patient_id, data, current_user)
    if not patient:
        raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found")
    return patient.to_record()


@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: str,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    deleted = store.delete_patient(patient_id, current_user)
    return {"deleted": deleted, "patient_id": patient_id}
