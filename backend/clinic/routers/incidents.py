from typing import Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from clinic.auth import UserPrincipal
from clinic.dependencies import get_current_user, get_store
from clinic.schemas.incident import FileAttachment, IncidentCreate, IncidentUpdate
from clinic.services.calendar_service import filter_incidents, patient_name
from clinic.store import ClinicStore

router = APIRouter()


def _content_disposition(filename: str) -> str:
    # Same rule as starlette FileResponse: RFC 5987 form for anything not plain ASCII
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


def _with_patient_name(store: ClinicStore, record: dict) -> dict:
    record["patientName"] = patient_name(store.patients, record["patientId"])
    return record


@router.get("")
async def list_incidents(
    patient_id: Optional[str] = Query(None, description="Only incidents for this patient"),
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    incidents = filter_incidents(store.list_incidents(current_user), patient_id)
    return {
        "incidents": [_with_patient_name(store, i.to_record()) for i in incidents],
        "total": len(incidents),
    }


@router.get("/{incident_id}")
async def get_incident(
    incident_id: str,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    incident = store.get_incident(incident_id, current_user)
    if not incident:
        raise HTTPException(status_code=404, detail=f"Incident {incident_id} not found")
    return _with_patient_name(store, incident.to_record())


@router.post("", status_code=201)
async def create_incident(
    data: IncidentCreate,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    return store.add_incident(data, current_user).to_record()


@router.put("/{incident_id}")
async def update_incident(
    incident_id: str,
    data: IncidentUpdate,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    incident = store.update_incident(incident_id, data, current_user)
    if not incident:
        raise HTTPException(status_code=404, detail=f"Incident {incident_id} not found")
    return incident.to_record()


@router.delete("/{incident_id}")
async def delete_incident(
    incident_id: str,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    deleted = store.delete_incident(incident_id, current_user)
    return {"deleted": deleted, "incident_id": incident_id}


@router.post("/{incident_id}/files", status_code=201)
async def upload_file(
    incident_id: str,
    file: UploadFile = File(...),
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    content = await file.read()
    attachment = FileAttachment.from_bytes(file.filename or "upload", content, file.content_type)
    incident = store.attach_file(incident_id, attachment, current_user)
    if not incident:
        raise HTTPException(status_code=404, detail=f"Incident {incident_id} not found")
    return incident.to_record()


@router.get("/{incident_id}/files/{index}")
async def download_file(
    incident_id: str,
    index: int,
    store: ClinicStore = Depends(get_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    incident = store.get_incident(incident_id, current_user)
    if not incident:
        raise HTTPException(status_code=404, detail=f"Incident {incident_id} not found")
    if not 0 <= index < len(incident.files):
        raise HTTPException(status_code=404, detail=f"Incident {incident_id} has no file #{index}")
    attachment = incident.files[index]
    return Response(
        content=attachment.content(),
        media_type=attachment.type,
        headers={"Content-Disposition": _content_disposition(attachment.name)},
    )
