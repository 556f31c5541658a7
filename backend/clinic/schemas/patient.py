from pydantic import Field
from datetime import date
from typing import Optional
from clinic.schemas.common import RecordModel


class PatientBase(RecordModel):
    name: str
    dob: date
    contact: str
    email: Optional[str] = None
    health_info: str = Field(alias="healthInfo")


class PatientCreate(PatientBase):
    pass


class PatientUpdate(RecordModel):
    name: Optional[str] = None
    dob: Optional[date] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    health_info: Optional[str] = Field(default=None, alias="healthInfo")


class Patient(PatientBase):
    id: str
