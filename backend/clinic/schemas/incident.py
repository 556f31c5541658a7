import base64
from urllib.parse import unquote_to_bytes
from pydantic import Field, field_validator
from datetime import date, datetime
from typing import Literal, Optional
from clinic.schemas.common import RecordModel

IncidentStatus = Literal["Scheduled", "Pending", "Completed", "Cancelled"]
OPEN_STATUSES = ("Scheduled", "Pending")


class FileAttachment(RecordModel):
    """A file embedded in the incident as a data URI."""
    name: str
    url: str
    type: str = "application/octet-stream"

    @field_validator("url")
    @classmethod
    def check_data_uri(cls, value: str) -> str:
        if not value.startswith("data:") or "," not in value:
            raise ValueError("url must be a data: URI")
        return value

    @classmethod
    def from_bytes(cls, name: str, content: bytes, type: Optional[str] = None) -> "FileAttachment":
        mime = type or "application/octet-stream"
        encoded = base64.b64encode(content).decode("ascii")
        return cls(name=name, url=f"data:{mime};base64,{encoded}", type=mime)

    def content(self) -> bytes:
        header, _, payload = self.url.partition(",")
        if header.endswith(";base64"):
            return base64.b64decode(payload)
        return unquote_to_bytes(payload)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _to_naive(value: datetime) -> datetime:
    # Aware values are stored as local wall-clock time, like the browser did.
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class IncidentBase(RecordModel):
    patient_id: str = Field(alias="patientId")
    title: str
    description: str = ""
    comments: str = ""
    appointment_date: datetime = Field(alias="appointmentDate")
    cost: Optional[float] = Field(default=None, ge=0)
    treatment: Optional[str] = None
    status: IncidentStatus = "Scheduled"
    next_date: Optional[date] = Field(default=None, alias="nextDate")
    files: list[FileAttachment] = []

    @field_validator("cost", "next_date", "treatment", mode="before")
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator("appointment_date")
    @classmethod
    def naive_appointment(cls, value: datetime) -> datetime:
        return _to_naive(value)


class IncidentCreate(IncidentBase):
    pass


class IncidentUpdate(RecordModel):
    patient_id: Optional[str] = Field(default=None, alias="patientId")
    title: Optional[str] = None
    description: Optional[str] = None
    comments: Optional[str] = None
    appointment_date: Optional[datetime] = Field(default=None, alias="appointmentDate")
    cost: Optional[float] = Field(default=None, ge=0)
    treatment: Optional[str] = None
    status: Optional[IncidentStatus] = None
    next_date: Optional[date] = Field(default=None, alias="nextDate")
    files: Optional[list[FileAttachment]] = None

    @field_validator("patient_id")
    @classmethod
    def patient_required_when_given(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("patientId cannot be cleared")
        return value

    @field_validator("cost", "next_date", "treatment", mode="before")
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator("appointment_date")
    @classmethod
    def naive_appointment(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive(value) if value is not None else None


class Incident(IncidentBase):
    id: str

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES
