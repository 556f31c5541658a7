from pydantic import Field, model_validator
from typing import Literal, Optional
from clinic.schemas.common import RecordModel

Role = Literal["Admin", "Patient"]


class UserPublic(RecordModel):
    id: str
    role: Role
    email: str
    name: Optional[str] = None
    patient_id: Optional[str] = Field(default=None, alias="patientId")

    @model_validator(mode="after")
    def check_patient_link(self):
        if self.role == "Patient" and not self.patient_id:
            raise ValueError("Patient users must reference a patient via patientId")
        return self


class User(UserPublic):
    password: str

    def public(self) -> UserPublic:
        return UserPublic.model_validate(self.model_dump(exclude={"password"}))


class LoginRequest(RecordModel):
    email: str
    password: str
