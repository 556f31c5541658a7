"""
ClinicStore: owner of users, patients, incidents and the active session.

All state is mirrored to a KeyValueStorage under the dental_* keys. Every
mutation writes storage first and only then swaps the in-memory collections,
so a StorageError leaves both sides as they were.
"""

import json
from typing import Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from clinic.auth import UserPrincipal, authenticate, require_write
from clinic.config import Settings, get_settings
from clinic.exceptions import (
    ClinicError,
    CorruptDataError,
    InvalidRecordError,
    NotAuthenticatedError,
    PermissionDeniedError,
    UnknownPatientError,
)
from clinic.id_generator import IdGenerator
from clinic.schemas.common import RecordModel
from clinic.schemas.incident import FileAttachment, Incident, IncidentCreate, IncidentUpdate
from clinic.schemas.patient import Patient, PatientCreate, PatientUpdate
from clinic.schemas.user import User, UserPublic
from clinic.seed import INITIAL_INCIDENTS, INITIAL_PATIENTS, INITIAL_USERS
from clinic.storage import KeyValueStorage

USERS_KEY = "dental_users"
PATIENTS_KEY = "dental_patients"
INCIDENTS_KEY = "dental_incidents"
SESSION_KEY = "dental_current_user"

SEED_DATA = {
    USERS_KEY: INITIAL_USERS,
    PATIENTS_KEY: INITIAL_PATIENTS,
    INCIDENTS_KEY: INITIAL_INCIDENTS,
}

M = TypeVar("M", bound=BaseModel)


def _validation_errors(e: ValidationError) -> list:
    return [{"loc": [str(part) for part in err["loc"]], "msg": err["msg"]} for err in e.errors()]


def _parse(model: Type[M], data: Union[M, dict]) -> M:
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True, by_alias=True)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidRecordError(_validation_errors(e))


def _merge(model: Type[M], record: BaseModel, changes: dict) -> M:
    try:
        return model.model_validate({**record.model_dump(), **changes})
    except ValidationError as e:
        raise InvalidRecordError(_validation_errors(e))


def _index_of(records: list, record_id: str) -> Optional[int]:
    for index, record in enumerate(records):
        if record.id == record_id:
            return index
    return None


class ClinicStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        settings: Optional[Settings] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self.id_generator = id_generator or IdGenerator()
        self._users: list[User] = []
        self._patients: list[Patient] = []
        self._incidents: list[Incident] = []
        self._session: Optional[UserPublic] = None
        self._initialized = False

    # ----- Lifecycle -----

    def init(self) -> None:
        """Seed missing slots, then load collections and the saved session."""
        if self._initialized:
            return
        if self.settings.seed_on_init:
            self._seed()
        self._users = self._load(USERS_KEY, User)
        self._patients = self._load(PATIENTS_KEY, Patient)
        self._incidents = self._load(INCIDENTS_KEY, Incident)
        self._session = self._load_session()
        self._initialized = True

    def shutdown(self) -> None:
        self._users = []
        self._patients = []
        self._incidents = []
        self._session = None
        self._initialized = False

    def reload(self) -> None:
        """Drop in-memory state and read everything back from storage."""
        self.shutdown()
        self.init()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def __enter__(self) -> "ClinicStore":
        self.init()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def _seed(self) -> None:
        for key, records in SEED_DATA.items():
            if self.storage.get_item(key) is None:
                self.storage.set_item(key, json.dumps(records))
                print(f"[store] seeded {key} with {len(records)} records")

    def _load(self, key: str, model: Type[M]) -> list[M]:
        raw = self.storage.get_item(key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(key, f"invalid JSON: {e}")
        if not isinstance(data, list):
            raise CorruptDataError(key, "expected a JSON array")
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            raise CorruptDataError(key, str(e))

    def _load_session(self) -> Optional[UserPublic]:
        raw = self.storage.get_item(SESSION_KEY)
        if raw is None:
            return None
        try:
            session = UserPublic.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise CorruptDataError(SESSION_KEY, str(e))
        if self.settings.drop_stale_sessions and not any(
            u.id == session.id and u.email == session.email for u in self._users
        ):
            print(f"[store] dropped stale session for {session.email}")
            self.storage.remove_item(SESSION_KEY)
            return None
        return session

    def _ensure_ready(self) -> None:
        if not self._initialized:
            raise ClinicError("ClinicStore is not initialized; call init() first")

    def _persist(self, collections: dict[str, list[RecordModel]]) -> None:
        self.storage.set_items(
            {key: json.dumps([r.to_record() for r in records]) for key, records in collections.items()}
        )

    # ----- Session -----

    @property
    def current_user(self) -> Optional[UserPublic]:
        return self._session

    @property
    def principal(self) -> Optional[UserPrincipal]:
        return UserPrincipal.from_user(self._session) if self._session else None

    def _resolve_actor(self, actor: Optional[UserPrincipal]) -> UserPrincipal:
        if actor is not None:
            return actor
        if self._session is None:
            raise NotAuthenticatedError()
        return UserPrincipal.from_user(self._session)

    def login(self, email: str, password: str) -> bool:
        self._ensure_ready()
        # Always checked against storage, not the cached list.
        users = self._load(USERS_KEY, User)
        user = authenticate(users, email, password)
        if user is None:
            return False
        public = user.public()
        self.storage.set_item(SESSION_KEY, json.dumps(public.to_record()))
        self._users = users
        self._session = public
        return True

    def logout(self) -> None:
        self._ensure_ready()
        self.storage.remove_item(SESSION_KEY)
        self._session = None

    # ----- Snapshots -----

    @property
    def patients(self) -> tuple[Patient, ...]:
        return tuple(self._patients)

    @property
    def incidents(self) -> tuple[Incident, ...]:
        return tuple(self._incidents)

    # ----- Scoped reads -----

    def list_patients(self, actor: Optional[UserPrincipal] = None) -> list[Patient]:
        self._ensure_ready()
        allowed = self._resolve_actor(actor).get_allowed_patient_ids()
        if allowed is None:
            return list(self._patients)
        return [p for p in self._patients if p.id in allowed]

    def list_incidents(
        self, actor: Optional[UserPrincipal] = None, patient_id: Optional[str] = None
    ) -> list[Incident]:
        self._ensure_ready()
        allowed = self._resolve_actor(actor).get_allowed_patient_ids()
        incidents = self._incidents
        if allowed is not None:
            incidents = [i for i in incidents if i.patient_id in allowed]
        if patient_id is not None:
            incidents = [i for i in incidents if i.patient_id == patient_id]
        return list(incidents)

    def incidents_for_patient(self, patient_id: str, actor: Optional[UserPrincipal] = None) -> list[Incident]:
        return self.list_incidents(actor, patient_id=patient_id)

    def get_patient(self, patient_id: str, actor: Optional[UserPrincipal] = None) -> Optional[Patient]:
        self._ensure_ready()
        if not self._resolve_actor(actor).has_access_to_patient(patient_id):
            raise PermissionDeniedError(f"{patient_id} is not your patient record")
        index = _index_of(self._patients, patient_id)
        return self._patients[index] if index is not None else None

    def get_incident(self, incident_id: str, actor: Optional[UserPrincipal] = None) -> Optional[Incident]:
        self._ensure_ready()
        caller = self._resolve_actor(actor)
        index = _index_of(self._incidents, incident_id)
        if index is None:
            return None
        incident = self._incidents[index]
        if not caller.has_access_to_patient(incident.patient_id):
            raise PermissionDeniedError(f"incident {incident_id} belongs to another patient")
        return incident

    # ----- Patients -----

    def add_patient(self, data: Union[PatientCreate, dict], actor: Optional[UserPrincipal] = None) -> Patient:
        self._ensure_ready()
        require_write(self._resolve_actor(actor), "add patients")
        payload = _parse(PatientCreate, data)
        patient_id = self.id_generator.next_id("p", {p.id for p in self._patients})
        patient = Patient(id=patient_id, **payload.model_dump())
        patients = self._patients + [patient]
        self._persist({PATIENTS_KEY: patients})
        self._patients = patients
        return patient

    def update_patient(
        self, patient_id: str, data: Union[PatientUpdate, dict], actor: Optional[UserPrincipal] = None
    ) -> Optional[Patient]:
        """Shallow-merge the provided fields; unknown ids are ignored."""
        self._ensure_ready()
        require_write(self._resolve_actor(actor), "update patients")
        changes = _parse(PatientUpdate, data).model_dump(exclude_unset=True)
        index = _index_of(self._patients, patient_id)
        if index is None:
            return None
        updated = _merge(Patient, self._patients[index], changes)
        patients = list(self._patients)
        patients[index] = updated
        self._persist({PATIENTS_KEY: patients})
        self._patients = patients
        return updated

    def delete_patient(self, patient_id: str, actor: Optional[UserPrincipal] = None) -> bool:
        """Remove the patient and every incident that references it."""
        self._ensure_ready()
        require_write(self._resolve_actor(actor), "delete patients")
        patients = [p for p in self._patients if p.id != patient_id]
        incidents = [i for i in self._incidents if i.patient_id != patient_id]
        if len(patients) == len(self._patients) and len(incidents) == len(self._incidents):
            return False
        self._persist({PATIENTS_KEY: patients, INCIDENTS_KEY: incidents})
        self._patients = patients
        self._incidents = incidents
        return True

    # ----- Incidents -----

    def _require_patient(self, patient_id: str) -> None:
        if _index_of(self._patients, patient_id) is None:
            raise UnknownPatientError(patient_id)

    def add_incident(self, data: Union[IncidentCreate, dict], actor: Optional[UserPrincipal] = None) -> Incident:
        self._ensure_ready()
        require_write(self._resolve_actor(actor), "add incidents")
        payload = _parse(IncidentCreate, data)
        self._require_patient(payload.patient_id)
        incident_id = self.id_generator.next_id("i", {i.id for i in self._incidents})
        incident = Incident(id=incident_id, **payload.model_dump())
        incidents = self._incidents + [incident]
        self._persist({INCIDENTS_KEY: incidents})
        self._incidents = incidents
        return incident

    def update_incident(
        self, incident_id: str, data: Union[IncidentUpdate, dict], actor: Optional[UserPrincipal] = None
    ) -> Optional[Incident]:
        self._ensure_ready()
        require_write(self._resolve_actor(actor), "update incidents")
        changes = _parse(IncidentUpdate, data).model_dump(exclude_unset=True)
        index = _index_of(self._incidents, incident_id)
        if index is None:
            return None
        if "patient_id" in changes:
            self._require_patient(changes["patient_id"])
        updated = _merge(Incident, self._incidents[index], changes)
        incidents = list(self._incidents)
        incidents[index] = updated
        self._persist({INCIDENTS_KEY: incidents})
        self._incidents = incidents
        return updated

    def delete_incident(self, incident_id: str, actor: Optional[UserPrincipal] = None) -> bool:
        self._ensure_ready()
        require_write(self._resolve_actor(actor), "delete incidents")
        incidents = [i for i in self._incidents if i.id != incident_id]
        if len(incidents) == len(self._incidents):
            return False
        self._persist({INCIDENTS_KEY: incidents})
        self._incidents = incidents
        return True

    def attach_file(
        self, incident_id: str, attachment: FileAttachment, actor: Optional[UserPrincipal] = None
    ) -> Optional[Incident]:
        self._ensure_ready()
        caller = self._resolve_actor(actor)
        require_write(caller, "attach files")
        index = _index_of(self._incidents, incident_id)
        if index is None:
            return None
        files = list(self._incidents[index].files) + [attachment]
        return self.update_incident(incident_id, IncidentUpdate(files=files), actor=caller)
