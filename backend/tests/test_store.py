"""
Behaviour of ClinicStore against an in-memory storage backend: seeding,
sessions, CRUD with cascade delete, role policy and persistence round trips.
"""

import json

import pytest

from clinic.auth import SYSTEM_ADMIN
from clinic.exceptions import (
    ClinicError,
    CorruptDataError,
    InvalidRecordError,
    NotAuthenticatedError,
    PermissionDeniedError,
    StorageError,
    UnknownPatientError,
)
from clinic.id_generator import IdGenerator
from clinic.schemas.incident import FileAttachment
from clinic.storage import MemoryStorage
from clinic.store import ClinicStore, INCIDENTS_KEY, PATIENTS_KEY, SESSION_KEY, USERS_KEY


def new_incident(patient_id="p1", **overrides):
    data = {
        "patientId": patient_id,
        "title": "Checkup",
        "description": "Regular checkup",
        "comments": "",
        "appointmentDate": "2025-03-01T10:00:00",
        "status": "Scheduled",
        "files": [],
    }
    data.update(overrides)
    return data


def restart(storage, settings):
    fresh = ClinicStore(storage, settings)
    fresh.init()
    return fresh


# ----- Seeding -----

def test_init_seeds_empty_storage(store, storage):
    assert [p.id for p in store.patients] == ["p1", "p2", "p3"]
    assert [i.id for i in store.incidents] == ["i1", "i2", "i3", "i4"]
    for key in (USERS_KEY, PATIENTS_KEY, INCIDENTS_KEY):
        assert storage.get_item(key) is not None
    assert store.current_user is None


def test_init_never_overwrites_existing_slots(settings):
    own = [{"id": "p9", "name": "Only One", "dob": "2000-01-01", "contact": "1", "healthInfo": "-"}]
    raw = json.dumps(own)
    storage = MemoryStorage({PATIENTS_KEY: raw})
    s = restart(storage, settings)
    assert [p.id for p in s.patients] == ["p9"]
    assert storage.get_item(PATIENTS_KEY) == raw
    # the missing slots were still seeded
    assert len(s.incidents) == 4
    assert storage.get_item(USERS_KEY) is not None


def test_reinit_is_idempotent(store, storage, settings):
    before = {key: storage.get_item(key) for key in storage.keys()}
    restart(storage, settings)
    assert {key: storage.get_item(key) for key in storage.keys()} == before


def test_seed_can_be_disabled(settings):
    storage = MemoryStorage()
    s = ClinicStore(storage, settings.model_copy(update={"seed_on_init": False}))
    s.init()
    assert s.patients == ()
    assert storage.keys() == []


# ----- Sessions -----

def test_login_success_sets_and_persists_session(store, storage):
    assert store.login("admin@entnt.in", "admin123") is True
    assert store.current_user.role == "Admin"
    assert store.current_user.name == "Dr. Sarah Wilson"
    saved = json.loads(storage.get_item(SESSION_KEY))
    assert saved["email"] == "admin@entnt.in"
    assert "password" not in saved


def test_login_wrong_password_keeps_session(john_store):
    assert john_store.login("admin@entnt.in", "wrong") is False
    assert john_store.current_user.email == "john@entnt.in"


def test_login_unknown_email(store):
    assert store.login("nobody@x.com", "x") is False
    assert store.current_user is None


def test_login_is_case_sensitive(store):
    assert store.login("ADMIN@entnt.in", "admin123") is False
    assert store.login("admin@entnt.in", "Admin123") is False


def test_login_reads_users_from_storage(store, storage):
    users = json.loads(storage.get_item(USERS_KEY))
    users.append({"id": "4", "role": "Admin", "email": "new@entnt.in", "password": "pw"})
    storage.set_item(USERS_KEY, json.dumps(users))
    assert store.login("new@entnt.in", "pw") is True


def test_session_restored_after_restart(admin_store, storage, settings):
    fresh = restart(storage, settings)
    assert fresh.current_user == admin_store.current_user


def test_logout_is_idempotent(admin_store, storage):
    admin_store.logout()
    admin_store.logout()
    assert admin_store.current_user is None
    assert storage.get_item(SESSION_KEY) is None


def test_stale_session_is_dropped(settings):
    ghost = {"id": "99", "role": "Admin", "email": "ghost@entnt.in"}
    storage = MemoryStorage({SESSION_KEY: json.dumps(ghost)})
    s = restart(storage, settings)
    assert s.current_user is None
    assert storage.get_item(SESSION_KEY) is None


def test_stale_session_kept_when_check_disabled(settings):
    ghost = {"id": "99", "role": "Admin", "email": "ghost@entnt.in"}
    storage = MemoryStorage({SESSION_KEY: json.dumps(ghost)})
    s = restart(storage, settings.model_copy(update={"drop_stale_sessions": False}))
    assert s.current_user.email == "ghost@entnt.in"


# ----- Patients -----

def test_add_patient_assigns_id_and_persists(admin_store, storage):
    patient = admin_store.add_patient(
        {"name": "New Person", "dob": "2001-02-03", "contact": "111", "healthInfo": "None"}
    )
    assert patient.id.startswith("p")
    assert admin_store.patients[-1] == patient
    stored = json.loads(storage.get_item(PATIENTS_KEY))
    assert stored[-1]["id"] == patient.id
    assert "email" not in stored[-1]


def test_rapid_creates_get_distinct_ids(storage, settings):
    s = ClinicStore(storage, settings, id_generator=IdGenerator(clock=lambda: 1000))
    s.init()
    data = {"name": "Twin", "dob": "2001-02-03", "contact": "1", "healthInfo": "-"}
    first = s.add_patient(data, actor=SYSTEM_ADMIN)
    second = s.add_patient(data, actor=SYSTEM_ADMIN)
    assert (first.id, second.id) == ("p1000", "p1001")


def test_update_patient_changes_only_given_fields(admin_store):
    before = admin_store.get_patient("p1").to_record()
    admin_store.update_patient("p1", {"contact": "999"})
    after = admin_store.get_patient("p1").to_record()
    assert after == {**before, "contact": "999"}


def test_update_patient_cannot_change_id(admin_store):
    updated = admin_store.update_patient("p1", {"id": "hijack", "name": "Johnny"})
    assert updated.id == "p1"
    assert updated.name == "Johnny"


def test_update_patient_rejects_invalid_values(admin_store):
    with pytest.raises(InvalidRecordError):
        admin_store.update_patient("p1", {"dob": "not a date"})
    assert str(admin_store.get_patient("p1").dob) == "1990-05-10"


def test_add_patient_requires_fields(admin_store):
    with pytest.raises(InvalidRecordError):
        admin_store.add_patient({"name": "No DOB", "contact": "1", "healthInfo": "-"})
    assert len(admin_store.patients) == 3


def test_delete_patient_cascades_to_incidents(admin_store, storage, settings):
    assert admin_store.delete_patient("p1") is True
    assert "p1" not in [p.id for p in admin_store.patients]
    assert not [i for i in admin_store.incidents if i.patient_id == "p1"]
    assert [i.id for i in admin_store.incidents] == ["i3", "i4"]

    fresh = restart(storage, settings)
    assert fresh.patients == admin_store.patients
    assert fresh.incidents == admin_store.incidents


def test_unknown_ids_are_ignored(admin_store, storage):
    before = {key: storage.get_item(key) for key in (PATIENTS_KEY, INCIDENTS_KEY)}
    patients, incidents = admin_store.patients, admin_store.incidents

    assert admin_store.update_patient("nonexistent", {"contact": "1"}) is None
    assert admin_store.delete_incident("nonexistent") is False
    assert admin_store.update_incident("nonexistent", {"title": "x"}) is None
    assert admin_store.delete_patient("nonexistent") is False

    assert admin_store.patients == patients
    assert admin_store.incidents == incidents
    assert {key: storage.get_item(key) for key in (PATIENTS_KEY, INCIDENTS_KEY)} == before


# ----- Incidents -----

def test_add_incident_for_live_patient(admin_store):
    incident = admin_store.add_incident(new_incident(nextDate="", cost=""))
    assert incident.id.startswith("i")
    assert incident.next_date is None
    assert incident.cost is None
    assert admin_store.incidents[-1] == incident


def test_add_incident_rejects_unknown_patient(admin_store):
    with pytest.raises(UnknownPatientError):
        admin_store.add_incident(new_incident("p404"))
    assert len(admin_store.incidents) == 4


def test_update_incident_rejects_unknown_patient(admin_store):
    with pytest.raises(UnknownPatientError):
        admin_store.update_incident("i1", {"patientId": "p404"})
    assert admin_store.get_incident("i1").patient_id == "p1"


def test_update_incident_cannot_clear_patient(admin_store):
    with pytest.raises(InvalidRecordError):
        admin_store.update_incident("i1", {"patientId": None})
    assert admin_store.get_incident("i1").patient_id == "p1"


def test_update_incident_merges(admin_store):
    updated = admin_store.update_incident("i2", {"status": "Completed", "cost": 95})
    assert updated.status == "Completed"
    assert updated.cost == 95
    assert updated.title == "Tooth Pain Consultation"


def test_attach_file_appends_data_uri(admin_store, storage, settings):
    attachment = FileAttachment.from_bytes("xray.png", b"\x89PNG-bytes", "image/png")
    incident = admin_store.attach_file("i1", attachment)
    assert incident.files == [attachment]
    fresh = restart(storage, settings)
    assert fresh.get_incident("i1", actor=SYSTEM_ADMIN).files[0].content() == b"\x89PNG-bytes"


def test_round_trip_after_every_mutation(admin_store, storage, settings):
    patient = admin_store.add_patient({"name": "A", "dob": "2000-01-01", "contact": "1", "healthInfo": "-"})
    admin_store.add_incident(new_incident(patient.id, cost=10.5))
    admin_store.update_patient(patient.id, {"email": "a@b.c"})
    admin_store.delete_incident("i3")
    fresh = restart(storage, settings)
    assert fresh.patients == admin_store.patients
    assert fresh.incidents == admin_store.incidents


# ----- Policy -----

def test_mutations_need_a_session(store):
    with pytest.raises(NotAuthenticatedError):
        store.add_patient({"name": "A", "dob": "2000-01-01", "contact": "1", "healthInfo": "-"})
    with pytest.raises(NotAuthenticatedError):
        store.delete_incident("i1")


def test_patients_cannot_mutate(john_store):
    with pytest.raises(PermissionDeniedError):
        john_store.update_patient("p1", {"contact": "1"})
    with pytest.raises(PermissionDeniedError):
        john_store.delete_patient("p2")
    with pytest.raises(PermissionDeniedError):
        john_store.add_incident(new_incident())
    assert len(john_store.patients) == 3


def test_patient_sees_only_own_records(john_store):
    incidents = john_store.list_incidents()
    assert {i.id for i in incidents} == {"i1", "i2"}
    assert all(i.patient_id == "p1" for i in incidents)
    assert [p.id for p in john_store.list_patients()] == ["p1"]


def test_patient_cannot_read_other_records(john_store):
    with pytest.raises(PermissionDeniedError):
        john_store.get_patient("p2")
    with pytest.raises(PermissionDeniedError):
        john_store.get_incident("i3")
    assert john_store.get_incident("i1").title == "Routine Cleaning"


def test_admin_sees_everything(admin_store):
    assert len(admin_store.list_incidents()) == 4
    assert [i.id for i in admin_store.list_incidents(patient_id="p2")] == ["i3", "i4"]


def test_incidents_for_patient_respects_scope(john_store):
    assert [i.id for i in john_store.incidents_for_patient("p2", actor=SYSTEM_ADMIN)] == ["i3", "i4"]
    assert [i.id for i in john_store.incidents_for_patient("p1")] == ["i1", "i2"]
    assert john_store.incidents_for_patient("p2") == []


def test_explicit_actor_overrides_session(john_store):
    patient = john_store.add_patient(
        {"name": "Via Script", "dob": "2000-01-01", "contact": "1", "healthInfo": "-"}, actor=SYSTEM_ADMIN
    )
    assert patient in john_store.patients


# ----- Failures -----

def test_operations_require_init(storage, settings):
    s = ClinicStore(storage, settings)
    with pytest.raises(ClinicError):
        s.login("admin@entnt.in", "admin123")


def test_corrupt_json_raises_on_init(settings):
    storage = MemoryStorage({PATIENTS_KEY: "{not json"})
    with pytest.raises(CorruptDataError) as excinfo:
        restart(storage, settings)
    assert excinfo.value.key == PATIENTS_KEY


def test_invalid_records_raise_on_init(settings):
    storage = MemoryStorage({INCIDENTS_KEY: json.dumps([{"id": "i1", "status": "Lost"}])})
    with pytest.raises(CorruptDataError):
        restart(storage, settings)


def test_failed_write_leaves_state_untouched(admin_store, storage):
    patients, incidents = admin_store.patients, admin_store.incidents
    storage.fail_writes = True
    with pytest.raises(StorageError):
        admin_store.delete_patient("p1")
    with pytest.raises(StorageError):
        admin_store.add_incident(new_incident())
    assert admin_store.patients == patients
    assert admin_store.incidents == incidents

    storage.fail_writes = False
    assert admin_store.delete_patient("p1") is True
