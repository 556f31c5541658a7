class ClinicError(Exception):
    """Base class for errors raised by the clinic store."""


class StorageError(ClinicError):
    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Storage failure on {key!r}: {reason}")


class CorruptDataError(StorageError):
    """Persisted data for a slot could not be decoded or validated."""


class NotAuthenticatedError(ClinicError):
    def __init__(self, reason: str = "No user is logged in"):
        self.reason = reason
        super().__init__(reason)


class PermissionDeniedError(ClinicError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Permission denied: {reason}")


class UnknownPatientError(ClinicError):
    def __init__(self, patient_id: str):
        self.patient_id = patient_id
        super().__init__(f"Patient {patient_id} not found")


class InvalidRecordError(ClinicError):
    def __init__(self, errors: list = None):
        self.errors = errors or []
        super().__init__(f"Invalid record: {self.errors}")
