"""
Auth module: credential matching, the UserPrincipal identity and write policy.

Passwords are compared as plain strings (the demo dataset ships them that way).
A failed login never says whether the email or the password was wrong.
"""

from dataclasses import dataclass
from typing import Iterable, Optional
from clinic.exceptions import PermissionDeniedError
from clinic.schemas.user import User, UserPublic


@dataclass(frozen=True)
class UserPrincipal:
    """Resolved identity of the caller of a store operation."""
    id: str
    email: str
    role: str                     # "Admin" | "Patient"
    name: Optional[str] = None
    patient_id: Optional[str] = None
    is_system: bool = False

    @classmethod
    def from_user(cls, user: UserPublic) -> "UserPrincipal":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            name=user.name,
            patient_id=user.patient_id,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"

    @property
    def can_write(self) -> bool:
        return self.is_admin

    def has_access_to_patient(self, patient_id: str) -> bool:
        if self.is_admin:
            return True
        return self.patient_id is not None and patient_id == self.patient_id

    def get_allowed_patient_ids(self) -> Optional[list]:
        """Returns None for admin (unrestricted), list for restricted roles."""
        if self.is_admin:
            return None
        return [self.patient_id] if self.patient_id else []


# Used by maintenance scripts that act on the store without a login.
SYSTEM_ADMIN = UserPrincipal(
    id="system",
    email="system@localhost",
    role="Admin",
    name="System",
    is_system=True,
)


def authenticate(users: Iterable[User], email: str, password: str) -> Optional[User]:
    """Return the first user whose email and password match exactly."""
    for user in users:
        if user.email == email and user.password == password:
            return user
    return None


def require_write(actor: UserPrincipal, action: str) -> None:
    if not actor.can_write:
        raise PermissionDeniedError(f"role {actor.role} cannot {action}")
