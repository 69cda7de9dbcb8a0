"""
Authenticated actors.

An identity is threaded explicitly into every service call. The id is the
profile id (``patients.id`` or ``doctors.id``), the value appointments
reference.
"""
from dataclasses import dataclass
from typing import Optional, Union

from .security import UserRole, TokenPayload


@dataclass(frozen=True)
class PatientIdentity:
    id: int

    @property
    def role(self) -> UserRole:
        return UserRole.PATIENT


@dataclass(frozen=True)
class DoctorIdentity:
    id: int

    @property
    def role(self) -> UserRole:
        return UserRole.DOCTOR


Identity = Union[PatientIdentity, DoctorIdentity]


def identity_for(role: UserRole, profile_id: int) -> Identity:
    if role == UserRole.DOCTOR:
        return DoctorIdentity(profile_id)
    if role == UserRole.PATIENT:
        return PatientIdentity(profile_id)
    raise ValueError(f"Unknown role: {role}")


def identity_from_token(payload: TokenPayload) -> Optional[Identity]:
    """Rebuild the identity stored in a verified token, if it is complete."""
    if payload.token_type != "access" or payload.profile_id is None:
        return None
    try:
        return identity_for(UserRole(payload.role), payload.profile_id)
    except ValueError:
        return None
