from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.exceptions import Unauthenticated
from ...core.identity import Identity, DoctorIdentity
from ...core.security import TokenPayload, create_session_token
from ...api.deps import get_current_identity, get_token_payload, rate_limit_check
from ...services.identity_store import IdentityStore
from ...schemas.auth import (
    LoginRequest, RegisterPatientRequest, RegisterDoctorRequest,
    PatientProfile, DoctorProfile
)
from ...schemas.common import success_response

router = APIRouter(prefix="/auth", tags=["Authentication"])

def _profile_payload(profile, identity: Identity) -> dict:
    if isinstance(identity, DoctorIdentity):
        return DoctorProfile.model_validate(profile).model_dump(mode="json")
    return PatientProfile.model_validate(profile).model_dump(mode="json")

@router.post("/register/patient", status_code=status.HTTP_201_CREATED)
def register_patient(
    patient_data: RegisterPatientRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient."""
    patient = IdentityStore(db).register_patient(patient_data)
    return success_response(
        "Registration successful",
        {"patient_id": patient.id, "email": patient.email}
    )

@router.post("/register/doctor", status_code=status.HTTP_201_CREATED)
def register_doctor(
    doctor_data: RegisterDoctorRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new doctor."""
    doctor = IdentityStore(db).register_doctor(doctor_data)
    return success_response(
        "Doctor registered successfully",
        {
            "doctor_id": doctor.id,
            "email": doctor.email,
            "full_name": f"{doctor.first_name} {doctor.last_name}",
        }
    )

@router.post("/login")
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate and return the access token for the session."""
    store = IdentityStore(db)
    user, identity = store.authenticate(login_data.email, login_data.password)
    token = create_session_token(user.id, identity.role, identity.id)

    return success_response("Login successful", {
        "access_token": token.access_token,
        "token_type": token.token_type,
        "expires_in": token.expires_in,
        "user": _profile_payload(user.profile, identity),
    })

@router.post("/logout")
def logout(
    token_payload: Optional[TokenPayload] = Depends(get_token_payload),
    db: Session = Depends(get_db)
):
    """End the session; the presented token is refused from now on."""
    if token_payload is not None:
        IdentityStore(db).revoke_token(token_payload)
    return success_response("Logged out successfully")

@router.get("/me")
def session_check(
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Return the logged-in user's current profile."""
    if identity is None:
        raise Unauthenticated("Not logged in")

    profile = IdentityStore(db).profile_for(identity)
    if profile is None:
        raise Unauthenticated("User not found")

    return success_response("Session valid", _profile_payload(profile, identity))
