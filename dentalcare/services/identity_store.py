from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import Optional, Tuple, Union
import logging

from ..models.user import RevokedToken, User
from ..models.patient import Patient
from ..models.doctor import Doctor, DEFAULT_IMAGE_URL
from ..models.appointment import Appointment  # noqa: F401  (mapper registry)
from ..core.security import verify_password, get_password_hash, TokenPayload, UserRole
from ..core.identity import Identity, identity_for
from ..core.exceptions import ConflictError, StoreError, Unauthenticated, ValidationError
from ..schemas.auth import RegisterPatientRequest, RegisterDoctorRequest
from . import validation

logger = logging.getLogger(__name__)

MIN_PATIENT_AGE = 13
MIN_LICENSE_LENGTH = 5

Profile = Union[Patient, Doctor]

class IdentityStore:
    """Patient and doctor records plus the credentials that log them in."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        """Credential record for ``email``; its ``profile`` holds the person."""
        try:
            return self.db.execute(
                select(User).where(User.email == email)
            ).scalars().first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Credential lookup failed: {str(e)}")
            raise StoreError()

    def get_profile(self, profile_id: int, role: UserRole) -> Optional[Profile]:
        model = Doctor if role == UserRole.DOCTOR else Patient
        try:
            return self.db.get(model, profile_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Profile lookup failed: {str(e)}")
            raise StoreError()

    def profile_for(self, identity: Identity) -> Optional[Profile]:
        return self.get_profile(identity.id, identity.role)

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Tuple[User, Identity]:
        """Resolve an email and password pair to the identity it logs in as."""
        if validation.is_blank(email) or validation.is_blank(password):
            raise ValidationError("email", "Email and password are required")
        email = validation.check_email(email.strip())

        user = self.find_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise Unauthenticated("Invalid email or password")

        profile = user.profile
        if profile is None:
            logger.error(f"User {user.id} has no {user.role.value} profile")
            raise Unauthenticated("Invalid email or password")

        user.last_login = datetime.utcnow()
        self._commit("record login")
        return user, identity_for(user.role, profile.id)

    def is_token_revoked(self, jti: str) -> bool:
        try:
            return self.db.execute(
                select(RevokedToken.id).where(RevokedToken.jti == jti)
            ).first() is not None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Token lookup failed: {str(e)}")
            raise StoreError()

    def revoke_token(self, payload: TokenPayload) -> bool:
        """End the session a verified access token belongs to.

        Returns False when the token cannot be revoked (no ``jti``) or was
        already revoked. Revocations of tokens past their expiry are purged.
        """
        if not payload.jti or self.is_token_revoked(payload.jti):
            return False

        now = datetime.utcnow()
        expires_at = datetime.utcfromtimestamp(payload.exp) if payload.exp else now
        self._purge_revocations(now)
        self.db.add(RevokedToken(
            jti=payload.jti,
            user_id=int(payload.sub) if payload.sub and payload.sub.isdigit() else 0,
            expires_at=expires_at,
        ))
        try:
            self._commit("revoke token", conflict_message="Token already revoked")
        except ConflictError:
            return False
        logger.info(f"Revoked session token for user {payload.sub}")
        return True

    def register_patient(self, data: RegisterPatientRequest, today: Optional[date] = None) -> Patient:
        """Create a patient profile together with its login credentials."""
        fields = data.model_dump()
        validation.require_fields(
            fields,
            ["first_name", "last_name", "email", "phone", "date_of_birth", "gender", "password"],
            labels={
                "first_name": "FirstName", "last_name": "LastName",
                "date_of_birth": "DateOfBirth",
            },
        )
        email = validation.check_email(data.email.strip())
        validation.check_password(data.password)
        validation.check_phone(data.phone)
        date_of_birth = validation.parse_date(
            "date_of_birth", data.date_of_birth, "Invalid date of birth format"
        )
        if _age_on(date_of_birth, today or date.today()) < MIN_PATIENT_AGE:
            raise ValidationError("date_of_birth", f"Patients must be at least {MIN_PATIENT_AGE} years old")

        self._ensure_email_free(email)

        user = User(email=email, password_hash=get_password_hash(data.password), role=UserRole.PATIENT)
        patient = Patient(
            user=user,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=email,
            phone=data.phone.strip(),
            date_of_birth=date_of_birth,
            gender=data.gender.strip(),
            address=(data.address or "").strip() or None,
        )
        self.db.add_all([user, patient])
        self._commit("register patient", conflict_message="Email already registered")
        self.db.refresh(patient)
        logger.info(f"Registered patient {patient.id}")
        return patient

    def register_doctor(self, data: RegisterDoctorRequest) -> Doctor:
        """Create a doctor profile together with its login credentials."""
        fields = data.model_dump()
        validation.require_fields(
            fields,
            ["first_name", "last_name", "email", "phone", "specialization", "license_number", "password"],
            labels={
                "first_name": "First name", "last_name": "Last name",
                "license_number": "License number",
            },
        )
        email = validation.check_email(data.email.strip())
        validation.check_password(data.password)
        validation.check_phone(data.phone)
        license_number = data.license_number.strip()
        if len(license_number) < MIN_LICENSE_LENGTH:
            raise ValidationError("license_number", f"License number must be at least {MIN_LICENSE_LENGTH} characters")

        self._ensure_email_free(email)
        if self._license_taken(license_number):
            raise ConflictError("License number already exists")

        user = User(email=email, password_hash=get_password_hash(data.password), role=UserRole.DOCTOR)
        doctor = Doctor(
            user=user,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=email,
            phone=data.phone.strip(),
            specialization=data.specialization.strip(),
            license_number=license_number,
            bio=data.bio or "",
            image_url=data.image_url or DEFAULT_IMAGE_URL,
        )
        self.db.add_all([user, doctor])
        self._commit("register doctor", conflict_message="Email or license number already registered")
        self.db.refresh(doctor)
        logger.info(f"Registered doctor {doctor.id}")
        return doctor

    def _ensure_email_free(self, email: str) -> None:
        if self.find_by_email(email):
            raise ConflictError("Email already registered")

    def _license_taken(self, license_number: str) -> bool:
        try:
            return self.db.execute(
                select(Doctor.id).where(Doctor.license_number == license_number)
            ).first() is not None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"License lookup failed: {str(e)}")
            raise StoreError()

    def _purge_revocations(self, now: datetime) -> None:
        try:
            self.db.execute(delete(RevokedToken).where(RevokedToken.expires_at < now))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to purge revoked tokens: {str(e)}")
            raise StoreError()

    def _commit(self, action: str, conflict_message: str = "Record already exists") -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(conflict_message)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise StoreError()


def _age_on(birth: date, today: date) -> int:
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years
