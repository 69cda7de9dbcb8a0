from datetime import date
from typing import Callable, Optional
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import ConflictError, Forbidden, Unauthenticated, ValidationError
from ..core.identity import Identity, PatientIdentity
from ..core.security import UserRole
from ..models.appointment import AppointmentType
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.appointment import BookAppointmentRequest, BookingResult, AppointmentDetail
from .identity_store import IdentityStore
from . import validation

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["doctor", "appointmentType", "date", "time"]
APPOINTMENT_TYPES = {member.value for member in AppointmentType}


class BookingService:
    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.repo = AppointmentRepository(db)
        self.identities = IdentityStore(db)
        self.today = today

    def book_appointment(self, identity: Optional[Identity], request: BookAppointmentRequest) -> BookingResult:
        """Book a slot with a doctor on behalf of the logged-in patient.

        Nothing is written unless every check passes. The slot check is
        repeated by the database's active-slot index, so when two patients
        race for the same slot exactly one insert succeeds.
        """
        if identity is None:
            raise Unauthenticated()
        if not isinstance(identity, PatientIdentity):
            raise Forbidden("Only patients can book appointments")

        fields = request.model_dump(by_alias=True)
        validation.require_fields(fields, REQUIRED_FIELDS)

        appointment_type = request.appointment_type.strip()
        if appointment_type not in APPOINTMENT_TYPES:
            raise ValidationError("appointmentType", "Invalid appointment type")

        appointment_date = validation.parse_date("date", request.date)
        if appointment_date < self.today():
            raise ValidationError("date", "Cannot book appointments in the past")

        appointment_time = validation.normalize_time("time", request.time)

        doctor_id = validation.parse_id("doctor", request.doctor, "doctor")
        if self.identities.get_profile(doctor_id, UserRole.DOCTOR) is None:
            raise ValidationError("doctor", "Doctor not found")

        if self.repo.find_slot_occupant(doctor_id, appointment_date, appointment_time):
            logger.warning(
                f"Patient {identity.id} tried occupied slot doctor={doctor_id} "
                f"{appointment_date} {appointment_time}"
            )
            raise ConflictError("Selected time slot is not available")

        try:
            appointment = self.repo.insert(
                patient_id=identity.id,
                doctor_id=doctor_id,
                appointment_type=AppointmentType(appointment_type),
                appointment_date=appointment_date,
                appointment_time=appointment_time,
                notes=(request.notes or "").strip(),
            )
        except ConflictError:
            logger.warning(
                f"Slot doctor={doctor_id} {appointment_date} {appointment_time} "
                f"taken concurrently; patient {identity.id} rejected"
            )
            raise ConflictError("Selected time slot is not available")

        logger.info(
            f"Patient {identity.id} booked appointment {appointment.id} with doctor {doctor_id} "
            f"on {appointment_date} at {appointment_time}"
        )
        detail = self.repo.detail(appointment.id)
        return BookingResult(
            appointment_id=appointment.id,
            appointment=AppointmentDetail.model_validate(detail),
        )
