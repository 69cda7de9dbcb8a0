from typing import Any, Optional
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import (
    AlreadyInState, Forbidden, NotFound, Unauthenticated, UpdateFailed, ValidationError
)
from ..core.identity import DoctorIdentity, Identity, PatientIdentity
from ..models.appointment import AppointmentStatus
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.appointment import AppointmentDetail
from . import validation

logger = logging.getLogger(__name__)

# The response text for a doctor touching an appointment that is missing
# or assigned to someone else; callers cannot tell the two apart.
NOT_YOUR_APPOINTMENT = "You can only update your own appointments"


def is_transition_allowed(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """Whether a doctor may move an appointment from ``current`` to ``new``.

    Every transition is currently permitted, including re-opening completed
    or cancelled appointments.
    """
    return True


def _parse_status(value: Any) -> AppointmentStatus:
    if validation.is_blank(value):
        raise ValidationError("status", "Status is required")
    try:
        return AppointmentStatus(str(value).strip())
    except ValueError:
        raise ValidationError("status", "Invalid status value")


def _parse_appointment_id(value: Any) -> int:
    if validation.is_blank(value):
        raise ValidationError("appointment_id", "Appointment ID is required")
    return validation.parse_id("appointment_id", value, "appointment ID")


class StatusService:
    """Applies status changes to appointments on behalf of their owners."""

    def __init__(self, db: Session):
        self.repo = AppointmentRepository(db)

    def cancel_appointment(self, identity: Optional[Identity], appointment_id: Any) -> int:
        """Cancel an appointment the patient booked; returns its id."""
        if identity is None:
            raise Unauthenticated()
        if not isinstance(identity, PatientIdentity):
            raise Forbidden("Only patients can cancel appointments")

        appointment_id = _parse_appointment_id(appointment_id)
        appointment = self.repo.get(appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found")
        if appointment.patient_id != identity.id:
            logger.warning(f"Patient {identity.id} tried to cancel appointment {appointment_id} they do not own")
            raise Forbidden("Not authorized to cancel this appointment")
        if appointment.status == AppointmentStatus.CANCELLED:
            raise AlreadyInState("Appointment already cancelled")

        touched = self.repo.set_status(
            appointment_id,
            AppointmentStatus.CANCELLED,
            unless_status=AppointmentStatus.CANCELLED,
        )
        if touched == 0:
            # Lost a race with another cancellation of the same appointment
            raise AlreadyInState("Appointment already cancelled")

        logger.info(f"Patient {identity.id} cancelled appointment {appointment_id}")
        return appointment_id

    def update_status(self, identity: Optional[Identity], appointment_id: Any, new_status: Any) -> AppointmentDetail:
        """Set the status of an appointment assigned to the requesting doctor."""
        if identity is None:
            raise Unauthenticated("Not logged in")
        if not isinstance(identity, DoctorIdentity):
            raise Forbidden("Only doctors can update appointment status")

        appointment_id = _parse_appointment_id(appointment_id)
        status = _parse_status(new_status)

        appointment = self.repo.get(appointment_id)
        if appointment is None:
            raise NotFound(
                "Appointment not found",
                public_message=NOT_YOUR_APPOINTMENT,
                public_status_code=Forbidden.status_code,
            )
        if appointment.doctor_id != identity.id:
            logger.warning(f"Doctor {identity.id} tried to update appointment {appointment_id} assigned elsewhere")
            raise Forbidden(NOT_YOUR_APPOINTMENT)

        current = appointment.status
        if not is_transition_allowed(current, status):
            raise ValidationError("status", f"Cannot change status from {current.value} to {status.value}")

        touched = self.repo.set_status(appointment_id, status, doctor_id=identity.id)
        if touched == 0:
            raise UpdateFailed("Failed to update appointment status")

        logger.info(
            f"Doctor {identity.id} moved appointment {appointment_id} "
            f"from {current.value} to {status.value}"
        )
        return AppointmentDetail.model_validate(self.repo.detail(appointment_id))
