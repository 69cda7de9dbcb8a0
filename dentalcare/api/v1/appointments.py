from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.identity import Identity
from ...api.deps import get_current_identity
from ...services.booking_service import BookingService
from ...services.status_service import StatusService
from ...services.query_service import QueryService
from ...schemas.appointment import (
    BookAppointmentRequest, CancelAppointmentRequest, UpdateStatusRequest
)
from ...schemas.common import success_response

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", status_code=status.HTTP_201_CREATED)
def book_appointment(
    booking: BookAppointmentRequest,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Book an appointment for the logged-in patient."""
    result = BookingService(db).book_appointment(identity, booking)
    return success_response(
        "Appointment booked successfully",
        result.model_dump(mode="json")
    )

@router.api_route("/cancel", methods=["PATCH", "POST"])
def cancel_appointment(
    cancel: CancelAppointmentRequest,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Cancel one of the logged-in patient's appointments."""
    appointment_id = StatusService(db).cancel_appointment(identity, cancel.appointment_id)
    return success_response(
        "Appointment cancelled successfully",
        {"appointment_id": appointment_id}
    )

@router.get("/mine")
def list_patient_appointments(
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """The logged-in patient's appointments, most recent first."""
    appointments = QueryService(db).list_for_patient(identity)
    return success_response(
        "Appointments retrieved",
        {"appointments": [item.model_dump(mode="json") for item in appointments]}
    )

@router.get("/doctor")
def list_doctor_appointments(
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """The logged-in doctor's schedule, earliest first."""
    appointments = QueryService(db).list_for_doctor(identity)
    return success_response(
        appointments=[item.model_dump(mode="json") for item in appointments]
    )

@router.patch("/status")
def update_appointment_status(
    update: UpdateStatusRequest,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Change the status of an appointment assigned to the logged-in doctor."""
    appointment = StatusService(db).update_status(identity, update.appointment_id, update.status)
    return success_response(
        "Appointment status updated successfully",
        {"appointment": appointment.model_dump(mode="json")}
    )
