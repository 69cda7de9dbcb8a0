from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from ..models.appointment import AppointmentStatus, AppointmentType

# Request bodies stay loose: presence and format checks belong to the
# services so they report the same errors whatever the transport.

class BookAppointmentRequest(BaseModel):
    doctor: Optional[Union[int, str]] = None
    appointment_type: Optional[str] = Field(default=None, alias="appointmentType")
    date: Optional[str] = None
    time: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        populate_by_name = True

class CancelAppointmentRequest(BaseModel):
    appointment_id: Optional[Union[int, str]] = None

class UpdateStatusRequest(BaseModel):
    appointment_id: Optional[Union[int, str]] = None
    status: Optional[str] = None

# Responses

class AppointmentOut(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_type: AppointmentType
    appointment_date: date
    appointment_time: str
    notes: str = ""
    status: AppointmentStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DoctorScheduleItem(AppointmentOut):
    """A doctor's view of an appointment: who the patient is."""
    patient_first_name: Optional[str] = None
    patient_last_name: Optional[str] = None

class PatientHistoryItem(AppointmentOut):
    """A patient's view of an appointment: which doctor they see."""
    doctor_first_name: Optional[str] = None
    doctor_last_name: Optional[str] = None
    specialization: Optional[str] = None

class AppointmentDetail(AppointmentOut):
    doctor_first_name: Optional[str] = None
    doctor_last_name: Optional[str] = None
    specialization: Optional[str] = None
    patient_first_name: Optional[str] = None
    patient_last_name: Optional[str] = None
    patient_phone: Optional[str] = None

class BookingResult(BaseModel):
    appointment_id: int
    appointment: AppointmentDetail
