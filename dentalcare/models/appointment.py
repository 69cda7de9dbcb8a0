from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Text, Index, text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .user import enum_values

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class AppointmentType(str, enum.Enum):
    CONSULTATION = "consultation"
    CLEANING = "cleaning"
    FILLING = "filling"
    EXTRACTION = "extraction"
    ORTHODONTIC = "orthodontic"
    EMERGENCY = "emergency"

# A slot is held by any appointment that is not cancelled
SLOT_HELD_CLAUSE = text("status != 'cancelled'")

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "doctor_id", "appointment_date", "appointment_time",
            unique=True,
            sqlite_where=SLOT_HELD_CLAUSE,
            postgresql_where=SLOT_HELD_CLAUSE,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Appointment details
    appointment_type = Column(
        SQLEnum(AppointmentType, name="appointment_type", native_enum=False, values_callable=enum_values),
        nullable=False
    )
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(5), nullable=False)  # HH:MM, zero padded
    notes = Column(Text, nullable=False, default="")
    status = Column(
        SQLEnum(AppointmentStatus, name="appointment_status", native_enum=False, values_callable=enum_values),
        nullable=False,
        default=AppointmentStatus.SCHEDULED
    )

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.appointment_date}', time='{self.appointment_time}')>"
