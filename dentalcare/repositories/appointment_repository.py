from datetime import date, datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ConflictError, StoreError
from ..models.appointment import Appointment, AppointmentStatus, AppointmentType
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User  # noqa: F401  (mapper registry)

logger = logging.getLogger(__name__)

APPOINTMENT_COLUMNS = (
    "id", "patient_id", "doctor_id", "appointment_type", "appointment_date",
    "appointment_time", "notes", "status", "created_at", "updated_at",
)


def appointment_to_dict(appointment: Appointment) -> Dict[str, Any]:
    return {name: getattr(appointment, name) for name in APPOINTMENT_COLUMNS}


class AppointmentRepository:
    """Every read and write of the appointments table goes through here.

    Writes commit immediately. A write that collides with the active-slot
    unique index is reported as ``ConflictError``; any other database
    failure is logged, rolled back and reported as ``StoreError``.
    """

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self._run(lambda: self.db.get(Appointment, appointment_id))

    def find_slot_occupant(self, doctor_id: int, appointment_date: date, appointment_time: str) -> Optional[Appointment]:
        """Return the non-cancelled appointment holding the slot, if any."""
        query = (
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.appointment_time == appointment_time)
            .where(Appointment.status != AppointmentStatus.CANCELLED)
            .limit(1)
        )
        return self._run(lambda: self.db.execute(query).scalars().first())

    def detail(self, appointment_id: int) -> Optional[Dict[str, Any]]:
        """Appointment joined with both the doctor's and the patient's display fields."""
        query = (
            select(
                Appointment,
                Doctor.first_name.label("doctor_first_name"),
                Doctor.last_name.label("doctor_last_name"),
                Doctor.specialization.label("specialization"),
                Patient.first_name.label("patient_first_name"),
                Patient.last_name.label("patient_last_name"),
                Patient.phone.label("patient_phone"),
            )
            .outerjoin(Doctor, Appointment.doctor_id == Doctor.id)
            .outerjoin(Patient, Appointment.patient_id == Patient.id)
            .where(Appointment.id == appointment_id)
        )
        rows = self._rows(query)
        return rows[0] if rows else None

    def list_by_doctor(self, doctor_id: int) -> List[Dict[str, Any]]:
        query = (
            select(
                Appointment,
                Patient.first_name.label("patient_first_name"),
                Patient.last_name.label("patient_last_name"),
            )
            .outerjoin(Patient, Appointment.patient_id == Patient.id)
            .where(Appointment.doctor_id == doctor_id)
            .order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc(), Appointment.id.asc())
        )
        return self._rows(query)

    def list_by_patient(self, patient_id: int) -> List[Dict[str, Any]]:
        query = (
            select(
                Appointment,
                Doctor.first_name.label("doctor_first_name"),
                Doctor.last_name.label("doctor_last_name"),
                Doctor.specialization.label("specialization"),
            )
            .outerjoin(Doctor, Appointment.doctor_id == Doctor.id)
            .where(Appointment.patient_id == patient_id)
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc(), Appointment.id.desc())
        )
        return self._rows(query)

    # Writes

    def insert(
        self,
        patient_id: int,
        doctor_id: int,
        appointment_type: AppointmentType,
        appointment_date: date,
        appointment_time: str,
        notes: str = "",
    ) -> Appointment:
        """Create a scheduled appointment and return it with its new id."""
        now = datetime.utcnow()
        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_type=appointment_type,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            notes=notes,
            status=AppointmentStatus.SCHEDULED,
            created_at=now,
            updated_at=now,
        )
        self.db.add(appointment)
        self._commit("insert appointment")
        self.db.refresh(appointment)
        return appointment

    def set_status(
        self,
        appointment_id: int,
        new_status: AppointmentStatus,
        doctor_id: Optional[int] = None,
        unless_status: Optional[AppointmentStatus] = None,
    ) -> int:
        """Set the status of one appointment and return the number of rows touched.

        ``doctor_id`` restricts the update to appointments assigned to that
        doctor; ``unless_status`` skips the row if it already holds that
        status, so concurrent writers cannot both apply the same change.
        """
        statement = (
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .values(status=new_status, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if doctor_id is not None:
            statement = statement.where(Appointment.doctor_id == doctor_id)
        if unless_status is not None:
            statement = statement.where(Appointment.status != unless_status)

        try:
            result = self.db.execute(statement)
        except IntegrityError:
            self.db.rollback()
            raise ConflictError()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating appointment {appointment_id}: {str(e)}")
            raise StoreError()
        self._commit(f"update appointment {appointment_id}")
        return result.rowcount

    # Helpers

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise StoreError()

    def _rows(self, query) -> List[Dict[str, Any]]:
        def fetch():
            views = []
            for row in self.db.execute(query).all():
                view = appointment_to_dict(row[0])
                view.update(zip(row._fields[1:], row[1:]))
                views.append(view)
            return views
        return self._run(fetch)

    def _run(self, read):
        try:
            return read()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Appointment query failed: {str(e)}")
            raise StoreError()
