from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..core.exceptions import Forbidden, StoreError, Unauthenticated
from ..core.identity import DoctorIdentity, Identity, PatientIdentity
from ..models.doctor import Doctor
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.appointment import DoctorScheduleItem, PatientHistoryItem
from ..schemas.auth import DoctorListing

logger = logging.getLogger(__name__)


class QueryService:
    """Read-only, role-scoped appointment listings."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository(db)

    def list_for_doctor(self, identity: Optional[Identity]) -> List[DoctorScheduleItem]:
        """The doctor's schedule, earliest first."""
        if identity is None:
            raise Unauthenticated("Not logged in")
        if not isinstance(identity, DoctorIdentity):
            raise Forbidden("Doctor access required")
        rows = self.repo.list_by_doctor(identity.id)
        logger.info(f"Found {len(rows)} appointments for doctor {identity.id}")
        return [DoctorScheduleItem.model_validate(row) for row in rows]

    def list_for_patient(self, identity: Optional[Identity]) -> List[PatientHistoryItem]:
        """The patient's appointments, most recent first."""
        if identity is None:
            raise Unauthenticated("Not logged in")
        if not isinstance(identity, PatientIdentity):
            raise Forbidden("Patient access required")
        rows = self.repo.list_by_patient(identity.id)
        return [PatientHistoryItem.model_validate(row) for row in rows]

    def list_doctors(self) -> List[DoctorListing]:
        try:
            doctors = self.db.execute(
                select(Doctor).order_by(Doctor.first_name, Doctor.last_name)
            ).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch doctors: {str(e)}")
            raise StoreError("Failed to fetch doctors")

        return [
            DoctorListing(
                id=doctor.id,
                name=f"{doctor.first_name} {doctor.last_name}",
                specialization=doctor.specialization,
                image_url=doctor.image_url,
                display_text=f"Dr. {doctor.first_name} {doctor.last_name} - {doctor.specialization}",
            )
            for doctor in doctors
        ]
