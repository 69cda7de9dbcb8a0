from datetime import timedelta

import pytest

from dentalcare.core.exceptions import Forbidden, Unauthenticated
from dentalcare.core.identity import DoctorIdentity, PatientIdentity
from dentalcare.models.appointment import AppointmentStatus, AppointmentType
from dentalcare.repositories.appointment_repository import AppointmentRepository
from dentalcare.services.query_service import QueryService

from .helpers import TODAY


@pytest.fixture
def schedule(db, make_doctor, make_patient):
    """Two doctors, two patients, appointments inserted out of order."""
    kwame = make_doctor()
    lindiwe = make_doctor(first_name="Lindiwe", last_name="Dube", specialization="Endodontics")
    amara = make_patient()
    tendai = make_patient(first_name="Tendai", last_name="Moyo")
    repo = AppointmentRepository(db)

    def book(doctor, patient, days, time):
        return repo.insert(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_type=AppointmentType.CONSULTATION,
            appointment_date=TODAY + timedelta(days=days),
            appointment_time=time,
        ).id

    ids = {
        "late": book(kwame, amara, 2, "15:00"),
        "early": book(kwame, tendai, 0, "09:00"),
        "middle": book(kwame, amara, 2, "08:30"),
        "other_doctor": book(lindiwe, amara, 1, "11:00"),
    }
    return {"kwame": kwame, "lindiwe": lindiwe, "amara": amara, "tendai": tendai, "ids": ids}


def test_doctor_schedule_is_ascending(db, schedule):
    items = QueryService(db).list_for_doctor(DoctorIdentity(schedule["kwame"].id))

    ids = schedule["ids"]
    assert [item.id for item in items] == [ids["early"], ids["middle"], ids["late"]]
    assert items[0].patient_first_name == "Tendai"
    assert items[0].patient_last_name == "Moyo"


def test_patient_history_is_descending(db, schedule):
    items = QueryService(db).list_for_patient(PatientIdentity(schedule["amara"].id))

    ids = schedule["ids"]
    assert [item.id for item in items] == [ids["late"], ids["middle"], ids["other_doctor"]]
    assert items[-1].doctor_first_name == "Lindiwe"
    assert items[-1].specialization == "Endodontics"


def test_listings_are_scoped_to_the_identity(db, schedule):
    items = QueryService(db).list_for_doctor(DoctorIdentity(schedule["lindiwe"].id))
    assert [item.id for item in items] == [schedule["ids"]["other_doctor"]]

    assert QueryService(db).list_for_patient(PatientIdentity(9999)) == []


def test_listings_reflect_status_changes(db, schedule):
    repo = AppointmentRepository(db)
    repo.set_status(schedule["ids"]["early"], AppointmentStatus.CANCELLED)

    items = QueryService(db).list_for_doctor(DoctorIdentity(schedule["kwame"].id))
    assert items[0].status == AppointmentStatus.CANCELLED


def test_listing_requires_matching_role(db, schedule):
    service = QueryService(db)
    with pytest.raises(Unauthenticated):
        service.list_for_doctor(None)
    with pytest.raises(Forbidden):
        service.list_for_doctor(PatientIdentity(schedule["amara"].id))
    with pytest.raises(Forbidden):
        service.list_for_patient(DoctorIdentity(schedule["kwame"].id))


def test_doctor_directory(db, schedule):
    listing = QueryService(db).list_doctors()

    assert [doctor.name for doctor in listing] == ["Kwame Mensah", "Lindiwe Dube"]
    assert listing[1].display_text == "Dr. Lindiwe Dube - Endodontics"
    assert listing[0].image_url == "assets/doc_placeholder.png"
