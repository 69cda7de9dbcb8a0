from datetime import date, timedelta

# Fixed "today" handed to services under test
TODAY = date(2030, 1, 15)


def days_from(base: date, days: int) -> str:
    return (base + timedelta(days=days)).isoformat()


PASSWORD = "Molar#2030"


def register_patient(client, email, first_name="Amara", last_name="Okafor"):
    payload = {
        "firstName": first_name,
        "lastName": last_name,
        "email": email,
        "phone": "+254 712 345678",
        "dateOfBirth": "1991-03-09",
        "gender": "female",
        "address": "12 Harbour Road",
        "password": PASSWORD,
    }
    response = client.post("/api/v1/auth/register/patient", json=payload)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["patient_id"]


def register_doctor(client, email, license_number, first_name="Kwame", last_name="Mensah"):
    payload = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": "0722 000 111",
        "specialization": "Orthodontics",
        "license_number": license_number,
        "password": PASSWORD,
    }
    response = client.post("/api/v1/auth/register/doctor", json=payload)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["doctor_id"]


def login(client, email, password=PASSWORD):
    """Log in and return the Authorization header for the session."""
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.json()
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}
