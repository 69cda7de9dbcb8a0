from .helpers import PASSWORD, login, register_doctor, register_patient

# Test data
test_patient_data = {
    "firstName": "Test",
    "lastName": "Patient",
    "email": "test.patient@kekedental.com",
    "phone": "0712 345 678",
    "dateOfBirth": "1990-01-01",
    "gender": "male",
    "password": "TestPassword123",
}

test_login_data = {
    "email": "test.patient@kekedental.com",
    "password": "TestPassword123",
}

class TestAuthentication:

    def test_register_patient(self, client):
        """Test patient registration."""
        response = client.post("/api/v1/auth/register/patient", json=test_patient_data)
        assert response.status_code == 201

        data = response.json()
        assert data["success"] is True
        assert data["data"]["email"] == test_patient_data["email"]
        assert "password" not in data["data"]

    def test_register_duplicate_email(self, client):
        """Test registration with duplicate email."""
        client.post("/api/v1/auth/register/patient", json=test_patient_data)

        response = client.post("/api/v1/auth/register/patient", json=test_patient_data)
        assert response.status_code == 409
        assert response.json() == {"success": False, "message": "Email already registered"}

    def test_register_missing_field(self, client):
        """Test registration with a missing required field."""
        invalid_data = test_patient_data.copy()
        del invalid_data["gender"]

        response = client.post("/api/v1/auth/register/patient", json=invalid_data)
        assert response.status_code == 422
        assert response.json()["message"] == "Gender is required"

    def test_register_weak_password(self, client):
        """Test registration with invalid password."""
        invalid_data = test_patient_data.copy()
        invalid_data["password"] = "weak"

        response = client.post("/api/v1/auth/register/patient", json=invalid_data)
        assert response.status_code == 422
        assert response.json()["message"] == "Password must be at least 6 characters long"

    def test_register_too_young(self, client):
        """Test registration of a patient under the minimum age."""
        invalid_data = test_patient_data.copy()
        invalid_data["dateOfBirth"] = "2024-06-01"

        response = client.post("/api/v1/auth/register/patient", json=invalid_data)
        assert response.status_code == 422
        assert response.json()["message"] == "Patients must be at least 13 years old"

    def test_register_invalid_phone(self, client):
        invalid_data = test_patient_data.copy()
        invalid_data["phone"] = "call me"

        response = client.post("/api/v1/auth/register/patient", json=invalid_data)
        assert response.json()["message"] == "Invalid phone number format"

    def test_register_doctor(self, client):
        """Test doctor registration."""
        register_doctor(client, "dr.mensah@kekedental.com", "DEN-10001")

        response = client.get("/api/v1/doctors")
        assert response.status_code == 200
        doctors = response.json()["doctors"]
        assert doctors[0]["display_text"] == "Dr. Kwame Mensah - Orthodontics"

    def test_register_doctor_duplicate_license(self, client):
        """Test doctor registration with a license number already in use."""
        register_doctor(client, "dr.mensah@kekedental.com", "DEN-10001")

        response = client.post("/api/v1/auth/register/doctor", json={
            "first_name": "Lindiwe",
            "last_name": "Dube",
            "email": "dr.dube@kekedental.com",
            "phone": "0722 000 222",
            "specialization": "Endodontics",
            "license_number": "DEN-10001",
            "password": PASSWORD,
        })
        assert response.status_code == 409
        assert response.json()["message"] == "License number already exists"

    def test_register_doctor_short_license(self, client):
        response = client.post("/api/v1/auth/register/doctor", json={
            "first_name": "Lindiwe",
            "last_name": "Dube",
            "email": "dr.dube@kekedental.com",
            "phone": "0722 000 222",
            "specialization": "Endodontics",
            "license_number": "D1",
            "password": PASSWORD,
        })
        assert response.status_code == 422
        assert response.json()["message"] == "License number must be at least 5 characters"

    def test_login_success(self, client):
        """Test successful login."""
        client.post("/api/v1/auth/register/patient", json=test_patient_data)

        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 200

        data = response.json()["data"]
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "patient"
        assert data["user"]["first_name"] == "Test"

    def test_login_doctor_returns_doctor_fields(self, client):
        register_doctor(client, "dr.mensah@kekedental.com", "DEN-10001")

        response = client.post("/api/v1/auth/login", json={
            "email": "dr.mensah@kekedental.com", "password": PASSWORD
        })
        user = response.json()["data"]["user"]
        assert user["role"] == "doctor"
        assert user["license_number"] == "DEN-10001"

    def test_login_invalid_credentials(self, client):
        """Test login with invalid credentials."""
        invalid_login = {
            "email": "nonexistent@kekedental.com",
            "password": "wrongpassword"
        }

        response = client.post("/api/v1/auth/login", json=invalid_login)
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid email or password"}

    def test_login_wrong_password(self, client):
        """Test login with wrong password."""
        client.post("/api/v1/auth/register/patient", json=test_patient_data)

        wrong_login = test_login_data.copy()
        wrong_login["password"] = "wrongpassword"

        response = client.post("/api/v1/auth/login", json=wrong_login)
        assert response.status_code == 401

    def test_login_invalid_json(self, client):
        response = client.post(
            "/api/v1/auth/login",
            content="{not json",
            headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid JSON data"}

    def test_session_check(self, client):
        """Test getting current user info."""
        register_patient(client, "amara@kekedental.com")
        headers = login(client, "amara@kekedental.com")

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["email"] == "amara@kekedental.com"
        assert data["role"] == "patient"
        assert data["address"] == "12 Harbour Road"

    def test_session_check_invalid_token(self, client):
        """Test session check with invalid token."""
        headers = {"Authorization": "Bearer invalid_token"}

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not logged in"}

    def test_logout_revokes_token(self, client):
        """Test that a logged-out token no longer opens the session."""
        register_patient(client, "amara@kekedental.com")
        headers = login(client, "amara@kekedental.com")

        response = client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged out successfully"}

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not logged in"}

        response = client.get("/api/v1/appointments/mine", headers=headers)
        assert response.status_code == 401

    def test_logout_leaves_other_sessions_alone(self, client):
        """Test that logging out one session keeps a second login valid."""
        register_doctor(client, "dr.mensah@kekedental.com", "DEN-30001")
        first = login(client, "dr.mensah@kekedental.com")
        second = login(client, "dr.mensah@kekedental.com")

        client.post("/api/v1/auth/logout", headers=first)

        assert client.get("/api/v1/auth/me", headers=first).status_code == 401
        assert client.get("/api/v1/auth/me", headers=second).status_code == 200

    def test_logout_without_session(self, client):
        """Test that logout is idempotent and needs no session."""
        response = client.post("/api/v1/auth/logout")
        assert response.json() == {"success": True, "message": "Logged out successfully"}

        register_patient(client, "amara@kekedental.com")
        headers = login(client, "amara@kekedental.com")
        client.post("/api/v1/auth/logout", headers=headers)
        response = client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 200

    def test_login_is_rate_limited(self, client):
        for _ in range(10):
            client.post("/api/v1/auth/login", json=test_login_data)

        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 429
        assert response.json()["success"] is False
