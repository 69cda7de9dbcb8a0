from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class RegisterPatientRequest(BaseModel):
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth")
    gender: Optional[str] = None
    address: Optional[str] = None
    password: Optional[str] = None

    class Config:
        populate_by_name = True

class RegisterDoctorRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    bio: Optional[str] = None
    image_url: Optional[str] = None
    password: Optional[str] = None

class PatientProfile(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    date_of_birth: date
    gender: str
    address: Optional[str] = None
    role: str = "patient"

    class Config:
        from_attributes = True

class DoctorProfile(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    specialization: str
    license_number: str
    role: str = "doctor"

    class Config:
        from_attributes = True

class DoctorListing(BaseModel):
    id: int
    name: str
    specialization: str
    image_url: Optional[str] = None
    display_text: str
