"""
Dental Clinic Appointment System

A FastAPI service for a dental clinic: patient and doctor accounts,
appointment booking with slot-conflict checks, cancellations and
doctor-side status updates.
"""

__version__ = "1.0.0"
