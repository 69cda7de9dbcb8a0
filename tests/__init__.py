"""
Test suite for the Dental Clinic Appointment System.

Contains service-level and HTTP-level tests for booking, cancellation,
status updates, listings and authentication.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
