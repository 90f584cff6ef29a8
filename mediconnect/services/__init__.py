"""Services package - Business logic layer."""

from mediconnect.services.user_service import UserService
from mediconnect.services.availability_service import AvailabilityService
from mediconnect.services.exception_service import ExceptionService
from mediconnect.services.slot_resolver import SlotResolver, Slot
from mediconnect.services.appointment_service import AppointmentService
from mediconnect.services.lifecycle import LifecycleController, TRANSITIONS

__all__ = [
    "UserService",
    "AvailabilityService",
    "ExceptionService",
    "SlotResolver",
    "Slot",
    "AppointmentService",
    "LifecycleController",
    "TRANSITIONS",
]
