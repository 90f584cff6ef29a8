from fastapi import APIRouter
from mediconnect.api.routes import appointments, availability, exceptions, slots, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(availability.router, prefix="/doctors", tags=["Availability"])
api_router.include_router(exceptions.router, prefix="/doctors", tags=["Exceptions"])
api_router.include_router(slots.router, tags=["Slots"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
