"""User routes - Directory endpoints for doctors, patients and staff."""

from fastapi import APIRouter, HTTPException
from uuid import UUID

from mediconnect.api.deps import DBSession
from mediconnect.models.user import UserRole
from mediconnect.schemas.user import UserCreate, UserResponse
from mediconnect.services.user_service import UserService

router = APIRouter()


@router.post("/", response_model=UserResponse, status_code=201)
async def create_user(user_data: UserCreate, db: DBSession):
    """Create a new directory entry."""
    service = UserService(db)
    return await service.create_user(user_data)


@router.get("/", response_model=list[UserResponse])
async def list_users(db: DBSession, role: UserRole | None = None):
    """List directory entries, optionally filtered by role."""
    service = UserService(db)
    return await service.list_users(role)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, db: DBSession):
    """Get a user by ID."""
    service = UserService(db)
    user = await service.get_user_by_id(user_id)

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return user
