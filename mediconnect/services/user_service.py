"""User service - Directory lookups for doctors, patients and staff."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from mediconnect.exceptions import NotFound
from mediconnect.models.user import User, UserRole
from mediconnect.schemas.user import UserCreate


class UserService:
    """Service class for directory operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, user_data: UserCreate) -> User:
        """Create a new directory entry."""
        data = user_data.model_dump()
        data["role"] = user_data.role.value
        user = User(**data)
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await self.db.get(User, user_id)

    async def list_users(self, role: UserRole | None = None) -> list[User]:
        """List directory entries, optionally by role."""
        query = select(User)
        if role:
            query = query.where(User.role == role.value)
        result = await self.db.execute(query.order_by(User.name))
        return list(result.scalars().all())

    async def require(self, user_id: UUID, role: UserRole) -> User:
        """Get a user with the given role or raise NotFound."""
        user = await self.get_user_by_id(user_id)
        if user is None or user.role != role.value:
            raise NotFound(f"{role.value.capitalize()} {user_id} not found")
        return user

    async def require_doctor(self, doctor_id: UUID) -> User:
        return await self.require(doctor_id, UserRole.DOCTOR)

    async def require_patient(self, patient_id: UUID) -> User:
        return await self.require(patient_id, UserRole.PATIENT)
