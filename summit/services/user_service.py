"""
services/user_service.py
------------------------
Business logic for signup, authentication, and staff user management.

All user management is scoped by company_id; only signup and login look a
user up before a tenant is known.
"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.config import settings
from summit.core.errors import Conflict, Unauthorized, ValidationFailed
from summit.core.guard import Authorized
from summit.core.logging import get_logger
from summit.core.permissions import Role
from summit.core.security import hash_password, verify_password
from summit.models.user import User
from summit.repositories.company import CompanyRepository, UserRepository
from summit.schemas.user import RegisterRequest, UserCreate, UserUpdate

logger = get_logger(__name__)


class UserService:

    @staticmethod
    async def register(db: AsyncSession, data: RegisterRequest) -> User:
        """
        Public signup: a new company plus its first admin.
        Raises Unauthorized when signup is disabled, Conflict on duplicate email.
        """
        if settings.DISABLE_SIGNUP:
            raise Unauthorized("Signup is currently disabled")

        users = UserRepository(db)
        if await users.find_by_email(data.email) is not None:
            raise Conflict(f"Email '{data.email}' is already registered")

        company = await CompanyRepository(db).register(data.company_name)
        user = await users.create(
            company.id,
            name=data.name,
            email=data.email.lower(),
            hashed_password=hash_password(data.password),
            role=Role.admin.value,
        )
        logger.info("Company registered", company_id=company.id, user_id=user.id)
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
        """
        Verify credentials and return the User if valid, else None.
        Email lookup is case-insensitive; soft-deleted users cannot log in.
        """
        user = await UserRepository(db).find_by_email(email)
        if user is None or user.soft_delete:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    @staticmethod
    async def list_users(db: AsyncSession, company_id: str) -> List[User]:
        return await UserRepository(db).list_active(company_id)

    @staticmethod
    async def create_user(db: AsyncSession, auth: Authorized, data: UserCreate) -> User:
        users = UserRepository(db)
        if await users.find_by_email(data.email) is not None:
            raise Conflict(f"Email '{data.email}' is already registered")
        user = await users.create(
            auth.company_id,
            name=data.name,
            email=data.email.lower(),
            hashed_password=hash_password(data.password),
            role=data.role.value,
        )
        logger.info(
            "User created",
            company_id=auth.company_id,
            new_user_id=user.id,
            role=user.role,
            by=auth.user_id,
        )
        return user

    @staticmethod
    async def update_user(
        db: AsyncSession, auth: Authorized, user_id: str, data: UserUpdate
    ) -> User:
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "role" in values:
            values["role"] = Role(values["role"]).value
        user = await UserRepository(db).update(auth.company_id, user_id, **values)
        logger.info("User updated", company_id=auth.company_id, user_id=user_id)
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, auth: Authorized, user_id: str) -> None:
        """Soft delete; the row stays for audit history."""
        if user_id == auth.user_id:
            raise ValidationFailed("You cannot delete your own account")
        await UserRepository(db).soft_delete(auth.company_id, user_id)
        logger.info("User deleted", company_id=auth.company_id, user_id=user_id)
