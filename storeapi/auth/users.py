"""
User management service.

This module provides functionality for:
- The credential store (user lookups and creation)
- User registration
- User authentication
- User profile retrieval
"""
from datetime import datetime
from typing import AsyncIterator, Optional, Tuple

from fastapi import Request
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.auth.jwt import TokenService
from storeapi.auth.models import ROLE_USER, User
from storeapi.errors import Forbidden, Unauthenticated, ValidationFailed


# Pydantic models for request validation
class UserCreate(BaseModel):
    """Model for user registration."""
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=15)
    address: Optional[str] = Field(None, max_length=255)

    @field_validator('name')
    @classmethod
    def name_must_not_be_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @field_validator('email')
    @classmethod
    def email_lowercase(cls, v):
        return v.lower()


class UserLogin(BaseModel):
    """Model for user login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    """Model for user information returned to clients."""
    id: str
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting a database session."""
    async with request.app.state.session_factory() as session:
        yield session


class UserRepository:
    """
    Credential store backed by the users table.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create(self, user: User) -> User:
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user


class UserService:
    """
    Service for account operations.
    """

    def __init__(self, users: UserRepository, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    async def register_user(self, user_data: UserCreate, role: str = ROLE_USER) -> Tuple[User, str]:
        """
        Register a new user.

        Returns:
            Tuple of the stored user and a session token

        Raises:
            ValidationFailed: If the email is already registered
        """
        if await self.users.find_by_email(user_data.email) is not None:
            raise ValidationFailed("User already exists")

        new_user = User(
            name=user_data.name,
            email=user_data.email.lower(),
            hashed_password=User.get_password_hash(user_data.password),
            role=role,
            phone=user_data.phone,
            address=user_data.address,
        )
        try:
            new_user = await self.users.create(new_user)
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            await self.users.db.rollback()
            raise ValidationFailed("User already exists") from e

        return new_user, self.tokens.issue(new_user.id)

    async def authenticate_user(self, login_data: UserLogin) -> Tuple[User, str]:
        """
        Check credentials and issue a token.

        Raises:
            Unauthenticated: If the email is unknown or the password is wrong
            Forbidden: If the account is disabled
        """
        user = await self.users.find_by_email(login_data.email)
        if user is None or not user.verify_password(login_data.password):
            raise Unauthenticated("Invalid credentials")
        if not user.is_active:
            raise Forbidden("User account is disabled")
        return user, self.tokens.issue(user.id)
