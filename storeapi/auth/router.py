"""
Authentication router.

This module provides FastAPI router for authentication endpoints:
- User registration
- User login
- Profile of the authenticated user
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.auth.jwt import Subject, TokenService
from storeapi.auth.middleware import get_token_service, require_auth
from storeapi.auth.users import (
    UserCreate, UserLogin, UserOut, UserRepository, UserService, get_db_session
)
from storeapi.base_microservice import BaseMicroservice
from storeapi.errors import GateRejection, UserNotFound

# Create router
router = APIRouter(tags=["auth"])

# Create service instance
base_service = BaseMicroservice("auth")


def get_user_service(
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> UserService:
    return UserService(UserRepository(db), tokens)


def _user_payload(user) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    service: UserService = Depends(get_user_service),
):
    """
    Register a new user.

    Returns:
        Envelope with user information and token
    """
    user, token = await service.register_user(user_data)

    base_service.log_event("user.registered", {"id": user.id, "email": user.email})

    return base_service.response(
        data={"user": _user_payload(user), "token": token},
        message="User registered successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login")
async def login(
    login_data: UserLogin,
    service: UserService = Depends(get_user_service),
):
    """
    Authenticate a user and return a token.
    """
    try:
        user, token = await service.authenticate_user(login_data)
    except GateRejection as e:
        base_service.log_event("user.login.failed", {
            "email": login_data.email,
            "reason": e.message
        })
        raise

    base_service.log_event("user.login", {"id": user.id})

    return base_service.response(
        data={"user": _user_payload(user), "token": token},
        message="Login successful",
    )


@router.get("/profile")
async def get_profile(
    subject: Subject = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Get information about the current authenticated user.
    """
    user = await UserRepository(db).find_by_id(subject.user_id)
    if user is None:
        raise UserNotFound()
    return base_service.response(data=_user_payload(user))
