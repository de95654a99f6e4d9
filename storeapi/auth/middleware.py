"""
Authentication middleware.

This module provides request gates for:
- Token authentication (Authorization: Bearer <token>)
- Role-based access control

Gates are run as an explicit ordered pipeline over a shared RequestContext.
Each gate either annotates the context or raises a GateRejection, which ends
the request.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Sequence

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.auth.jwt import Subject, TokenError, TokenService
from storeapi.auth.models import ROLE_ADMIN, User
from storeapi.auth.users import UserRepository, get_db_session
from storeapi.base_microservice import BaseMicroservice
from storeapi.errors import (
    Forbidden,
    MissingAuthentication,
    ServerError,
    Unauthenticated,
    UserNotFound,
)

gate_service = BaseMicroservice("auth.gates")

BEARER_PREFIX = "Bearer "


@dataclass
class RequestContext:
    """Per-request state shared by the gates."""
    headers: Mapping[str, str]
    subject: Optional[Subject] = None
    user: Optional[User] = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(headers=request.headers)


class CredentialStore(Protocol):
    async def find_by_id(self, user_id: str) -> Optional[Any]:
        ...


Gate = Callable[[RequestContext], Awaitable[None]]


def extract_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header, if well formed."""
    auth_header = headers.get("authorization") or headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX):].strip()
    if not token or " " in token:
        return None
    return token


class AuthenticationGate:
    """
    Resolves the bearer token into a Subject.

    Does not touch the credential store. Token error kinds are logged,
    never returned to the caller.
    """

    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    async def __call__(self, context: RequestContext) -> None:
        token = extract_bearer_token(context.headers)
        if token is None:
            raise Unauthenticated("No token, authorization denied")
        try:
            context.subject = self.tokens.verify(token)
        except TokenError as e:
            gate_service.logger.debug(f"Token rejected: {e.__class__.__name__}")
            raise Unauthenticated("Token is not valid") from e


class AuthorizationGate:
    """
    Admits the request only if the subject's current role matches.

    Must run after AuthenticationGate. The role is read from the store on
    every request, so role changes apply to already-issued tokens.
    """

    def __init__(self, users: CredentialStore, required_role: str = ROLE_ADMIN):
        self.users = users
        self.required_role = required_role

    async def __call__(self, context: RequestContext) -> None:
        subject = context.subject
        if subject is None or not subject.user_id:
            raise MissingAuthentication()

        try:
            user = await self.users.find_by_id(subject.user_id)
        except Exception as e:
            raise ServerError("Server error during authorization") from e

        if user is None:
            raise UserNotFound()

        if user.role != self.required_role:
            gate_service.log_event("auth.forbidden", {
                "user_id": subject.user_id,
                "required_role": self.required_role,
            })
            raise Forbidden(f"Access denied: {self.required_role.capitalize()} privileges required")

        context.user = user


class GatePipeline:
    """Runs gates in order; the first rejection ends the pipeline."""

    def __init__(self, gates: Sequence[Gate]):
        self.gates = list(gates)

    async def run(self, context: RequestContext) -> RequestContext:
        for gate in self.gates:
            await gate(context)
        return context


def get_token_service(request: Request) -> TokenService:
    """Dependency returning the TokenService configured at startup."""
    return request.app.state.token_service


# --- FastAPI dependencies ---

async def require_auth(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> Subject:
    """
    Dependency requiring a valid bearer token.

    Returns:
        The authenticated Subject
    """
    context = RequestContext.from_request(request)
    await GatePipeline([AuthenticationGate(tokens)]).run(context)
    return context.subject


async def require_admin(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Dependency requiring a valid bearer token for an admin account.

    Returns:
        The admin's full user record
    """
    context = RequestContext.from_request(request)
    pipeline = GatePipeline([
        AuthenticationGate(tokens),
        AuthorizationGate(UserRepository(db), required_role=ROLE_ADMIN),
    ])
    await pipeline.run(context)
    return context.user
