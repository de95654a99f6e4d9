"""
JWT token handling for authentication.

This module provides functionality for:
- Issuing signed, time-limited session tokens
- Verifying tokens into an authenticated Subject

Tokens are stateless: validity is the signature plus the expiry claim,
with no server-side session table.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from jwt.exceptions import InvalidSignatureError, PyJWTError

from storeapi.base_microservice import TOKEN_EXPIRES_IN

ALGORITHM = "HS256"


class TokenError(Exception):
    """Raised when a token cannot be verified."""


class InvalidSignature(TokenError):
    """The token was not signed with this service's secret."""


class Expired(TokenError):
    """The token's expiry instant has passed."""


class Malformed(TokenError):
    """The token cannot be parsed into the expected claims."""


@dataclass(frozen=True)
class Subject:
    """Authenticated identity resolved from a verified token."""
    user_id: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies session tokens.

    The signing secret is injected at construction and never changes for
    the lifetime of the service.
    """

    def __init__(
        self,
        secret: str,
        expires_in: timedelta = TOKEN_EXPIRES_IN,
        algorithm: str = ALGORITHM,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("TokenService requires a signing secret")
        self._secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm
        self._clock = clock or _utcnow

    def issue(self, user_id: str) -> str:
        """
        Create a signed token for a user.

        Args:
            user_id: Identifier embedded as the token subject

        Returns:
            Encoded JWT string
        """
        issued_at = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.expires_in).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Subject:
        """
        Verify a token and return its Subject.

        Raises:
            InvalidSignature: signature does not match the secret
            Expired: current time is at or past the embedded expiry
            Malformed: token is not a JWT or lacks the expected claims
        """
        try:
            # Expiry is checked against our own clock below
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["sub", "iat", "exp"]},
            )
        except InvalidSignatureError as e:
            raise InvalidSignature("Signature verification failed") from e
        except PyJWTError as e:
            raise Malformed(f"Invalid token: {e}") from e

        try:
            user_id = payload["sub"]
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise Malformed("Invalid token claims") from e
        if not isinstance(user_id, str) or not user_id:
            raise Malformed("Invalid token subject")

        if self._clock() >= expires_at:
            raise Expired("Token has expired")

        return Subject(user_id=user_id, issued_at=issued_at, expires_at=expires_at)
