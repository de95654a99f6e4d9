"""
Authentication models for storeapi.

This module defines the SQLAlchemy model for user accounts.
"""
import uuid
from datetime import datetime

import bcrypt
from sqlalchemy import Boolean, Column, DateTime, String

from storeapi.base_microservice import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """User model for authentication and authorization."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(50), nullable=False)
    # Stored lower-cased; uniqueness is therefore case-insensitive
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(10), nullable=False, default=ROLE_USER)
    phone = Column(String(15), nullable=True)
    address = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def verify_password(self, password: str) -> bool:
        """Check if provided password matches the stored hash."""
        try:
            return bcrypt.checkpw(
                password.encode('utf-8')[:72],
                self.hashed_password.encode('utf-8')
            )
        except ValueError:
            return False

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Generate password hash using bcrypt."""
        return bcrypt.hashpw(
            password.encode('utf-8')[:72],
            bcrypt.gensalt()
        ).decode('utf-8')

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
