"""
Authentication models for Let's Play.

This module defines the SQLAlchemy model for user accounts.
"""
import uuid
from datetime import datetime

import bcrypt
from sqlalchemy import Column, String, DateTime

from letsplay.auth.identity import Role
from letsplay.base_service import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """User model for authentication and authorization."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    username = Column(String(20), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(10), nullable=False, default=Role.USER.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def verify_password(self, password: str) -> bool:
        """Check if provided password matches the stored hash."""
        encoded = password.encode('utf-8')
        # bcrypt rejects input over 72 bytes, so no stored hash can match it
        if len(encoded) > 72:
            return False
        return bcrypt.checkpw(encoded, self.hashed_password.encode('utf-8'))

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Generate password hash using bcrypt."""
        return bcrypt.hashpw(
            password.encode('utf-8'),
            bcrypt.gensalt()
        ).decode('utf-8')

    @property
    def role_enum(self) -> Role:
        return Role(self.role)
