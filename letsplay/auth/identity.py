"""
Caller identity.

An Identity is rebuilt from the bearer token on every request and never
persisted. Requests without a token carry ANONYMOUS.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Account roles."""
    USER = "USER"
    ADMIN = "ADMIN"


class Identity(BaseModel):
    """Authenticated caller derived from a verified token."""
    model_config = ConfigDict(frozen=True)

    subject_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None
    issued_at: Optional[int] = None  # Unix timestamp
    expires_at: Optional[int] = None  # Unix timestamp

    @property
    def is_anonymous(self) -> bool:
        return self.subject_id is None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


ANONYMOUS = Identity()
