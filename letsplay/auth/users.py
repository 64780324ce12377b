"""
User management service.

This module provides functionality for:
- User registration
- User authentication
- User profile management
- Account deletion with cascade to owned products
"""
import re
from datetime import datetime
from typing import Optional, List, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy import or_, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from letsplay.auth.identity import Identity, Role
from letsplay.auth.jwt import Token, create_access_token
from letsplay.auth.models import User
from letsplay.auth.policy import Action, authorize
from letsplay.base_service import AsyncSessionLocal
from letsplay.errors import Conflict, ResourceNotFound, Unauthenticated
from letsplay.products.models import Product

# Regex patterns for validation
USERNAME_PATTERN = r"^[a-zA-Z0-9_-]{3,20}$"
# bcrypt only accepts this many bytes of input
PASSWORD_MAX_BYTES = 72


def _check_username(v):
    if v is not None and not re.match(USERNAME_PATTERN, v):
        raise ValueError('Username must be 3-20 characters and contain only letters, numbers, underscores, or hyphens')
    return v


def _check_password(v):
    if v is not None and len(v.encode('utf-8')) > PASSWORD_MAX_BYTES:
        raise ValueError(f'Password must be at most {PASSWORD_MAX_BYTES} bytes')
    return v


def normalize_email(v):
    """Emails are stored and looked up in lowercase."""
    return v.strip().lower() if v is not None else v


# Pydantic models for request validation
class UserCreate(BaseModel):
    """Model for user registration."""
    username: str = Field(..., min_length=3, max_length=20)
    email: EmailStr
    password: str = Field(..., min_length=8)

    username_must_be_valid = field_validator('username')(_check_username)
    password_must_fit_bcrypt = field_validator('password')(_check_password)
    email_is_lowercase = field_validator('email')(normalize_email)


class UserLogin(BaseModel):
    """Model for user login."""
    email: EmailStr
    password: str

    email_is_lowercase = field_validator('email')(normalize_email)


class UserUpdate(BaseModel):
    """Model for updating a user; every field is optional."""
    username: Optional[str] = Field(None, min_length=3, max_length=20)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Role] = None

    username_must_be_valid = field_validator('username')(_check_username)
    password_must_fit_bcrypt = field_validator('password')(_check_password)
    email_is_lowercase = field_validator('email')(normalize_email)


class UserOut(BaseModel):
    """Public view of a user; never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    role: Role
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginResult(BaseModel):
    """Login response model."""
    token: str
    token_type: str
    expires_at: int
    user: UserOut


async def _find_duplicate(
    db: AsyncSession,
    username: Optional[str],
    email: Optional[str],
    exclude_id: Optional[str] = None,
) -> None:
    """Raise Conflict if another account already uses the username or email."""
    clauses = []
    if username is not None:
        clauses.append(User.username == username)
    if email is not None:
        clauses.append(User.email == email)
    if not clauses:
        return

    stmt = select(User).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    result = await db.execute(stmt)
    existing_user = result.scalars().first()

    if existing_user:
        if username is not None and existing_user.username == username:
            raise Conflict("Username already registered")
        raise Conflict("Email already registered")


async def _load_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise ResourceNotFound("User not found")
    return user


class UserService:
    """
    Service for user management operations.
    """

    @staticmethod
    async def register_user(user_data: UserCreate, db: AsyncSession) -> UserOut:
        """
        Register a new user with the USER role.

        Raises:
            Conflict: If username or email already exists
        """
        await _find_duplicate(db, user_data.username, user_data.email)

        new_user = User(
            username=user_data.username,
            email=user_data.email,
            hashed_password=User.get_password_hash(user_data.password),
            role=Role.USER.value,
        )
        db.add(new_user)
        try:
            await db.commit()
        except IntegrityError:
            # a concurrent registration won the unique constraint
            await db.rollback()
            raise Conflict("Username or email already registered")
        await db.refresh(new_user)

        return UserOut.model_validate(new_user)

    @staticmethod
    async def authenticate_user(login_data: UserLogin, db: AsyncSession) -> Tuple[UserOut, Token]:
        """
        Authenticate a user and issue an access token.

        Raises:
            Unauthenticated: If the email is unknown or the password is wrong
        """
        result = await db.execute(select(User).where(User.email == login_data.email))
        user = result.scalar_one_or_none()

        if user is None or not user.verify_password(login_data.password):
            raise Unauthenticated("Invalid email or password")

        token = create_access_token(user.id, user.email, user.role_enum)
        return UserOut.model_validate(user), token

    @staticmethod
    async def get_user(identity: Identity, user_id: str, db: AsyncSession) -> UserOut:
        authorize(identity, Action.READ_USER, user_id)
        user = await _load_user(db, user_id)
        return UserOut.model_validate(user)

    @staticmethod
    async def list_users(identity: Identity, db: AsyncSession) -> List[UserOut]:
        authorize(identity, Action.LIST_USERS)
        result = await db.execute(select(User).order_by(User.created_at))
        return [UserOut.model_validate(u) for u in result.scalars().all()]

    @staticmethod
    async def update_user(
        identity: Identity,
        user_id: str,
        update_data: UserUpdate,
        db: AsyncSession,
    ) -> UserOut:
        """
        Update user information.

        Only the fields present in ``update_data`` change. Changing the role
        needs CHANGE_USER_ROLE on top of UPDATE_USER.

        Raises:
            Forbidden: If the caller may not touch this account or its role
            ResourceNotFound: If the user does not exist
            Conflict: If the new username or email is taken
        """
        authorize(identity, Action.UPDATE_USER, user_id)
        user = await _load_user(db, user_id)

        if update_data.role is not None and update_data.role.value != user.role:
            authorize(identity, Action.CHANGE_USER_ROLE, user_id)

        await _find_duplicate(db, update_data.username, update_data.email, exclude_id=user_id)

        if update_data.username is not None:
            user.username = update_data.username
        if update_data.email is not None:
            user.email = update_data.email
        if update_data.password is not None:
            user.hashed_password = User.get_password_hash(update_data.password)
        if update_data.role is not None:
            user.role = update_data.role.value

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise Conflict("Username or email already registered")
        await db.refresh(user)

        return UserOut.model_validate(user)

    @staticmethod
    async def delete_user(identity: Identity, user_id: str, db: AsyncSession) -> int:
        """
        Delete a user and every product it owns in one transaction.

        Returns:
            Number of products removed with the user
        """
        authorize(identity, Action.DELETE_USER, user_id)
        user = await _load_user(db, user_id)

        result = await db.execute(
            select(func.count()).select_from(Product).where(Product.owner_id == user_id)
        )
        owned = result.scalar_one()

        await db.execute(delete(Product).where(Product.owner_id == user_id))
        await db.delete(user)
        await db.commit()
        return owned

    @staticmethod
    async def seed_admin(email: str, username: str, password: str) -> UserOut:
        """
        Create the bootstrap ADMIN account unless the email is already taken.
        """
        email = normalize_email(email)
        async with AsyncSessionLocal() as db:
            result = await db.execute(select(User).where(User.email == email))
            existing = result.scalar_one_or_none()
            if existing is not None:
                return UserOut.model_validate(existing)

            admin = User(
                username=username,
                email=email,
                hashed_password=User.get_password_hash(password),
                role=Role.ADMIN.value,
            )
            db.add(admin)
            await db.commit()
            await db.refresh(admin)
            return UserOut.model_validate(admin)
