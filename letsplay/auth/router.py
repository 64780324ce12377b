"""
Authentication and user routers.

This module provides FastAPI routers for:
- Registration and login (public)
- The caller's own profile
- User management (self or ADMIN, listing and deletion ADMIN only)
"""
import os

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from letsplay.auth.identity import Identity
from letsplay.auth.middleware import get_identity, require_identity
from letsplay.auth.policy import Action, authorize
from letsplay.auth.users import (
    UserService, UserCreate, UserLogin, UserUpdate, LoginResult,
)
from letsplay.base_service import BaseService, get_db_session, init_models
from letsplay.errors import Unauthenticated

# Create routers
router = APIRouter(tags=["auth"])
users_router = APIRouter(tags=["users"])

# Create service instance
base_service = BaseService("auth")


async def start_auth_service():
    """Create tables and seed the bootstrap admin if one is configured."""
    base_service.log_event("service.startup", {"service": "auth"})
    try:
        await init_models()

        admin_email = os.getenv("ADMIN_EMAIL")
        admin_password = os.getenv("ADMIN_PASSWORD")
        if admin_email and admin_password:
            admin = await UserService.seed_admin(
                email=admin_email,
                username=os.getenv("ADMIN_USERNAME", "admin"),
                password=admin_password,
            )
            base_service.log_event("user.admin_seeded", {"id": admin.id, "email": admin.email})
    except Exception as e:
        base_service.log_error(e, context="Auth service startup")
        raise


# --- Auth Endpoints ---

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session)
):
    """Register a new user account."""
    authorize(identity, Action.REGISTER)
    user_info = await UserService.register_user(user_data, db)

    base_service.log_event("user.registered", {
        "id": user_info.id,
        "username": user_info.username,
        "email": user_info.email
    })
    return base_service.api_response(user_info, message="User registered successfully")


@router.post("/login")
async def login(
    login_data: UserLogin,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session)
):
    """Authenticate with email and password and return an access token."""
    authorize(identity, Action.LOGIN)
    try:
        user_info, token = await UserService.authenticate_user(login_data, db)
    except Unauthenticated as e:
        base_service.log_event("user.login.failed", {
            "email": login_data.email,
            "reason": e.message
        })
        raise

    base_service.log_event("user.login", {"id": user_info.id, "email": user_info.email})
    result = LoginResult(
        token=token.access_token,
        token_type=token.token_type,
        expires_at=token.expires_at,
        user=user_info,
    )
    return base_service.api_response(result, message="Login successful")


@router.get("/me")
async def get_current_user_info(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    """Return the profile of the authenticated caller."""
    user_info = await UserService.get_user(identity, identity.subject_id, db)
    return base_service.api_response(user_info, message="User information retrieved successfully")


# --- User Management ---

@users_router.get("")
async def list_users(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    users = await UserService.list_users(identity, db)
    return base_service.api_response(users, message="Users retrieved successfully")


@users_router.get("/{user_id}")
async def get_user(
    user_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    user_info = await UserService.get_user(identity, user_id, db)
    return base_service.api_response(user_info, message="User retrieved successfully")


@users_router.put("/{user_id}")
async def update_user(
    user_id: str,
    update_data: UserUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    updated_user = await UserService.update_user(identity, user_id, update_data, db)

    base_service.log_event("user.updated", {
        "id": user_id,
        "by": identity.subject_id,
        "fields_updated": list(update_data.model_dump(exclude_unset=True).keys())
    })
    return base_service.api_response(updated_user, message="User updated successfully")


@users_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    """Delete a user together with all of its products."""
    removed_products = await UserService.delete_user(identity, user_id, db)

    base_service.log_event("user.deleted", {
        "id": user_id,
        "by": identity.subject_id,
        "products_deleted": removed_products
    })
    return Response(status_code=status.HTTP_204_NO_CONTENT)
