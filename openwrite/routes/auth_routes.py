"""Authentication routes: register, login, logout and the current session."""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from openwrite.database import Database, get_database_instance
from openwrite.schemas.auth import LoginRequest, RegisterRequest
from openwrite.security.auth import get_password_hash, verify_password
from openwrite.security.session import get_optional_user, start_session, verify_session
from openwrite.utils.serialization import serialize_row

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

USER_PRIVATE_FIELDS = ("password_hash",)


def serialize_user(user: Dict) -> Dict:
    return serialize_row(user, exclude=USER_PRIVATE_FIELDS)


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    payload: RegisterRequest,
    db: Database = Depends(get_database_instance)
):
    """Create an account and sign it in."""
    if db.facade.get_user_by_email(payload.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists"
        )

    user = db.facade.create_user(payload.name, payload.email, get_password_hash(payload.password))
    start_session(request, user["id"])
    logger.info(f"Registered user {user['id']}")
    return {"success": True, "user": serialize_user(user)}


@router.post("/auth/login")
async def login(
    request: Request,
    payload: LoginRequest,
    db: Database = Depends(get_database_instance)
):
    """Handle user login."""
    user = db.facade.get_user_by_email(payload.email)
    logger.debug(f"Login attempt for {payload.email}, user found: {user is not None}")

    if not user or not verify_password(payload.password, user["password_hash"]):
        logger.warning(f"Invalid credentials for {payload.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    start_session(request, user["id"])
    return {"success": True, "user": serialize_user(user)}


@router.post("/auth/logout")
async def logout(request: Request):
    """Handle user logout."""
    request.session.clear()
    return {"success": True}


@router.get("/session")
async def get_session(user: Optional[Dict] = Depends(get_optional_user)):
    if user is None:
        return {"authenticated": False, "session": None}
    return {"authenticated": True, "session": {"user": serialize_user(user)}}


@router.get("/user/me")
async def get_me(user: Dict = Depends(verify_session)):
    return {"user": serialize_user(user)}
