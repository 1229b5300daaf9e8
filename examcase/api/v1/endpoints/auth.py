from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
import uuid

from examcase.core.database import get_db
from examcase.core.exceptions import AuthenticationError
from examcase.core.logging_config import logger, set_user_id
from examcase.core.rate_limiter import limiter
from examcase.core.security import verify_password, decode_token, create_token_pair
from examcase.models.user import User
from examcase.modules.auth.dependencies import get_current_user
from examcase.schemas.auth import (
    UserLogin,
    Token,
    RefreshTokenRequest,
    PasswordChange,
    ProfileUpdate,
    UserResponse,
    MessageResponse,
)
from examcase.services.user_service import user_service

router = APIRouter()


@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password (rate limited: 5/min)"""
    client_ip = request.client.host if request.client else "unknown"

    result = await db.execute(
        select(User).where(func.lower(User.email) == credentials.email.lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    user.last_login = datetime.utcnow()
    await db.commit()

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        must_change_password=user.must_change_password
    )

    return {
        **create_token_pair(str(user.id), user.email),
        "must_change_password": user.must_change_password,
    }


@router.post("/refresh", response_model=Token)
async def refresh_token(
    token_request: RefreshTokenRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    client_ip = request.client.host if request.client else "unknown"

    try:
        payload = decode_token(token_request.refresh_token)
    except AuthenticationError:
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            reason="Invalid or expired token",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )

    if payload.get("type") != "refresh":
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            reason="Invalid token type",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type - expected refresh token"
        )

    user_id = payload.get("sub")
    try:
        uuid.UUID(user_id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        logger.log_auth_event(
            event="token_refresh",
            success=False,
            reason="User not found or inactive",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    logger.log_auth_event(
        event="token_refresh",
        success=True,
        user_email=user.email,
        client_ip=client_ip
    )
    return {
        **create_token_pair(str(user.id), user.email),
        "must_change_password": user.must_change_password,
    }


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Profile, roles and whether a password change is pending"""
    return current_user


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await user_service.change_password(db, current_user, data.current_password, data.new_password)
    logger.log_auth_event(event="password_change", success=True, user_email=current_user.email)
    return {"message": "Password updated"}


@router.patch("/me/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await user_service.update_profile(db, current_user, data.full_name, data.avatar_url)


@router.post("/setup-admin", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def setup_admin(
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    One-time bootstrap of the first system administrator.

    Uses SETUP_ADMIN_EMAIL / SETUP_ADMIN_PASSWORD; refused once any
    system administrator exists.
    """
    user = await user_service.setup_admin(db)
    logger.log_auth_event(event="setup_admin", success=True, user_email=user.email)
    return user
