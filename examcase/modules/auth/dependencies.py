from dataclasses import dataclass
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from examcase.core.database import get_db
from examcase.core.exceptions import AuthenticationError
from examcase.core.logging_config import set_user_id
from examcase.core.security import decode_token
from examcase.models.user import User
from examcase.modules.auth.scope import UserScope, resolve_scope
from examcase.modules.workflow.permissions import RoleSet

security = HTTPBearer()


@dataclass
class AuthContext:
    """The acting user with their roles and visible departments"""
    user: User
    roles: RoleSet
    scope: UserScope

    @property
    def user_id(self) -> str:
        return str(self.user.id)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""

    token = credentials.credentials
    try:
        payload = decode_token(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    try:
        uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    result = await db.execute(
        select(User).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    # Rate limiter and log records key off these
    request.state.user_id = str(user.id)
    set_user_id(str(user.id))

    return user


async def get_auth_context(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> AuthContext:
    """
    Current user with roles and scope resolved.

    Users still on the default password must change it before touching
    case data.
    """
    if current_user.must_change_password:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Password change required before continuing"
        )

    return AuthContext(
        user=current_user,
        roles=RoleSet.from_assignments(current_user.roles),
        scope=await resolve_scope(db, current_user),
    )


async def get_current_admin(
    context: AuthContext = Depends(get_auth_context)
) -> AuthContext:
    """Get current system administrator"""
    if not context.roles.is_system_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="System administrator access required"
        )
    return context
