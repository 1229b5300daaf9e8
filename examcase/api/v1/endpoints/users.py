"""
User administration endpoints (system administrators only)
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from examcase.core.database import get_db
from examcase.modules.auth.dependencies import AuthContext, get_current_admin
from examcase.schemas.auth import UserInvite, UserResponse, UserRolesUpdate, MessageResponse
from examcase.services.user_service import user_service

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    """All users with their roles"""
    return await user_service.list_users(db, search)


@router.post("/invite", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(
    data: UserInvite,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    """Create a staff account with the default password"""
    return await user_service.invite_user(db, data, admin.user)


@router.put("/{user_id}/roles", response_model=UserResponse)
async def update_user_roles(
    user_id: str,
    data: UserRolesUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    return await user_service.update_roles(db, user_id, data.roles, data.department_id, acting_user=admin.user)


@router.post("/{user_id}/reset-password", response_model=MessageResponse)
async def reset_password(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    user = await user_service.reset_password(db, user_id)
    return {"message": f"Password for {user.email} reset to the default; change required at next login"}


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    await user_service.delete_user(db, user_id, admin.user)
