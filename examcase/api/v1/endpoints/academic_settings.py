from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from examcase.core.database import get_db
from examcase.modules.auth.dependencies import AuthContext, get_auth_context, get_current_admin
from examcase.schemas.reference import AcademicSettingCreate, AcademicSettingResponse
from examcase.services.academic_setting_service import academic_setting_service

router = APIRouter()


@router.get("", response_model=List[AcademicSettingResponse])
async def list_academic_settings(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await academic_setting_service.list_settings(db)


@router.get("/active", response_model=Optional[AcademicSettingResponse])
async def get_active_setting(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Current academic period, or null when none is active"""
    return await academic_setting_service.get_active(db)


@router.post("", response_model=AcademicSettingResponse, status_code=status.HTTP_201_CREATED)
async def create_academic_setting(
    data: AcademicSettingCreate,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    return await academic_setting_service.create_setting(db, data)


@router.post("/{setting_id}/activate", response_model=AcademicSettingResponse)
async def activate_academic_setting(
    setting_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    """Make this the active period; all others are deactivated"""
    return await academic_setting_service.activate(db, setting_id)


@router.delete("/{setting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_academic_setting(
    setting_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    await academic_setting_service.delete_setting(db, setting_id)
