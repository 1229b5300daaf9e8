from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from examcase.core.database import get_db
from examcase.modules.auth.dependencies import AuthContext, get_auth_context, get_current_admin
from examcase.schemas.reference import CollegeCreate, CollegeUpdate, CollegeResponse
from examcase.services.college_service import college_service

router = APIRouter()


@router.get("", response_model=List[CollegeResponse])
async def list_colleges(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await college_service.list_colleges(db)


@router.post("", response_model=CollegeResponse, status_code=status.HTTP_201_CREATED)
async def create_college(
    data: CollegeCreate,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    return await college_service.create_college(db, data)


@router.put("/{college_id}", response_model=CollegeResponse)
async def update_college(
    college_id: str,
    data: CollegeUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    return await college_service.update_college(db, college_id, data)


@router.delete("/{college_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_college(
    college_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    await college_service.delete_college(db, college_id)
