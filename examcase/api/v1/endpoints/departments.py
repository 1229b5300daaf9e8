from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from examcase.core.database import get_db
from examcase.modules.auth.dependencies import AuthContext, get_auth_context
from examcase.schemas.reference import DepartmentCreate, DepartmentUpdate, DepartmentResponse
from examcase.services.college_service import college_service

router = APIRouter()


@router.get("", response_model=List[DepartmentResponse])
async def list_departments(
    college_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Departments visible to the current user"""
    return await college_service.list_departments(db, context.scope, college_id)


@router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(
    department_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await college_service.get_department(db, context.scope, department_id)


@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    data: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """System admins, or the AVD of the department's college"""
    return await college_service.create_department(db, context, data)


@router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: str,
    data: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await college_service.update_department(db, context, department_id, data)


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    department_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    await college_service.delete_department(db, context, department_id)
