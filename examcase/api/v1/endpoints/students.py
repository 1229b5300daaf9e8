from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from examcase.core.database import get_db
from examcase.modules.auth.dependencies import AuthContext, get_auth_context
from examcase.schemas.reference import StudentCreate, StudentUpdate, StudentResponse
from examcase.schemas.violation import ViolationResponse
from examcase.services.student_service import student_service
from examcase.utils.pagination import Page

router = APIRouter()


@router.get("", response_model=Page[StudentResponse])
async def list_students(
    search: Optional[str] = Query(None, max_length=100, description="Name or registration number"),
    department_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await student_service.list_students(db, context.scope, search, department_id, page, page_size)


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await student_service.create_student(db, context, data)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await student_service.get_student(db, context.scope, student_id)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    data: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await student_service.update_student(db, context, student_id, data)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Refused while the student has violation records"""
    await student_service.delete_student(db, context, student_id)


@router.get("/{student_id}/violations", response_model=List[ViolationResponse])
async def get_student_violations(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Full misconduct history of a student"""
    return await student_service.get_violation_history(db, context.scope, student_id)
