"""
Student Service - student records and their misconduct history
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional, Dict, Any, List
import logging

from examcase.core.exceptions import (
    AuthorizationError,
    DependentRecordsError,
    DepartmentNotFoundError,
    DuplicateRecordError,
    StudentNotFoundError,
)
from examcase.models.college import Department
from examcase.models.student import Student
from examcase.models.violation import Violation
from examcase.modules.auth.dependencies import AuthContext
from examcase.modules.auth.scope import UserScope
from examcase.modules.workflow.permissions import RoleSet
from examcase.schemas.reference import StudentCreate, StudentUpdate
from examcase.utils.pagination import paginate

logger = logging.getLogger(__name__)


def can_manage_students(roles: RoleSet) -> bool:
    return roles.is_deputy or roles.is_head or roles.is_avd or roles.is_system_admin


class StudentService:
    """Service for student records"""

    async def list_students(
        self,
        db: AsyncSession,
        scope: UserScope,
        search: Optional[str] = None,
        department_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        query = scope.filter(select(Student), Student.department_id)
        if department_id:
            query = query.where(Student.department_id == department_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Student.full_name.ilike(pattern), Student.student_id.ilike(pattern)))
        return await paginate(db, query.order_by(Student.full_name), page, page_size)

    async def get_student(self, db: AsyncSession, scope: UserScope, student_id: str) -> Student:
        result = await db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        if not student or not scope.can_see_department(student.department_id):
            raise StudentNotFoundError(student_id)
        return student

    async def _check_department(self, db: AsyncSession, context: AuthContext, department_id: str) -> None:
        exists = (await db.execute(select(Department.id).where(Department.id == department_id))).first()
        if not exists or not context.scope.can_see_department(department_id):
            raise DepartmentNotFoundError(department_id)

    async def _ensure_registration_free(self, db: AsyncSession, student_id: str, exclude_id: str = None) -> None:
        query = select(Student.id).where(func.lower(Student.student_id) == student_id.lower())
        if exclude_id:
            query = query.where(Student.id != exclude_id)
        if (await db.execute(query)).first():
            raise DuplicateRecordError("Student", "student_id", student_id)

    async def create_student(self, db: AsyncSession, context: AuthContext, data: StudentCreate) -> Student:
        if not can_manage_students(context.roles):
            raise AuthorizationError("Your role does not permit managing students")
        await self._check_department(db, context, data.department_id)
        await self._ensure_registration_free(db, data.student_id)

        student = Student(
            student_id=data.student_id,
            full_name=data.full_name,
            program=data.program,
            department_id=data.department_id,
        )
        db.add(student)
        await db.commit()
        await db.refresh(student)
        logger.info(f"Created student {student.student_id}")
        return student

    async def update_student(
        self,
        db: AsyncSession,
        context: AuthContext,
        student_id: str,
        data: StudentUpdate,
    ) -> Student:
        if not can_manage_students(context.roles):
            raise AuthorizationError("Your role does not permit managing students")
        student = await self.get_student(db, context.scope, student_id)

        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if "department_id" in updates:
            await self._check_department(db, context, updates["department_id"])
        if "student_id" in updates:
            await self._ensure_registration_free(db, updates["student_id"], exclude_id=student_id)
        for field, value in updates.items():
            setattr(student, field, value)

        await db.commit()
        await db.refresh(student)
        return student

    async def delete_student(self, db: AsyncSession, context: AuthContext, student_id: str) -> None:
        if not can_manage_students(context.roles):
            raise AuthorizationError("Your role does not permit managing students")
        student = await self.get_student(db, context.scope, student_id)

        count = (await db.execute(
            select(func.count(Violation.id)).where(Violation.student_id == student_id)
        )).scalar() or 0
        if count:
            raise DependentRecordsError("Cannot delete student with violation records", "Violation", count)

        await db.delete(student)
        await db.commit()
        logger.info(f"Deleted student {student.student_id}")

    async def get_violation_history(self, db: AsyncSession, scope: UserScope, student_id: str) -> List[Violation]:
        await self.get_student(db, scope, student_id)
        result = await db.execute(
            select(Violation)
            .where(Violation.student_id == student_id)
            .order_by(Violation.incident_date.desc())
        )
        return list(result.scalars().all())


# Singleton instance
student_service = StudentService()
