"""
College Service - colleges and departments reference data
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List
import logging

from examcase.core.exceptions import (
    AuthorizationError,
    CollegeNotFoundError,
    DepartmentNotFoundError,
    DependentRecordsError,
    DuplicateRecordError,
)
from examcase.models.college import College, Department
from examcase.models.student import Student
from examcase.modules.auth.dependencies import AuthContext
from examcase.modules.auth.scope import UserScope
from examcase.schemas.reference import CollegeCreate, CollegeUpdate, DepartmentCreate, DepartmentUpdate

logger = logging.getLogger(__name__)


class CollegeService:
    """Service for colleges and departments"""

    # ==================== COLLEGES ====================

    async def list_colleges(self, db: AsyncSession) -> List[College]:
        result = await db.execute(select(College).order_by(College.name))
        return list(result.scalars().all())

    async def get_college(self, db: AsyncSession, college_id: str) -> College:
        result = await db.execute(select(College).where(College.id == college_id))
        college = result.scalar_one_or_none()
        if not college:
            raise CollegeNotFoundError(college_id)
        return college

    async def _ensure_college_code_free(self, db: AsyncSession, code: str, exclude_id: str = None) -> None:
        query = select(College.id).where(College.code == code)
        if exclude_id:
            query = query.where(College.id != exclude_id)
        if (await db.execute(query)).first():
            raise DuplicateRecordError("College", "code", code)

    async def create_college(self, db: AsyncSession, data: CollegeCreate) -> College:
        await self._ensure_college_code_free(db, data.code)
        college = College(code=data.code, name=data.name)
        db.add(college)
        await db.commit()
        await db.refresh(college)
        logger.info(f"Created college {college.code}")
        return college

    async def update_college(self, db: AsyncSession, college_id: str, data: CollegeUpdate) -> College:
        college = await self.get_college(db, college_id)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if "code" in updates:
            await self._ensure_college_code_free(db, updates["code"], exclude_id=college_id)
        for field, value in updates.items():
            setattr(college, field, value)
        await db.commit()
        await db.refresh(college)
        return college

    async def delete_college(self, db: AsyncSession, college_id: str) -> None:
        college = await self.get_college(db, college_id)
        count = (await db.execute(
            select(func.count(Department.id)).where(Department.college_id == college_id)
        )).scalar() or 0
        if count:
            raise DependentRecordsError("Cannot delete college with departments", "Department", count)
        await db.delete(college)
        await db.commit()
        logger.info(f"Deleted college {college.code}")

    # ==================== DEPARTMENTS ====================

    async def list_departments(self, db: AsyncSession, scope: UserScope, college_id: str = None) -> List[Department]:
        query = scope.filter(select(Department), Department.id)
        if college_id:
            query = query.where(Department.college_id == college_id)
        result = await db.execute(query.order_by(Department.name))
        return list(result.scalars().all())

    async def get_department(self, db: AsyncSession, scope: UserScope, department_id: str) -> Department:
        result = await db.execute(select(Department).where(Department.id == department_id))
        department = result.scalar_one_or_none()
        if not department or not scope.can_see_department(department.id):
            raise DepartmentNotFoundError(department_id)
        return department

    def _check_can_manage(self, context: AuthContext, college_id) -> None:
        """System admins manage all departments, AVDs those of their college"""
        if context.roles.is_system_admin:
            return
        if context.roles.is_avd and college_id and context.scope.can_see_college(college_id):
            return
        raise AuthorizationError("Not authorized to manage departments of this college")

    async def _ensure_department_code_free(self, db: AsyncSession, code: str, exclude_id: str = None) -> None:
        query = select(Department.id).where(Department.code == code)
        if exclude_id:
            query = query.where(Department.id != exclude_id)
        if (await db.execute(query)).first():
            raise DuplicateRecordError("Department", "code", code)

    async def create_department(self, db: AsyncSession, context: AuthContext, data: DepartmentCreate) -> Department:
        self._check_can_manage(context, data.college_id)
        if data.college_id:
            await self.get_college(db, data.college_id)
        await self._ensure_department_code_free(db, data.code)

        department = Department(code=data.code, name=data.name, college_id=data.college_id)
        db.add(department)
        await db.commit()
        await db.refresh(department)
        logger.info(f"Created department {department.code}")
        return department

    async def update_department(
        self,
        db: AsyncSession,
        context: AuthContext,
        department_id: str,
        data: DepartmentUpdate,
    ) -> Department:
        department = await self.get_department(db, context.scope, department_id)
        self._check_can_manage(context, department.college_id)

        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if "college_id" in updates:
            self._check_can_manage(context, updates["college_id"])
            await self.get_college(db, updates["college_id"])
        if "code" in updates:
            await self._ensure_department_code_free(db, updates["code"], exclude_id=department_id)
        for field, value in updates.items():
            setattr(department, field, value)

        await db.commit()
        await db.refresh(department)
        return department

    async def delete_department(self, db: AsyncSession, context: AuthContext, department_id: str) -> None:
        department = await self.get_department(db, context.scope, department_id)
        self._check_can_manage(context, department.college_id)

        count = (await db.execute(
            select(func.count(Student.id)).where(Student.department_id == department_id)
        )).scalar() or 0
        if count:
            raise DependentRecordsError("Cannot delete department with students", "Student", count)

        await db.delete(department)
        await db.commit()
        logger.info(f"Deleted department {department.code}")


# Singleton instance
college_service = CollegeService()
