"""
Data visibility per user.

- system admin, main registrar, VPAA: every department
- AVD, college dean, college registrar: departments of their college
- deputy / head: their own department
- no roles: nothing
"""

from dataclasses import dataclass, field
from typing import FrozenSet

from sqlalchemy import select, false
from sqlalchemy.ext.asyncio import AsyncSession

from examcase.models.college import Department
from examcase.models.user import User, DEPARTMENT_ROLES, COLLEGE_ROLES, UNIVERSITY_ROLES, AppRole


@dataclass(frozen=True)
class UserScope:
    all_departments: bool = False
    department_ids: FrozenSet[str] = field(default_factory=frozenset)
    college_ids: FrozenSet[str] = field(default_factory=frozenset)

    def can_see_department(self, department_id) -> bool:
        if self.all_departments:
            return True
        return department_id is not None and str(department_id) in self.department_ids

    def can_see_college(self, college_id) -> bool:
        if self.all_departments:
            return True
        return college_id is not None and str(college_id) in self.college_ids

    def filter(self, query, department_column):
        """Restrict a query to rows whose department is visible"""
        if self.all_departments:
            return query
        if not self.department_ids:
            return query.where(false())
        return query.where(department_column.in_(self.department_ids))


async def resolve_scope(db: AsyncSession, user: User) -> UserScope:
    department_ids = set()
    college_ids = set()

    for assignment in user.roles:
        role = AppRole(assignment.role)
        if role in UNIVERSITY_ROLES:
            return UserScope(all_departments=True)
        if role in DEPARTMENT_ROLES:
            dept_id = assignment.department_id or user.department_id
            if dept_id:
                department_ids.add(str(dept_id))
        elif role in COLLEGE_ROLES and assignment.college_id:
            college_ids.add(str(assignment.college_id))

    if college_ids:
        result = await db.execute(
            select(Department.id).where(Department.college_id.in_(college_ids))
        )
        department_ids.update(str(d) for d in result.scalars().all())

    return UserScope(
        department_ids=frozenset(department_ids),
        college_ids=frozenset(college_ids),
    )
