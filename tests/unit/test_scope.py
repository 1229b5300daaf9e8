"""
Unit Tests for user scope resolution
"""
import pytest
from sqlalchemy import select

from examcase.models import AppRole, Student
from examcase.modules.auth.scope import UserScope, resolve_scope


class TestResolveScope:

    @pytest.mark.asyncio
    async def test_university_roles_see_everything(self, db_session, make_user):
        for role in (AppRole.SYSTEM_ADMIN, AppRole.MAIN_REGISTRAR, AppRole.VPAA):
            user = await make_user(role)
            scope = await resolve_scope(db_session, user)

            assert scope.all_departments is True

    @pytest.mark.asyncio
    async def test_department_roles_see_their_department(self, db_session, deputy, department, sibling_department):
        scope = await resolve_scope(db_session, deputy)

        assert scope.department_ids == frozenset({str(department.id)})
        assert scope.can_see_department(department.id)
        assert not scope.can_see_department(sibling_department.id)

    @pytest.mark.asyncio
    async def test_college_roles_see_college_departments(
        self, db_session, avd, college, department, sibling_department, other_department
    ):
        scope = await resolve_scope(db_session, avd)

        assert scope.department_ids == frozenset({str(department.id), str(sibling_department.id)})
        assert scope.can_see_college(college.id)
        assert not scope.can_see_department(other_department.id)

    @pytest.mark.asyncio
    async def test_user_without_roles_sees_nothing(self, db_session, make_user, student):
        user = await make_user()
        scope = await resolve_scope(db_session, user)

        query = scope.filter(select(Student), Student.department_id)
        result = await db_session.execute(query)

        assert scope.department_ids == frozenset()
        assert result.scalars().all() == []

    def test_filter_unrestricted(self):
        query = select(Student)
        assert UserScope(all_departments=True).filter(query, Student.department_id) is query
