"""
User Service - staff accounts and role assignments

Handles:
- One-time bootstrap of the first system administrator
- Inviting staff with the default password (changed on first login)
- Role assignment, password resets and account removal
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from typing import List, Optional
import logging

from examcase.core.config import settings
from examcase.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateRecordError,
    UserNotFoundError,
    ValidationError,
    CollegeNotFoundError,
    DepartmentNotFoundError,
)
from examcase.core.security import get_password_hash, verify_password
from examcase.models.college import College, Department
from examcase.models.user import User, UserRoleAssignment, AppRole, DEPARTMENT_ROLES, COLLEGE_ROLES
from examcase.schemas.auth import RoleAssignment, UserInvite

logger = logging.getLogger(__name__)


class UserService:
    """Service for user accounts"""

    async def get_user(self, db: AsyncSession, user_id: str) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def _build_assignment(self, db: AsyncSession, assignment: RoleAssignment) -> UserRoleAssignment:
        """Validate the scope a role needs and create the row"""
        role = AppRole(assignment.role)
        department_id = assignment.department_id
        college_id = assignment.college_id

        if role in DEPARTMENT_ROLES:
            if not department_id:
                raise ValidationError(f"Role '{role.value}' requires a department", field="department_id")
            department = (await db.execute(
                select(Department).where(Department.id == department_id)
            )).scalar_one_or_none()
            if not department:
                raise DepartmentNotFoundError(department_id)
            college_id = college_id or department.college_id
        elif role in COLLEGE_ROLES:
            if not college_id:
                raise ValidationError(f"Role '{role.value}' requires a college", field="college_id")
            exists = (await db.execute(select(College.id).where(College.id == college_id))).first()
            if not exists:
                raise CollegeNotFoundError(college_id)

        return UserRoleAssignment(role=role, department_id=department_id, college_id=college_id)

    # ==================== BOOTSTRAP ====================

    async def setup_admin(self, db: AsyncSession) -> User:
        """Create the first system administrator from configuration"""
        existing = await db.execute(
            select(UserRoleAssignment.id).where(UserRoleAssignment.role == AppRole.SYSTEM_ADMIN).limit(1)
        )
        if existing.first():
            raise ConflictError("Admin already exists. Setup not allowed.", code="ADMIN_EXISTS")

        user = await self.get_by_email(db, settings.SETUP_ADMIN_EMAIL)
        if user is None:
            user = User(
                email=settings.SETUP_ADMIN_EMAIL.lower(),
                full_name=settings.SETUP_ADMIN_NAME,
                hashed_password=get_password_hash(settings.SETUP_ADMIN_PASSWORD),
                is_active=True,
                must_change_password=True,
            )
            db.add(user)
            await db.flush()

        db.add(UserRoleAssignment(user_id=user.id, role=AppRole.SYSTEM_ADMIN))
        await db.commit()
        await db.refresh(user)
        logger.info(f"Bootstrapped system administrator {user.email}")
        return user

    # ==================== SELF SERVICE ====================

    async def change_password(self, db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect", field="current_password")
        if current_password == new_password:
            raise ValidationError("New password must differ from the current one", field="new_password")

        user.hashed_password = get_password_hash(new_password)
        user.must_change_password = False
        await db.commit()

    async def update_profile(self, db: AsyncSession, user: User, full_name: str = None, avatar_url: str = None) -> User:
        if full_name is not None:
            user.full_name = full_name
        if avatar_url is not None:
            user.avatar_url = avatar_url or None
        await db.commit()
        await db.refresh(user)
        return user

    # ==================== ADMINISTRATION ====================

    async def invite_user(self, db: AsyncSession, data: UserInvite, invited_by: User) -> User:
        """
        Create a staff account with the default password.

        The invitee must change the password on first login.
        """
        if await self.get_by_email(db, data.email):
            raise DuplicateRecordError("User", "email", data.email)

        assignment = await self._build_assignment(
            db, RoleAssignment(role=data.role, department_id=data.department_id, college_id=data.college_id)
        )
        user = User(
            email=data.email,
            full_name=data.full_name,
            hashed_password=get_password_hash(settings.DEFAULT_USER_PASSWORD),
            department_id=data.department_id,
            is_active=True,
            must_change_password=True,
            invited_by=str(invited_by.id),
            invited_at=datetime.utcnow(),
        )
        user.roles.append(assignment)
        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"User {invited_by.email} invited {user.email} as {assignment.role.value}")
        return user

    async def list_users(self, db: AsyncSession, search: str = None) -> List[User]:
        query = select(User)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(User.email.ilike(pattern) | User.full_name.ilike(pattern))
        result = await db.execute(query.order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def update_roles(
        self,
        db: AsyncSession,
        user_id: str,
        roles: List[RoleAssignment],
        department_id: Optional[str] = None,
        acting_user: Optional[User] = None,
    ) -> User:
        """Replace all of a user's role assignments"""
        user = await self.get_user(db, user_id)

        if acting_user is not None and str(acting_user.id) == str(user.id):
            keeps_admin = any(AppRole(r.role) == AppRole.SYSTEM_ADMIN for r in roles)
            if not keeps_admin:
                raise ValidationError("You cannot remove your own system administrator role", field="roles")

        assignments = []
        seen = set()
        for requested in roles:
            assignment = await self._build_assignment(db, requested)
            key = (assignment.role, assignment.department_id, assignment.college_id)
            if key not in seen:
                seen.add(key)
                assignments.append(assignment)

        user.roles.clear()
        await db.flush()
        user.roles.extend(assignments)
        if department_id is not None:
            user.department_id = department_id or None

        await db.commit()
        await db.refresh(user)
        logger.info(f"Updated roles for {user.email}: {[a.role.value for a in assignments]}")
        return user

    async def reset_password(self, db: AsyncSession, user_id: str) -> User:
        """Back to the default password, forcing a change at next login"""
        user = await self.get_user(db, user_id)
        user.hashed_password = get_password_hash(settings.DEFAULT_USER_PASSWORD)
        user.must_change_password = True
        await db.commit()
        logger.info(f"Password reset for {user.email}")
        return user

    async def delete_user(self, db: AsyncSession, user_id: str, acting_user: User) -> None:
        if str(user_id) == str(acting_user.id):
            raise AuthorizationError("Cannot delete your own account")
        user = await self.get_user(db, user_id)
        await db.delete(user)
        await db.commit()
        logger.info(f"User {acting_user.email} deleted {user.email}")


# Singleton instance
user_service = UserService()
