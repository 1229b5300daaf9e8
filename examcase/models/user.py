from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from examcase.core.database import Base
from examcase.core.types import GUID, generate_uuid


class AppRole(str, enum.Enum):
    """Roles in the approval chain and administration"""
    DEPUTY_DEPARTMENT_HEAD = "deputy_department_head"
    DEPARTMENT_HEAD = "department_head"
    ACADEMIC_VICE_DEAN = "academic_vice_dean"
    COLLEGE_DEAN = "college_dean"
    COLLEGE_REGISTRAR = "college_registrar"
    MAIN_REGISTRAR = "main_registrar"
    VPAA = "vpaa"
    SYSTEM_ADMIN = "system_admin"


# Roles whose assignment is tied to a department
DEPARTMENT_ROLES = {AppRole.DEPUTY_DEPARTMENT_HEAD, AppRole.DEPARTMENT_HEAD}

# Roles whose assignment is tied to a college
COLLEGE_ROLES = {AppRole.ACADEMIC_VICE_DEAN, AppRole.COLLEGE_DEAN, AppRole.COLLEGE_REGISTRAR}

# Roles that see every department
UNIVERSITY_ROLES = {AppRole.MAIN_REGISTRAR, AppRole.VPAA, AppRole.SYSTEM_ADMIN}


class User(Base):
    """User account and profile"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    avatar_url = Column(Text, nullable=True)

    department_id = Column(GUID, ForeignKey("departments.id"), nullable=True)
    is_active = Column(Boolean, default=True)
    must_change_password = Column(Boolean, default=False, nullable=False)

    invited_by = Column(GUID, nullable=True)
    invited_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    roles = relationship(
        "UserRoleAssignment",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<User {self.email}>"


class UserRoleAssignment(Base):
    """A role held by a user, optionally scoped to a department or college"""
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", "department_id", "college_id", name="uq_user_role_scope"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(
        SQLEnum(AppRole, name="app_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    department_id = Column(GUID, ForeignKey("departments.id"), nullable=True)
    college_id = Column(GUID, ForeignKey("colleges.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="roles")

    def __repr__(self):
        return f"<UserRoleAssignment {self.role.value if self.role else None} {self.user_id}>"
