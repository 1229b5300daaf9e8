from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime

from examcase.models.user import AppRole


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    must_change_password: bool = False


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    avatar_url: Optional[str] = None


class RoleAssignment(BaseModel):
    """A role and the department or college it applies to"""
    role: AppRole
    department_id: Optional[str] = None
    college_id: Optional[str] = None


class RoleAssignmentResponse(RoleAssignment):
    id: str

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    department_id: Optional[str] = None
    is_active: bool
    must_change_password: bool
    roles: List[RoleAssignmentResponse] = []
    invited_at: Optional[datetime] = None
    created_at: datetime
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserInvite(BaseModel):
    """Invite a staff member (system admin only)"""
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    role: AppRole
    department_id: Optional[str] = None
    college_id: Optional[str] = None

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()


class UserRolesUpdate(BaseModel):
    roles: List[RoleAssignment]
    department_id: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
