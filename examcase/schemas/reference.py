"""
Reference data schemas - colleges, departments, students, academic periods
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from examcase.models.student import ProgramType


def _strip_upper(v: Optional[str]) -> Optional[str]:
    return v.strip().upper() if v else v


# ============== Colleges ==============

class CollegeCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator('code')
    @classmethod
    def normalize_code(cls, v):
        return _strip_upper(v)


class CollegeUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator('code')
    @classmethod
    def normalize_code(cls, v):
        return _strip_upper(v)


class CollegeResponse(BaseModel):
    id: str
    code: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============== Departments ==============

class DepartmentCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    college_id: Optional[str] = None

    @field_validator('code')
    @classmethod
    def normalize_code(cls, v):
        return _strip_upper(v)


class DepartmentUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    college_id: Optional[str] = None

    @field_validator('code')
    @classmethod
    def normalize_code(cls, v):
        return _strip_upper(v)


class DepartmentResponse(BaseModel):
    id: str
    code: str
    name: str
    college_id: Optional[str] = None
    college: Optional[CollegeResponse] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============== Students ==============

class StudentCreate(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=50, description="Registration number")
    full_name: str = Field(..., min_length=1, max_length=255)
    program: ProgramType = ProgramType.BSC
    department_id: str

    @field_validator('student_id')
    @classmethod
    def strip_student_id(cls, v):
        return v.strip()


class StudentUpdate(BaseModel):
    student_id: Optional[str] = Field(None, min_length=1, max_length=50)
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    program: Optional[ProgramType] = None
    department_id: Optional[str] = None


class StudentResponse(BaseModel):
    id: str
    student_id: str
    full_name: str
    program: ProgramType
    department_id: Optional[str] = None
    department: Optional[DepartmentResponse] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============== Academic periods ==============

class AcademicSettingCreate(BaseModel):
    academic_year: str = Field(..., pattern=r'^\d{4}/\d{4}$', description="e.g. 2025/2026")
    semester: str = Field(..., pattern=r'^(1|2|Summer)$')
    is_active: bool = False


class AcademicSettingResponse(BaseModel):
    id: str
    academic_year: str
    semester: str
    is_active: bool
    label: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
