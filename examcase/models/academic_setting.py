from sqlalchemy import Column, String, Boolean, DateTime, UniqueConstraint
from datetime import datetime

from examcase.core.database import Base
from examcase.core.types import GUID, generate_uuid


class AcademicSetting(Base):
    """Academic year + semester; exactly one may be active"""
    __tablename__ = "academic_settings"
    __table_args__ = (
        UniqueConstraint("academic_year", "semester", name="uq_academic_period"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    academic_year = Column(String(20), nullable=False)  # e.g., 2025/2026
    semester = Column(String(20), nullable=False)  # 1, 2, Summer
    is_active = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def label(self) -> str:
        if self.semester == "Summer":
            return f"{self.academic_year} - Summer"
        return f"{self.academic_year} - Semester {self.semester}"

    def __repr__(self):
        return f"<AcademicSetting {self.label}>"
