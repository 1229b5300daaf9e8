from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from examcase.core.database import Base
from examcase.core.types import GUID, generate_uuid


class ProgramType(str, enum.Enum):
    BSC = "BSc"
    MSC = "MSc"
    PHD = "PhD"


class Student(Base):
    """Student model"""
    __tablename__ = "students"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(String(50), unique=True, nullable=False, index=True)  # registration number
    full_name = Column(String(255), nullable=False)
    program = Column(
        SQLEnum(ProgramType, name="program_type", values_callable=lambda e: [m.value for m in e]),
        default=ProgramType.BSC,
        nullable=False,
    )
    department_id = Column(GUID, ForeignKey("departments.id"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = relationship("Department", back_populates="students", lazy="selectin")

    def __repr__(self):
        return f"<Student {self.student_id}>"
