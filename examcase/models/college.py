"""
College structure models
- College and Department reference data
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from examcase.core.database import Base
from examcase.core.types import GUID, generate_uuid


class College(Base):
    """College model"""
    __tablename__ = "colleges"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    departments = relationship("Department", back_populates="college", lazy="noload")

    def __repr__(self):
        return f"<College {self.code}>"


class Department(Base):
    """Department model"""
    __tablename__ = "departments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    college_id = Column(GUID, ForeignKey("colleges.id"), nullable=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)  # e.g., CSE
    name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    college = relationship("College", back_populates="departments", lazy="selectin")
    students = relationship("Student", back_populates="department", lazy="noload")

    def __repr__(self):
        return f"<Department {self.code}>"
