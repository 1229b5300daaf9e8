"""
Violation Models
- Examination misconduct cases and their approval chain
- Option lists for exam types, violation types and committee decisions

Workflow: DAC (Department Academic Council) -> CMC (College Management Council)
"""

from sqlalchemy import Column, String, Boolean, Date, DateTime, Enum as SQLEnum, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from examcase.core.database import Base
from examcase.core.types import GUID, generate_uuid


class WorkflowStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED_TO_HEAD = "submitted_to_head"
    APPROVED_BY_HEAD = "approved_by_head"
    SUBMITTED_TO_AVD = "submitted_to_avd"
    APPROVED_BY_AVD = "approved_by_avd"
    PENDING_CMC = "pending_cmc"
    CMC_DECIDED = "cmc_decided"
    CLOSED = "closed"


class ExamType(str, enum.Enum):
    MID_EXAM = "Mid Exam"
    FINAL_EXAM = "Final Exam"
    QUIZ = "Quiz"
    ASSIGNMENT = "Assignment"
    LAB_EXAM = "Lab Exam"
    RE_EXAM = "Re-exam"
    MAKEUP_EXAM = "Makeup Exam"


class ViolationType(str, enum.Enum):
    UNAUTHORIZED_MATERIALS = "Possession of Unauthorized Materials"
    COPYING = "Copying from Another Student"
    ALLOWING_COPY = "Allowing Another to Copy"
    ELECTRONIC_DEVICE = "Using Electronic Device"
    COMMUNICATING = "Communicating with Other Students"
    IMPERSONATION = "Impersonation"
    UNAUTHORIZED_PERSON = "Bringing Unauthorized Person"
    LEAVING_ROOM = "Leaving Exam Room Unauthorized"
    PLAGIARISM = "Plagiarism"
    FABRICATION = "Fabrication of Data"
    TAMPERING = "Tampering with Exam Materials"
    OTHER = "Other"


class DACDecision(str, enum.Enum):
    """Department level decisions - initial penalties for first-time offenders"""
    PENDING = "Pending"
    VERBAL_WARNING = "Verbal Warning"
    WRITTEN_WARNING = "Written Warning"
    ONE_GRADE_DEDUCTION = "One Grade Deduction"
    ZERO_MARK = "Zero Mark for the Exam"
    F_GRADE = "F Grade for Course"
    F_GRADE_PROBATION = "F Grade with Academic Probation"
    REFERRED_TO_CMC = "Referred to CMC"
    CLEARED = "Cleared"


class CMCDecision(str, enum.Enum):
    """College level decisions - final authority for severe cases and appeals"""
    PENDING = "Pending"
    UPHOLD_DAC = "Uphold DAC Decision"
    WRITTEN_WARNING = "Written Warning"
    ZERO_MARK = "Zero Mark for the Exam"
    F_GRADE = "F Grade for Course"
    F_GRADE_PROBATION = "F Grade with Academic Probation"
    SUSPENSION_ONE_SEMESTER = "Suspension (1 Semester)"
    SUSPENSION_TWO_SEMESTERS = "Suspension (2 Semesters)"
    SUSPENSION_ONE_YEAR = "Suspension (1 Academic Year)"
    DISMISSAL = "Dismissal"
    REFERRED_TO_UNIVERSITY = "Referred to University Discipline Committee"
    CLEARED = "Cleared"


PENDING_DECISION = "Pending"


def enum_values(enum_cls) -> list:
    return [m.value for m in enum_cls]


class Violation(Base):
    """Examination misconduct case"""
    __tablename__ = "violations"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id"), nullable=False, index=True)

    # Incident
    incident_date = Column(Date, nullable=False, index=True)
    course_name = Column(String(255), nullable=False)
    course_code = Column(String(50), nullable=False)
    exam_type = Column(String(50), nullable=False)
    violation_type = Column(String(100), nullable=False)
    invigilator = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    evidence_url = Column(Text, nullable=True)

    # Academic period the case was recorded in
    academic_year = Column(String(20), nullable=True)
    semester = Column(String(20), nullable=True)

    is_repeat_offender = Column(Boolean, default=False, nullable=False)

    # Decisions
    dac_decision = Column(String(100), default=PENDING_DECISION, nullable=False)
    dac_decision_by = Column(GUID, nullable=True)
    dac_decision_date = Column(Date, nullable=True)
    cmc_decision = Column(String(100), default=PENDING_DECISION, nullable=False)
    cmc_decision_by = Column(GUID, nullable=True)
    cmc_decision_date = Column(Date, nullable=True)

    # Approval chain
    workflow_status = Column(
        SQLEnum(WorkflowStatus, name="workflow_status", values_callable=enum_values),
        default=WorkflowStatus.DRAFT,
        nullable=False,
        index=True,
    )
    submitted_by = Column(GUID, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    approved_by_head = Column(GUID, nullable=True)
    head_approved_at = Column(DateTime, nullable=True)
    approved_by_avd = Column(GUID, nullable=True)
    avd_approved_at = Column(DateTime, nullable=True)
    closed_by = Column(GUID, nullable=True)
    closed_at = Column(DateTime, nullable=True)

    created_by = Column(GUID, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", lazy="selectin")
    audit_entries = relationship(
        "WorkflowAuditEntry",
        back_populates="violation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="WorkflowAuditEntry.created_at",
        lazy="noload",
    )

    @property
    def department_id(self):
        return self.student.department_id if self.student else None

    @property
    def college_id(self):
        if self.student and self.student.department:
            return self.student.department.college_id
        return None

    def __repr__(self):
        return f"<Violation {self.id} {self.workflow_status}>"


class WorkflowAuditEntry(Base):
    """One recorded step in a case's approval chain"""
    __tablename__ = "workflow_audit_entries"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    violation_id = Column(GUID, ForeignKey("violations.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    action = Column(String(50), nullable=False)  # e.g., 'submit_to_head', 'set_cmc_decision'
    from_status = Column(String(32), nullable=False)
    to_status = Column(String(32), nullable=False)
    details = Column(JSON, nullable=True)  # decision, notes

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    violation = relationship("Violation", back_populates="audit_entries")

    def __repr__(self):
        return f"<WorkflowAuditEntry {self.action} on {self.violation_id}>"
