# Re-export all models for convenient imports
from examcase.models.college import College, Department
from examcase.models.student import Student, ProgramType
from examcase.models.user import User, UserRoleAssignment, AppRole
from examcase.models.violation import (
    Violation,
    WorkflowAuditEntry,
    WorkflowStatus,
    ExamType,
    ViolationType,
    DACDecision,
    CMCDecision,
)
from examcase.models.notification import Notification, NotificationType
from examcase.models.academic_setting import AcademicSetting

__all__ = [
    # College structure
    "College",
    "Department",
    # Students
    "Student",
    "ProgramType",
    # Users
    "User",
    "UserRoleAssignment",
    "AppRole",
    # Violations
    "Violation",
    "WorkflowAuditEntry",
    "WorkflowStatus",
    "ExamType",
    "ViolationType",
    "DACDecision",
    "CMCDecision",
    # Notifications
    "Notification",
    "NotificationType",
    # Settings
    "AcademicSetting",
]
