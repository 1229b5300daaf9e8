from examcase.services.user_service import UserService, user_service
from examcase.services.college_service import CollegeService, college_service
from examcase.services.student_service import StudentService, student_service
from examcase.services.academic_setting_service import AcademicSettingService, academic_setting_service
from examcase.services.violation_service import ViolationService, violation_service
from examcase.services.notification_service import NotificationService, notification_service
from examcase.services.report_service import ReportService
from examcase.services.import_export_service import ImportExportService, import_export_service

__all__ = [
    "UserService",
    "user_service",
    "CollegeService",
    "college_service",
    "StudentService",
    "student_service",
    "AcademicSettingService",
    "academic_setting_service",
    "ViolationService",
    "violation_service",
    "NotificationService",
    "notification_service",
    "ReportService",
    "ImportExportService",
    "import_export_service",
]
