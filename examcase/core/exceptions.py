"""
Custom Exceptions for ExamCase
==============================

Raise these from services instead of HTTPException so the same rules
can be exercised without a request. The API layer turns them into
JSON error responses (see ``examcase.main``).

Usage:
    from examcase.core.exceptions import ViolationNotFoundError, InvalidTransitionError

    if not violation:
        raise ViolationNotFoundError(violation_id)
"""

from typing import Optional, Any, Dict, List


class ExamCaseError(Exception):
    """Base exception for all ExamCase errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(ExamCaseError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(ExamCaseError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ExamCaseError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ViolationNotFoundError(ResourceNotFoundError):
    def __init__(self, violation_id: str):
        super().__init__("Violation", violation_id)


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: str):
        super().__init__("Student", student_id)


class DepartmentNotFoundError(ResourceNotFoundError):
    def __init__(self, department_id: str):
        super().__init__("Department", department_id)


class CollegeNotFoundError(ResourceNotFoundError):
    def __init__(self, college_id: str):
        super().__init__("College", college_id)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class AcademicSettingNotFoundError(ResourceNotFoundError):
    def __init__(self, setting_id: str):
        super().__init__("AcademicSetting", setting_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(ExamCaseError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidDecisionError(ValidationError):
    """Decision value is not one of the allowed options"""

    def __init__(self, decision: str, level: str, allowed: List[str]):
        super().__init__(f"'{decision}' is not a valid {level.upper()} decision", field=f"{level}_decision")
        self.code = "INVALID_DECISION"
        self.details["allowed"] = allowed


class CSVImportError(ValidationError):
    """Uploaded CSV cannot be processed"""

    def __init__(self, message: str, missing_columns: Optional[List[str]] = None):
        super().__init__(message)
        self.code = "CSV_IMPORT_FAILED"
        if missing_columns:
            self.details["missing_columns"] = missing_columns


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(ExamCaseError):
    """Request conflicts with the current state of a resource"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class DuplicateRecordError(ConflictError):
    """Unique key already taken"""

    def __init__(self, resource_type: str, key: str, value: str):
        super().__init__(
            f"{resource_type} with {key} '{value}' already exists",
            code="DUPLICATE_RECORD",
            details={"resource_type": resource_type, "key": key, "value": value}
        )


class DependentRecordsError(ConflictError):
    """Resource still has dependent rows and cannot be deleted"""

    def __init__(self, message: str, resource_type: str, count: int):
        super().__init__(
            message,
            code="HAS_DEPENDENT_RECORDS",
            details={"resource_type": resource_type, "count": count}
        )


class InvalidTransitionError(ConflictError):
    """Workflow action not allowed from the current status"""

    def __init__(self, action: str, current_status: str):
        super().__init__(
            f"Action '{action}' is not allowed while case is '{current_status}'",
            code="INVALID_TRANSITION",
            details={"action": action, "current_status": current_status}
        )


class RecordLockedError(ConflictError):
    """Case is locked after the CMC decision"""

    def __init__(self, violation_id: str):
        super().__init__(
            "Record locked after CMC decision",
            code="RECORD_LOCKED",
            details={"violation_id": violation_id}
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ExamCaseError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
