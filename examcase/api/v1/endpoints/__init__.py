# API endpoints
from . import (
    auth,
    users,
    colleges,
    departments,
    students,
    academic_settings,
    violations,
    notifications,
    dashboard,
    reports,
    import_export,
)

__all__ = [
    "auth",
    "users",
    "colleges",
    "departments",
    "students",
    "academic_settings",
    "violations",
    "notifications",
    "dashboard",
    "reports",
    "import_export",
]
