from fastapi import APIRouter
from examcase.api.v1.endpoints import (
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

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(colleges.router, prefix="/colleges", tags=["Colleges"])
api_router.include_router(departments.router, prefix="/departments", tags=["Departments"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(academic_settings.router, prefix="/academic-settings", tags=["Academic Settings"])
api_router.include_router(violations.router, prefix="/violations", tags=["Violations"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(import_export.router, prefix="/data", tags=["Import/Export"])


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check for load balancers"""
    return {"status": "healthy", "service": "examcase-backend"}
