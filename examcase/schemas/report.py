"""
Dashboard and report schemas
"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import date

from examcase.models.student import ProgramType
from examcase.schemas.violation import ViolationResponse


class DashboardStats(BaseModel):
    total_violations: int
    pending_cases: int
    resolved_cases: int
    this_month: int


class CountItem(BaseModel):
    name: str
    count: int


class TrendPoint(BaseModel):
    month: str
    count: int


class PendingAction(BaseModel):
    key: str
    label: str
    description: str
    statuses: List[str]
    count: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    by_department: List[CountItem]
    monthly_trend: List[TrendPoint]
    by_violation_type: List[CountItem]
    by_exam_type: List[CountItem]
    recent_violations: List[ViolationResponse]


class ReportFilters(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    department_id: Optional[str] = None
    violation_type: Optional[str] = None
    exam_type: Optional[str] = None
    status: str = "all"  # all | pending | resolved
    program: Optional[ProgramType] = None


class ReportSummary(BaseModel):
    total: int
    repeat_offenders: int
    by_department: List[CountItem]
    by_violation_type: List[CountItem]
    by_exam_type: List[CountItem]
    by_month: List[TrendPoint]
    by_status: List[CountItem]


class ReportResponse(BaseModel):
    summary: ReportSummary
    violations: List[ViolationResponse]
