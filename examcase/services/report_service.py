"""
Report Service
Dashboard statistics, pending-action counts and filtered violation reports.
All figures are computed over the violations visible to the requesting user.
"""

from collections import Counter, OrderedDict
from datetime import date
from typing import List, Dict, Any, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from examcase.core.config import settings
from examcase.models.college import Department
from examcase.models.student import Student
from examcase.models.violation import Violation, WorkflowStatus, PENDING_DECISION
from examcase.modules.auth.scope import UserScope
from examcase.modules.workflow.permissions import RoleSet
from examcase.schemas.report import ReportFilters
from examcase.services.violation_service import pending_clause, resolved_clause, scoped_violations


def month_start(day: date, months_back: int = 0) -> date:
    """First day of the month `months_back` months before `day`"""
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def is_pending(violation: Violation) -> bool:
    return violation.dac_decision == PENDING_DECISION or violation.cmc_decision == PENDING_DECISION


def _counts(values) -> List[Dict[str, Any]]:
    """Counter -> list of {name, count}, largest first"""
    return [{"name": name, "count": count} for name, count in Counter(values).most_common()]


# Pending-action widget entries: (key, label, description, statuses, role test)
PENDING_ACTIONS = [
    ("submit_to_head", "Drafts to Submit",
     "Cases ready to submit to Department Head",
     [WorkflowStatus.DRAFT], lambda r: r.is_deputy or r.is_head),
    ("approve_head", "Awaiting Your Approval",
     "Cases submitted for your review",
     [WorkflowStatus.SUBMITTED_TO_HEAD], lambda r: r.is_head),
    ("submit_to_avd", "Submit to AVD",
     "Approved cases to forward to Academic Vice Dean",
     [WorkflowStatus.APPROVED_BY_HEAD], lambda r: r.is_head),
    ("approve_avd", "Awaiting Your Approval",
     "Cases submitted for AVD review",
     [WorkflowStatus.SUBMITTED_TO_AVD], lambda r: r.is_avd),
    ("cmc_decision", "CMC Decisions Required",
     "Cases awaiting College Management Council decision",
     [WorkflowStatus.APPROVED_BY_AVD, WorkflowStatus.PENDING_CMC], lambda r: r.is_avd),
]


class ReportService:
    """Service for dashboard and report figures"""

    def __init__(self, db: AsyncSession, scope: UserScope):
        self.db = db
        self.scope = scope

    async def _count(self, *conditions) -> int:
        query = scoped_violations(self.scope, func.count(Violation.id))
        if conditions:
            query = query.where(*conditions)
        return (await self.db.execute(query)).scalar() or 0

    # =====================================================
    # DASHBOARD
    # =====================================================

    async def get_stats(self, today: Optional[date] = None) -> Dict[str, int]:
        today = today or date.today()
        start = month_start(today)
        next_start = month_start(today, -1)

        return {
            "total_violations": await self._count(),
            "pending_cases": await self._count(pending_clause()),
            "resolved_cases": await self._count(resolved_clause()),
            "this_month": await self._count(
                Violation.incident_date >= start,
                Violation.incident_date < next_start,
            ),
        }

    async def by_department(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Top departments by case count"""
        limit = limit or settings.TOP_DEPARTMENTS_LIMIT
        query = (
            scoped_violations(self.scope, Department.name, func.count(Violation.id))
            .outerjoin(Department, Student.department_id == Department.id)
            .group_by(Department.name)
            .order_by(func.count(Violation.id).desc(), Department.name)
            .limit(limit)
        )
        rows = (await self.db.execute(query)).all()
        return [{"name": row[0] or "Unknown", "count": row[1]} for row in rows]

    async def monthly_trend(self, months: Optional[int] = None, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Case counts for the last N months including the current one"""
        months = months or settings.TREND_MONTHS
        today = today or date.today()
        first = month_start(today, months - 1)

        buckets = OrderedDict()
        for back in range(months - 1, -1, -1):
            start = month_start(today, back)
            buckets[(start.year, start.month)] = {"month": start.strftime("%b"), "count": 0}

        query = (
            scoped_violations(self.scope, Violation.incident_date)
            .where(Violation.incident_date >= first)
        )
        for (incident_date,) in (await self.db.execute(query)).all():
            key = (incident_date.year, incident_date.month)
            if key in buckets:
                buckets[key]["count"] += 1
        return list(buckets.values())

    async def _group_by(self, column) -> List[Dict[str, Any]]:
        query = (
            scoped_violations(self.scope, column, func.count(Violation.id))
            .group_by(column)
            .order_by(func.count(Violation.id).desc(), column)
        )
        rows = (await self.db.execute(query)).all()
        return [{"name": row[0] or "Other", "count": row[1]} for row in rows]

    async def by_violation_type(self) -> List[Dict[str, Any]]:
        return await self._group_by(Violation.violation_type)

    async def by_exam_type(self) -> List[Dict[str, Any]]:
        return await self._group_by(Violation.exam_type)

    async def recent_violations(self, limit: Optional[int] = None) -> List[Violation]:
        limit = limit or settings.RECENT_VIOLATIONS_LIMIT
        query = scoped_violations(self.scope).order_by(Violation.created_at.desc()).limit(limit)
        return list((await self.db.execute(query)).scalars().all())

    async def get_dashboard(self) -> Dict[str, Any]:
        return {
            "stats": await self.get_stats(),
            "by_department": await self.by_department(),
            "monthly_trend": await self.monthly_trend(),
            "by_violation_type": await self.by_violation_type(),
            "by_exam_type": await self.by_exam_type(),
            "recent_violations": await self.recent_violations(),
        }

    async def pending_actions(self, roles: RoleSet) -> List[Dict[str, Any]]:
        """What is waiting on this user, by workflow status"""
        query = (
            scoped_violations(self.scope, Violation.workflow_status, func.count(Violation.id))
            .group_by(Violation.workflow_status)
        )
        counts = {WorkflowStatus(status): count for status, count in (await self.db.execute(query)).all()}

        actions = []
        for key, label, description, statuses, applies in PENDING_ACTIONS:
            if not applies(roles):
                continue
            count = sum(counts.get(s, 0) for s in statuses)
            if count > 0:
                actions.append({
                    "key": key,
                    "label": label,
                    "description": description,
                    "statuses": [s.value for s in statuses],
                    "count": count,
                })
        return actions

    # =====================================================
    # REPORTS
    # =====================================================

    async def filtered_violations(self, filters: ReportFilters) -> List[Violation]:
        query = scoped_violations(self.scope)

        if filters.date_from:
            query = query.where(Violation.incident_date >= filters.date_from)
        if filters.date_to:
            query = query.where(Violation.incident_date <= filters.date_to)
        if filters.department_id and filters.department_id != "all":
            query = query.where(Student.department_id == filters.department_id)
        if filters.violation_type and filters.violation_type != "all":
            query = query.where(Violation.violation_type == filters.violation_type)
        if filters.exam_type and filters.exam_type != "all":
            query = query.where(Violation.exam_type == filters.exam_type)
        if filters.program:
            query = query.where(Student.program == filters.program)
        if filters.status == "pending":
            query = query.where(pending_clause())
        elif filters.status == "resolved":
            query = query.where(resolved_clause())

        query = query.order_by(Violation.incident_date.desc())
        return list((await self.db.execute(query)).scalars().all())

    @staticmethod
    def summarize(violations: List[Violation]) -> Dict[str, Any]:
        """Group a report's rows for the summary charts"""
        pending = sum(1 for v in violations if is_pending(v))

        def department_name(v: Violation) -> str:
            if v.student and v.student.department:
                return v.student.department.name
            return "Unknown"

        months = Counter(v.incident_date.strftime("%Y-%m") for v in violations)

        return {
            "total": len(violations),
            "repeat_offenders": sum(1 for v in violations if v.is_repeat_offender),
            "by_department": _counts(department_name(v) for v in violations),
            "by_violation_type": _counts(v.violation_type for v in violations),
            "by_exam_type": _counts(v.exam_type for v in violations),
            "by_month": [{"month": m, "count": months[m]} for m in sorted(months)],
            "by_status": [] if not violations else [
                {"name": "Pending", "count": pending},
                {"name": "Resolved", "count": len(violations) - pending},
            ],
        }

    async def get_report(self, filters: ReportFilters) -> Dict[str, Any]:
        violations = await self.filtered_violations(filters)
        return {"summary": self.summarize(violations), "violations": violations}
