"""
Violation Service - Business logic for misconduct cases

Handles:
- Recording, listing, editing and deleting cases within the user's scope
- Repeat-offender flag on creation
- Case detail with lock state, permitted actions and escalation advice
- Workflow audit trail
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_
from typing import Optional, List, Dict, Any
import logging

from examcase.core.exceptions import (
    AuthorizationError,
    RecordLockedError,
    StudentNotFoundError,
    ViolationNotFoundError,
)
from examcase.models.academic_setting import AcademicSetting
from examcase.models.student import Student
from examcase.models.violation import Violation, WorkflowAuditEntry, PENDING_DECISION
from examcase.modules.auth.dependencies import AuthContext
from examcase.modules.auth.scope import UserScope
from examcase.modules.workflow.escalation import check_repeat_offender, refresh_student_flags
from examcase.modules.workflow.permissions import (
    RoleSet,
    WorkflowMode,
    available_actions,
    can_department_edit,
)
from examcase.modules.workflow.states import parse_status
from examcase.schemas.violation import ViolationCreate, ViolationUpdate
from examcase.utils.pagination import paginate

logger = logging.getLogger(__name__)

LOCK_MESSAGE = "Record locked after CMC decision"


def pending_clause():
    """Either committee has not decided yet"""
    return or_(
        Violation.dac_decision == PENDING_DECISION,
        Violation.cmc_decision == PENDING_DECISION,
    )


def resolved_clause():
    return and_(
        Violation.dac_decision != PENDING_DECISION,
        Violation.cmc_decision != PENDING_DECISION,
    )


def scoped_violations(scope: UserScope, *columns):
    """Violations joined to their student, restricted to visible departments"""
    query = (
        select(*(columns or (Violation,)))
        .select_from(Violation)
        .join(Student, Violation.student_id == Student.id)
    )
    return scope.filter(query, Student.department_id)


def can_record_cases(roles: RoleSet) -> bool:
    return roles.is_deputy or roles.is_head or roles.is_avd or roles.is_system_admin


class ViolationService:
    """Service for examination misconduct cases"""

    async def get_violation(self, db: AsyncSession, scope: UserScope, violation_id: str) -> Violation:
        """Fetch a case, treating out-of-scope cases as missing"""
        result = await db.execute(select(Violation).where(Violation.id == violation_id))
        violation = result.scalar_one_or_none()
        if not violation or not scope.can_see_department(violation.department_id):
            raise ViolationNotFoundError(violation_id)
        return violation

    async def list_violations(
        self,
        db: AsyncSession,
        scope: UserScope,
        status: Optional[str] = None,
        workflow_status: Optional[str] = None,
        department_id: Optional[str] = None,
        exam_type: Optional[str] = None,
        violation_type: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        """
        List cases visible to the user, newest incident first.

        Args:
            status: "pending" or "resolved" by committee decisions
            workflow_status: exact workflow status
            search: matches student name / registration number or course
        """
        query = scoped_violations(scope)

        if status == "pending":
            query = query.where(pending_clause())
        elif status == "resolved":
            query = query.where(resolved_clause())
        if workflow_status:
            query = query.where(Violation.workflow_status == parse_status(workflow_status))
        if department_id:
            query = query.where(Student.department_id == department_id)
        if exam_type:
            query = query.where(Violation.exam_type == exam_type)
        if violation_type:
            query = query.where(Violation.violation_type == violation_type)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(
                Student.full_name.ilike(pattern),
                Student.student_id.ilike(pattern),
                Violation.course_name.ilike(pattern),
                Violation.course_code.ilike(pattern),
            ))

        query = query.order_by(Violation.incident_date.desc(), Violation.created_at.desc())
        return await paginate(db, query, page, page_size)

    async def create_violation(self, db: AsyncSession, context: AuthContext, data: ViolationCreate) -> Violation:
        if not can_record_cases(context.roles):
            raise AuthorizationError("Your role does not permit recording violations")

        result = await db.execute(select(Student).where(Student.id == data.student_id))
        student = result.scalar_one_or_none()
        if not student or not context.scope.can_see_department(student.department_id):
            raise StudentNotFoundError(data.student_id)

        prior = await check_repeat_offender(db, student.id)

        active = await db.execute(
            select(AcademicSetting).where(AcademicSetting.is_active == True)  # noqa: E712
        )
        period = active.scalars().first()

        violation = Violation(
            student_id=student.id,
            incident_date=data.incident_date,
            course_name=data.course_name,
            course_code=data.course_code,
            exam_type=data.exam_type.value,
            violation_type=data.violation_type.value,
            invigilator=data.invigilator,
            description=data.description,
            evidence_url=data.evidence_url,
            academic_year=period.academic_year if period else None,
            semester=period.semester if period else None,
            is_repeat_offender=prior.is_repeat_offender,
            created_by=context.user_id,
        )
        db.add(violation)
        await db.commit()
        await db.refresh(violation)

        logger.info(
            f"Recorded violation {violation.id} for student {student.student_id}"
            + (f" (repeat offender, {prior.prior_violation_count} prior)" if prior.is_repeat_offender else "")
        )
        return violation

    async def update_violation(
        self,
        db: AsyncSession,
        context: AuthContext,
        violation_id: str,
        data: ViolationUpdate,
    ) -> Violation:
        violation = await self.get_violation(db, context.scope, violation_id)
        if not can_record_cases(context.roles):
            raise AuthorizationError("Your role does not permit editing violations")
        if not can_department_edit(violation, context.roles):
            raise RecordLockedError(violation_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in ("description", "evidence_url"):
                continue
            if hasattr(value, "value"):
                value = value.value
            setattr(violation, field, value)

        await db.commit()
        await db.refresh(violation)
        logger.info(f"Updated violation {violation_id}")
        return violation

    async def delete_violation(self, db: AsyncSession, context: AuthContext, violation_id: str) -> None:
        violation = await self.get_violation(db, context.scope, violation_id)
        if not context.roles.is_system_admin:
            raise AuthorizationError("Only system administrators can delete violations")

        student_id = violation.student_id
        await db.delete(violation)
        await db.commit()

        # Later cases may have counted the deleted one as a prior offense
        changed = await refresh_student_flags(db, student_id)
        await db.commit()
        logger.info(f"Deleted violation {violation_id}; {changed} repeat-offender flag(s) updated")

    async def get_audit_trail(self, db: AsyncSession, scope: UserScope, violation_id: str) -> List[WorkflowAuditEntry]:
        await self.get_violation(db, scope, violation_id)
        result = await db.execute(
            select(WorkflowAuditEntry)
            .where(WorkflowAuditEntry.violation_id == violation_id)
            .order_by(WorkflowAuditEntry.created_at)
        )
        return list(result.scalars().all())

    async def build_detail(self, db: AsyncSession, violation: Violation, roles: RoleSet) -> Dict[str, Any]:
        """Extra fields for the case detail view"""
        locked_for_user = roles.is_department_user and not can_department_edit(violation, roles)
        quick = available_actions(violation, roles, WorkflowMode.QUICK)
        repeat_info = await check_repeat_offender(db, violation.student_id, exclude_violation_id=violation.id)

        return {
            "locked": locked_for_user,
            "lock_message": LOCK_MESSAGE if locked_for_user else None,
            "available_actions": available_actions(violation, roles, WorkflowMode.STANDARD),
            "quick_action": quick[0] if quick else None,
            "repeat_offender": repeat_info.to_dict(),
        }


# Singleton instance
violation_service = ViolationService()
