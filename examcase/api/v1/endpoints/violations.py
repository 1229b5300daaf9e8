"""
Violation Endpoints - misconduct cases and their approval workflow

Standard workflow:
    draft -> submitted_to_head -> approved_by_head -> submitted_to_avd
          -> approved_by_avd -> pending_cmc -> cmc_decided -> closed

Quick actions collapse the standard steps into one click per role
(see /quick-actions).
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from examcase.core.database import get_db
from examcase.models.violation import ExamType, ViolationType
from examcase.modules.auth.dependencies import AuthContext, get_auth_context
from examcase.modules.workflow.decisions import options_for
from examcase.modules.workflow.escalation import check_repeat_offender
from examcase.modules.workflow.service import workflow_service
from examcase.modules.workflow.states import STATUS_LABELS
from examcase.schemas.violation import (
    ViolationCreate,
    ViolationUpdate,
    ViolationResponse,
    ViolationDetailResponse,
    WorkflowActionRequest,
    AuditEntryResponse,
    RepeatOffenderResponse,
    DecisionOptionsResponse,
)
from examcase.services.student_service import student_service
from examcase.services.violation_service import violation_service
from examcase.utils.pagination import Page

router = APIRouter()


async def _detail(db: AsyncSession, violation, context: AuthContext) -> dict:
    base = ViolationResponse.model_validate(violation).model_dump()
    return {**base, **await violation_service.build_detail(db, violation, context.roles)}


@router.get("/options", response_model=DecisionOptionsResponse)
async def get_decision_options(
    context: AuthContext = Depends(get_auth_context)
):
    """Allowed DAC/CMC decisions, exam and violation types, status labels"""
    return {
        "dac": options_for("dac"),
        "cmc": options_for("cmc"),
        "exam_types": [e.value for e in ExamType],
        "violation_types": [t.value for t in ViolationType],
        "workflow_statuses": {s.value: label for s, label in STATUS_LABELS.items()},
    }


@router.get("/escalation/{student_id}", response_model=RepeatOffenderResponse)
async def preview_escalation(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """
    Repeat-offender check for a student before a new case is recorded.

    Returns the prior violations and the escalation tier's suggested
    DAC/CMC decisions.
    """
    student = await student_service.get_student(db, context.scope, student_id)
    info = await check_repeat_offender(db, student.id)
    return info.to_dict()


@router.get("", response_model=Page[ViolationResponse])
async def list_violations(
    status: Optional[str] = Query(None, pattern="^(pending|resolved)$"),
    workflow_status: Optional[str] = Query(None),
    department_id: Optional[str] = Query(None),
    exam_type: Optional[str] = Query(None),
    violation_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await violation_service.list_violations(
        db,
        context.scope,
        status=status,
        workflow_status=workflow_status,
        department_id=department_id,
        exam_type=exam_type,
        violation_type=violation_type,
        search=search,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=ViolationResponse, status_code=status.HTTP_201_CREATED)
async def create_violation(
    data: ViolationCreate,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Record a new case in draft status"""
    return await violation_service.create_violation(db, context, data)


@router.get("/{violation_id}", response_model=ViolationDetailResponse)
async def get_violation(
    violation_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    violation = await violation_service.get_violation(db, context.scope, violation_id)
    return await _detail(db, violation, context)


@router.put("/{violation_id}", response_model=ViolationResponse)
async def update_violation(
    violation_id: str,
    data: ViolationUpdate,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Edit case details; refused once the case has left the department"""
    return await violation_service.update_violation(db, context, violation_id, data)


@router.delete("/{violation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_violation(
    violation_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    await violation_service.delete_violation(db, context, violation_id)


@router.post("/{violation_id}/actions", response_model=ViolationDetailResponse)
async def apply_workflow_action(
    violation_id: str,
    data: WorkflowActionRequest,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Move a case one step through the standard workflow"""
    violation = await violation_service.get_violation(db, context.scope, violation_id)
    violation = await workflow_service.apply_action(
        db,
        violation,
        context.user,
        context.roles,
        data.action,
        decision=data.decision,
        notes=data.notes,
    )
    return await _detail(db, violation, context)


@router.post("/{violation_id}/quick-actions", response_model=ViolationDetailResponse)
async def apply_quick_action(
    violation_id: str,
    data: WorkflowActionRequest,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """One-click approval: approve_head or cmc_decision"""
    violation = await violation_service.get_violation(db, context.scope, violation_id)
    violation = await workflow_service.apply_quick_action(
        db,
        violation,
        context.user,
        context.roles,
        data.action,
        decision=data.decision,
        notes=data.notes,
    )
    return await _detail(db, violation, context)


@router.get("/{violation_id}/audit", response_model=List[AuditEntryResponse])
async def get_audit_trail(
    violation_id: str,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await violation_service.get_audit_trail(db, context.scope, violation_id)
