"""
Workflow Service - moves a case through the approval chain

Each transition is one database transaction:
1. check the action against the permission table
2. validate the decision (decision actions only)
3. stamp the approval columns and the new status
4. append an audit entry and queue notifications
5. commit, then log the workflow event

Any failure rolls the session back so nothing is written.
"""

from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from examcase.core.logging_config import logger
from examcase.models.user import User
from examcase.models.violation import Violation, WorkflowAuditEntry
from examcase.modules.workflow.decisions import append_decision_notes, validate_decision
from examcase.modules.workflow.permissions import (
    RoleSet,
    WorkflowAction,
    WorkflowMode,
    check_action,
)
from examcase.modules.workflow.states import parse_status
from examcase.services.notification_service import notification_service


def _stamp_submission(v: Violation, actor_id: str, now: datetime) -> None:
    v.submitted_by = actor_id
    v.submitted_at = now


def _stamp_head_approval(v: Violation, actor_id: str, now: datetime) -> None:
    v.approved_by_head = actor_id
    v.head_approved_at = now


def _stamp_avd_approval(v: Violation, actor_id: str, now: datetime) -> None:
    v.approved_by_avd = actor_id
    v.avd_approved_at = now


def _stamp_closure(v: Violation, actor_id: str, now: datetime) -> None:
    v.closed_by = actor_id
    v.closed_at = now


def _no_stamp(v: Violation, actor_id: str, now: datetime) -> None:
    pass


_STAMPS: Dict[WorkflowAction, Callable[[Violation, str, datetime], None]] = {
    WorkflowAction.SUBMIT_TO_HEAD: _stamp_submission,
    WorkflowAction.SET_DAC_DECISION: _no_stamp,
    WorkflowAction.APPROVE_AS_HEAD: _stamp_head_approval,
    WorkflowAction.SUBMIT_TO_AVD: _no_stamp,
    WorkflowAction.APPROVE_AS_AVD: _stamp_avd_approval,
    WorkflowAction.SET_CMC_DECISION: _no_stamp,
    WorkflowAction.CLOSE: _stamp_closure,
    WorkflowAction.APPROVE_HEAD: _stamp_head_approval,
    WorkflowAction.CMC_DECISION: _stamp_avd_approval,
}


def _record_decision(v: Violation, level: str, decision: str, actor_id: str, now: datetime) -> None:
    if level == "dac":
        v.dac_decision = decision
        v.dac_decision_by = actor_id
        v.dac_decision_date = now.date()
    else:
        v.cmc_decision = decision
        v.cmc_decision_by = actor_id
        v.cmc_decision_date = now.date()


class WorkflowService:
    """Applies workflow actions to violation cases"""

    async def apply_action(
        self,
        db: AsyncSession,
        violation: Violation,
        actor: User,
        roles: RoleSet,
        action: str,
        decision: Optional[str] = None,
        notes: Optional[str] = None,
        mode: WorkflowMode = WorkflowMode.STANDARD,
    ) -> Violation:
        """
        Apply one workflow action and commit it.

        Args:
            db: Database session
            violation: Case to act on (already scope-checked by the caller)
            actor: User taking the action
            roles: The actor's roles
            action: Action name, e.g. "approve_as_head" or quick "cmc_decision"
            decision: DAC/CMC decision, required for decision actions
            notes: Optional decision notes appended to the description
            mode: standard or quick action table

        Returns:
            The updated violation

        Raises:
            AuthorizationError, RecordLockedError, InvalidTransitionError,
            InvalidDecisionError
        """
        violation_id = str(violation.id)
        actor_id = str(actor.id)

        # Checks run before anything is touched
        rule = check_action(violation, roles, action, mode)
        from_status = parse_status(violation.workflow_status)
        if rule.decision_level:
            decision = validate_decision(
                decision, rule.decision_level, allow_pending=not rule.final_decision_required
            )

        now = datetime.utcnow()
        details = {}
        try:
            if rule.decision_level:
                _record_decision(violation, rule.decision_level, decision, actor_id, now)
                violation.description = append_decision_notes(violation.description, notes)
                details["decision"] = decision
            if notes:
                details["notes"] = notes

            _STAMPS[rule.action](violation, actor_id, now)
            to_status = rule.to_status or from_status
            violation.workflow_status = to_status

            db.add(WorkflowAuditEntry(
                violation_id=violation.id,
                actor_id=actor_id,
                action=rule.action.value,
                from_status=from_status.value,
                to_status=to_status.value,
                details=details or None,
            ))

            if to_status != from_status:
                await notification_service.build_workflow_notifications(
                    db, violation, to_status, actor_id
                )

            await db.commit()
            await db.refresh(violation)
        except Exception as e:
            await db.rollback()
            logger.log_error_with_context(e, "workflow.apply_action", violation_id=violation_id, action=action)
            raise

        logger.log_workflow_event(
            violation_id,
            rule.action.value,
            from_status.value,
            to_status.value,
            actor_id=actor_id,
            mode=WorkflowMode(mode).value,
        )
        return violation

    async def apply_quick_action(
        self,
        db: AsyncSession,
        violation: Violation,
        actor: User,
        roles: RoleSet,
        action: str,
        decision: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Violation:
        """One-click approval from list views"""
        return await self.apply_action(
            db, violation, actor, roles, action, decision, notes, mode=WorkflowMode.QUICK
        )


# Singleton instance
workflow_service = WorkflowService()
