"""
Case approval workflow: statuses, role permissions, committee decisions,
repeat-offender escalation and the notifications each transition sends.
"""

from examcase.modules.workflow.permissions import (
    WorkflowAction,
    WorkflowMode,
    RoleSet,
    check_action,
    available_actions,
    is_record_locked,
    can_department_edit,
)
from examcase.modules.workflow.escalation import (
    RepeatOffenderInfo,
    calculate_escalation,
    check_repeat_offender,
)

__all__ = [
    "WorkflowAction",
    "WorkflowMode",
    "RoleSet",
    "check_action",
    "available_actions",
    "is_record_locked",
    "can_department_edit",
    "RepeatOffenderInfo",
    "calculate_escalation",
    "check_repeat_offender",
]
