"""
Who hears about a case when it reaches a new status.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

from examcase.models.notification import NotificationType
from examcase.models.user import AppRole
from examcase.models.violation import WorkflowStatus


@dataclass(frozen=True)
class NotificationRule:
    roles: Tuple[AppRole, ...]
    scope: str  # "department" or "college"
    type: NotificationType
    title: str
    message: str  # formatted with student_name
    exclude_actor: bool = True


_DEPARTMENT_STAFF = (AppRole.DEPUTY_DEPARTMENT_HEAD, AppRole.DEPARTMENT_HEAD)

_AVD_APPROVED = NotificationRule(
    _DEPARTMENT_STAFF,
    "department",
    NotificationType.CASE_APPROVED,
    "Case Approved by AVD",
    "The case for {student_name} has been approved by the Academic Vice Dean.",
)

WORKFLOW_NOTIFICATION_RULES: Dict[WorkflowStatus, List[NotificationRule]] = {
    WorkflowStatus.SUBMITTED_TO_HEAD: [
        NotificationRule(
            (AppRole.DEPARTMENT_HEAD,),
            "department",
            NotificationType.ACTION_REQUIRED,
            "New Case Submitted",
            "A new violation case for {student_name} requires your review.",
        ),
    ],
    WorkflowStatus.APPROVED_BY_HEAD: [
        NotificationRule(
            (AppRole.DEPUTY_DEPARTMENT_HEAD,),
            "department",
            NotificationType.CASE_APPROVED,
            "Case Approved by Head",
            "The case for {student_name} has been approved by the Department Head.",
        ),
        NotificationRule(
            (AppRole.ACADEMIC_VICE_DEAN,),
            "college",
            NotificationType.ACTION_REQUIRED,
            "Case Ready for Review",
            "A case for {student_name} has been approved by the Department Head and is ready for review.",
            exclude_actor=False,
        ),
    ],
    WorkflowStatus.SUBMITTED_TO_AVD: [
        NotificationRule(
            (AppRole.ACADEMIC_VICE_DEAN,),
            "college",
            NotificationType.ACTION_REQUIRED,
            "Case Submitted for AVD Review",
            "A case for {student_name} has been submitted for your review.",
        ),
    ],
    WorkflowStatus.APPROVED_BY_AVD: [_AVD_APPROVED],
    WorkflowStatus.PENDING_CMC: [_AVD_APPROVED],
    WorkflowStatus.CMC_DECIDED: [
        NotificationRule(
            _DEPARTMENT_STAFF,
            "department",
            NotificationType.DECISION_MADE,
            "CMC Decision Made",
            "A final CMC decision has been made for {student_name}.",
        ),
        NotificationRule(
            (AppRole.COLLEGE_DEAN, AppRole.COLLEGE_REGISTRAR),
            "college",
            NotificationType.DECISION_MADE,
            "CMC Decision Finalized",
            "A CMC decision has been finalized for {student_name}.",
        ),
    ],
}


def rules_for_status(status: Union[str, WorkflowStatus]) -> List[NotificationRule]:
    try:
        return WORKFLOW_NOTIFICATION_RULES.get(WorkflowStatus(status), [])
    except ValueError:
        return []
