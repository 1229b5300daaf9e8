"""
Workflow statuses and their display labels.

draft -> submitted_to_head -> approved_by_head -> submitted_to_avd
      -> approved_by_avd -> pending_cmc -> cmc_decided -> closed
"""

from typing import Dict, Union

from examcase.core.exceptions import ValidationError
from examcase.models.violation import WorkflowStatus


STATUS_ORDER = [
    WorkflowStatus.DRAFT,
    WorkflowStatus.SUBMITTED_TO_HEAD,
    WorkflowStatus.APPROVED_BY_HEAD,
    WorkflowStatus.SUBMITTED_TO_AVD,
    WorkflowStatus.APPROVED_BY_AVD,
    WorkflowStatus.PENDING_CMC,
    WorkflowStatus.CMC_DECIDED,
    WorkflowStatus.CLOSED,
]

STATUS_LABELS: Dict[WorkflowStatus, str] = {
    WorkflowStatus.DRAFT: "Draft",
    WorkflowStatus.SUBMITTED_TO_HEAD: "Awaiting Head",
    WorkflowStatus.APPROVED_BY_HEAD: "Head Approved",
    WorkflowStatus.SUBMITTED_TO_AVD: "Awaiting AVD",
    WorkflowStatus.APPROVED_BY_AVD: "AVD Approved",
    WorkflowStatus.PENDING_CMC: "Pending CMC",
    WorkflowStatus.CMC_DECIDED: "Decided",
    WorkflowStatus.CLOSED: "Closed",
}

# Statuses after which the case is final for department users
FINAL_STATUSES = frozenset({WorkflowStatus.CMC_DECIDED, WorkflowStatus.CLOSED})


def parse_status(value: Union[str, WorkflowStatus]) -> WorkflowStatus:
    """Coerce a raw status string, rejecting anything outside the enumeration"""
    if isinstance(value, WorkflowStatus):
        return value
    try:
        return WorkflowStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown workflow status '{value}'", field="workflow_status")


def label_for(value: Union[str, WorkflowStatus, None]) -> str:
    if value is None:
        return ""
    try:
        return STATUS_LABELS[WorkflowStatus(value)]
    except ValueError:
        return str(value)
