"""
Workflow permission rules.

Who may move a case from one status to the next. Every rule is a pure
predicate over the case's status/decision and the acting user's roles,
so the same table drives the API checks and the list of buttons a
client shows for a case.

Two modes exist:
- standard: one step per action, DAC decision and head approval separate
- quick: one-click variant used from list views (decision + approval together)
"""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional
import enum

from examcase.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    RecordLockedError,
    ValidationError,
)
from examcase.models.user import AppRole
from examcase.models.violation import WorkflowStatus, PENDING_DECISION
from examcase.modules.workflow.states import FINAL_STATUSES, parse_status


class WorkflowAction(str, enum.Enum):
    SUBMIT_TO_HEAD = "submit_to_head"
    SET_DAC_DECISION = "set_dac_decision"
    APPROVE_AS_HEAD = "approve_as_head"
    SUBMIT_TO_AVD = "submit_to_avd"
    APPROVE_AS_AVD = "approve_as_avd"
    SET_CMC_DECISION = "set_cmc_decision"
    CLOSE = "close"

    # Quick-approval shortcuts
    APPROVE_HEAD = "approve_head"
    CMC_DECISION = "cmc_decision"


class WorkflowMode(str, enum.Enum):
    STANDARD = "standard"
    QUICK = "quick"


@dataclass(frozen=True)
class RoleSet:
    """The roles a user holds, independent of their scope"""
    roles: FrozenSet[AppRole] = field(default_factory=frozenset)

    @classmethod
    def from_assignments(cls, assignments: Iterable) -> "RoleSet":
        return cls(frozenset(AppRole(a.role) for a in assignments))

    @classmethod
    def of(cls, *roles: AppRole) -> "RoleSet":
        return cls(frozenset(roles))

    @property
    def is_deputy(self) -> bool:
        return AppRole.DEPUTY_DEPARTMENT_HEAD in self.roles

    @property
    def is_head(self) -> bool:
        return AppRole.DEPARTMENT_HEAD in self.roles

    @property
    def is_avd(self) -> bool:
        return AppRole.ACADEMIC_VICE_DEAN in self.roles

    @property
    def is_system_admin(self) -> bool:
        return AppRole.SYSTEM_ADMIN in self.roles

    @property
    def is_department_user(self) -> bool:
        return self.is_deputy or self.is_head

    def __bool__(self) -> bool:
        return bool(self.roles)


def is_record_locked(violation) -> bool:
    """A case is final once the CMC has decided"""
    status = parse_status(violation.workflow_status)
    if status in FINAL_STATUSES:
        return True
    cmc_decision = getattr(violation, "cmc_decision", None)
    return bool(cmc_decision) and cmc_decision != PENDING_DECISION


def can_department_edit(violation, roles: RoleSet) -> bool:
    if roles.is_system_admin or roles.is_avd:
        return True
    return not is_record_locked(violation)


@dataclass(frozen=True)
class ActionRule:
    action: WorkflowAction
    from_statuses: FrozenSet[WorkflowStatus]
    allowed: Callable[[RoleSet], bool]
    to_status: Optional[WorkflowStatus]  # None keeps the current status
    department_gated: bool = True
    decision_level: Optional[str] = None  # "dac" or "cmc"
    final_decision_required: bool = False


def _deputy_or_head(roles: RoleSet) -> bool:
    return roles.is_deputy or roles.is_head


def _head(roles: RoleSet) -> bool:
    return roles.is_head


def _avd(roles: RoleSet) -> bool:
    return roles.is_avd


def _avd_or_admin(roles: RoleSet) -> bool:
    return roles.is_avd or roles.is_system_admin


_SUBMIT_TO_HEAD = ActionRule(
    WorkflowAction.SUBMIT_TO_HEAD,
    frozenset({WorkflowStatus.DRAFT}),
    _deputy_or_head,
    WorkflowStatus.SUBMITTED_TO_HEAD,
)
_SUBMIT_TO_AVD = ActionRule(
    WorkflowAction.SUBMIT_TO_AVD,
    frozenset({WorkflowStatus.APPROVED_BY_HEAD}),
    _head,
    WorkflowStatus.SUBMITTED_TO_AVD,
)

STANDARD_RULES: List[ActionRule] = [
    _SUBMIT_TO_HEAD,
    ActionRule(
        WorkflowAction.SET_DAC_DECISION,
        frozenset({WorkflowStatus.SUBMITTED_TO_HEAD}),
        _head,
        None,
        decision_level="dac",
    ),
    ActionRule(
        WorkflowAction.APPROVE_AS_HEAD,
        frozenset({WorkflowStatus.SUBMITTED_TO_HEAD}),
        _head,
        WorkflowStatus.APPROVED_BY_HEAD,
    ),
    _SUBMIT_TO_AVD,
    ActionRule(
        WorkflowAction.APPROVE_AS_AVD,
        frozenset({WorkflowStatus.SUBMITTED_TO_AVD}),
        _avd,
        WorkflowStatus.PENDING_CMC,
        department_gated=False,
    ),
    ActionRule(
        WorkflowAction.SET_CMC_DECISION,
        frozenset({WorkflowStatus.APPROVED_BY_AVD, WorkflowStatus.PENDING_CMC}),
        _avd_or_admin,
        WorkflowStatus.CMC_DECIDED,
        department_gated=False,
        decision_level="cmc",
        final_decision_required=True,
    ),
    ActionRule(
        WorkflowAction.CLOSE,
        frozenset({WorkflowStatus.CMC_DECIDED}),
        _avd_or_admin,
        WorkflowStatus.CLOSED,
        department_gated=False,
    ),
]

# Priority order: the first allowed action is the one shown in list views
QUICK_RULES: List[ActionRule] = [
    _SUBMIT_TO_HEAD,
    ActionRule(
        WorkflowAction.APPROVE_HEAD,
        frozenset({WorkflowStatus.SUBMITTED_TO_HEAD}),
        _head,
        WorkflowStatus.APPROVED_BY_HEAD,
        decision_level="dac",
        final_decision_required=True,
    ),
    _SUBMIT_TO_AVD,
    ActionRule(
        WorkflowAction.CMC_DECISION,
        frozenset({
            WorkflowStatus.APPROVED_BY_HEAD,
            WorkflowStatus.SUBMITTED_TO_AVD,
            WorkflowStatus.APPROVED_BY_AVD,
            WorkflowStatus.PENDING_CMC,
        }),
        _avd,
        WorkflowStatus.CMC_DECIDED,
        department_gated=False,
        decision_level="cmc",
        final_decision_required=True,
    ),
]


def rules_for(mode: WorkflowMode) -> List[ActionRule]:
    return QUICK_RULES if WorkflowMode(mode) == WorkflowMode.QUICK else STANDARD_RULES


def get_rule(action: str, mode: WorkflowMode = WorkflowMode.STANDARD) -> ActionRule:
    for rule in rules_for(mode):
        if rule.action.value == action:
            return rule
    raise ValidationError(f"Unknown {WorkflowMode(mode).value} workflow action '{action}'", field="action")


def is_allowed(violation, roles: RoleSet, rule: ActionRule) -> bool:
    status = parse_status(violation.workflow_status)
    if status not in rule.from_statuses or not rule.allowed(roles):
        return False
    if rule.department_gated and not can_department_edit(violation, roles):
        return False
    return True


def check_action(violation, roles: RoleSet, action: str,
                 mode: WorkflowMode = WorkflowMode.STANDARD) -> ActionRule:
    """
    Resolve an action name to its rule, raising if the user may not take it.

    Raises:
        ValidationError: unknown action name
        AuthorizationError: the user's roles do not permit the action
        RecordLockedError: a department user acting on a decided case
        InvalidTransitionError: the action does not apply to the current status
    """
    rule = get_rule(action, mode)
    status = parse_status(violation.workflow_status)

    if not rule.allowed(roles):
        raise AuthorizationError(f"Your role does not permit '{rule.action.value}'")
    if rule.department_gated and not can_department_edit(violation, roles):
        raise RecordLockedError(str(violation.id))
    if status not in rule.from_statuses:
        raise InvalidTransitionError(rule.action.value, status.value)
    return rule


def available_actions(violation, roles: RoleSet,
                      mode: WorkflowMode = WorkflowMode.STANDARD) -> List[str]:
    """Action names the user may take on the case, in display order"""
    allowed = [r.action.value for r in rules_for(mode) if is_allowed(violation, roles, r)]
    if WorkflowMode(mode) == WorkflowMode.QUICK:
        return allowed[:1]
    return allowed
