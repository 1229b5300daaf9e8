"""
Unit Tests for Workflow Permissions
Tests for: record locking, permission matrix, quick actions, available actions
"""
import pytest
from types import SimpleNamespace

from examcase.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    RecordLockedError,
    ValidationError,
)
from examcase.models.user import AppRole
from examcase.models.violation import WorkflowStatus
from examcase.modules.workflow.permissions import (
    RoleSet,
    WorkflowAction,
    WorkflowMode,
    available_actions,
    can_department_edit,
    check_action,
    is_record_locked,
)

DEPUTY = RoleSet.of(AppRole.DEPUTY_DEPARTMENT_HEAD)
HEAD = RoleSet.of(AppRole.DEPARTMENT_HEAD)
AVD = RoleSet.of(AppRole.ACADEMIC_VICE_DEAN)
ADMIN = RoleSet.of(AppRole.SYSTEM_ADMIN)
DEAN = RoleSet.of(AppRole.COLLEGE_DEAN)
NOBODY = RoleSet()


def case(status: WorkflowStatus, dac: str = "Pending", cmc: str = "Pending"):
    return SimpleNamespace(id="case-1", workflow_status=status, dac_decision=dac, cmc_decision=cmc)


class TestRoleSet:
    """Test role membership helpers"""

    def test_from_assignments(self):
        assignments = [
            SimpleNamespace(role="department_head"),
            SimpleNamespace(role=AppRole.DEPUTY_DEPARTMENT_HEAD),
        ]
        roles = RoleSet.from_assignments(assignments)

        assert roles.is_head
        assert roles.is_deputy
        assert roles.is_department_user
        assert not roles.is_avd
        assert not roles.is_system_admin

    def test_empty_roleset_is_falsy(self):
        assert not NOBODY
        assert ADMIN


class TestRecordLocking:
    """Test locking after the CMC decision"""

    @pytest.mark.parametrize("status", [WorkflowStatus.CMC_DECIDED, WorkflowStatus.CLOSED])
    def test_final_statuses_lock(self, status):
        assert is_record_locked(case(status)) is True

    def test_cmc_decision_locks_regardless_of_status(self):
        assert is_record_locked(case(WorkflowStatus.PENDING_CMC, cmc="Dismissal")) is True

    def test_open_case_not_locked(self):
        assert is_record_locked(case(WorkflowStatus.SUBMITTED_TO_HEAD, dac="Written Warning")) is False

    def test_status_string_accepted(self):
        assert is_record_locked(case("closed")) is True

    def test_department_users_cannot_edit_locked_case(self):
        locked = case(WorkflowStatus.CMC_DECIDED, cmc="Dismissal")

        assert can_department_edit(locked, DEPUTY) is False
        assert can_department_edit(locked, HEAD) is False
        assert can_department_edit(locked, AVD) is True
        assert can_department_edit(locked, ADMIN) is True


class TestStandardActions:
    """Test the standard permission matrix"""

    def test_deputy_submits_draft(self):
        rule = check_action(case(WorkflowStatus.DRAFT), DEPUTY, "submit_to_head")
        assert rule.to_status == WorkflowStatus.SUBMITTED_TO_HEAD

    def test_head_can_also_submit_draft(self):
        rule = check_action(case(WorkflowStatus.DRAFT), HEAD, "submit_to_head")
        assert rule.action == WorkflowAction.SUBMIT_TO_HEAD

    def test_dac_decision_keeps_status(self):
        rule = check_action(case(WorkflowStatus.SUBMITTED_TO_HEAD), HEAD, "set_dac_decision")

        assert rule.to_status is None
        assert rule.decision_level == "dac"

    def test_deputy_cannot_approve_as_head(self):
        with pytest.raises(AuthorizationError):
            check_action(case(WorkflowStatus.SUBMITTED_TO_HEAD), DEPUTY, "approve_as_head")

    def test_avd_approval_forwards_to_cmc(self):
        rule = check_action(case(WorkflowStatus.SUBMITTED_TO_AVD), AVD, "approve_as_avd")
        assert rule.to_status == WorkflowStatus.PENDING_CMC

    def test_admin_cannot_approve_as_avd(self):
        with pytest.raises(AuthorizationError):
            check_action(case(WorkflowStatus.SUBMITTED_TO_AVD), ADMIN, "approve_as_avd")

    @pytest.mark.parametrize("status", [WorkflowStatus.APPROVED_BY_AVD, WorkflowStatus.PENDING_CMC])
    def test_cmc_decision_sources(self, status):
        rule = check_action(case(status), ADMIN, "set_cmc_decision")

        assert rule.to_status == WorkflowStatus.CMC_DECIDED
        assert rule.final_decision_required is True

    def test_close_requires_decided_case(self):
        with pytest.raises(InvalidTransitionError):
            check_action(case(WorkflowStatus.PENDING_CMC), AVD, "close")

    def test_wrong_status_is_invalid_transition(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_action(case(WorkflowStatus.APPROVED_BY_HEAD), HEAD, "approve_as_head")

        assert exc_info.value.details["current_status"] == "approved_by_head"
        assert exc_info.value.status_code == 409

    def test_unknown_action(self):
        with pytest.raises(ValidationError):
            check_action(case(WorkflowStatus.DRAFT), DEPUTY, "approve_everything")

    def test_role_checked_before_status(self):
        with pytest.raises(AuthorizationError):
            check_action(case(WorkflowStatus.CLOSED), DEAN, "submit_to_head")

    def test_locked_record_blocks_department_user(self):
        locked = case(WorkflowStatus.SUBMITTED_TO_HEAD, cmc="Dismissal")

        with pytest.raises(RecordLockedError):
            check_action(locked, HEAD, "approve_as_head")


class TestQuickActions:
    """Test the one-click action table"""

    def test_quick_head_approval_needs_final_dac(self):
        rule = check_action(case(WorkflowStatus.SUBMITTED_TO_HEAD), HEAD, "approve_head", WorkflowMode.QUICK)

        assert rule.decision_level == "dac"
        assert rule.final_decision_required is True
        assert rule.to_status == WorkflowStatus.APPROVED_BY_HEAD

    @pytest.mark.parametrize("status", [
        WorkflowStatus.APPROVED_BY_HEAD,
        WorkflowStatus.SUBMITTED_TO_AVD,
        WorkflowStatus.APPROVED_BY_AVD,
        WorkflowStatus.PENDING_CMC,
    ])
    def test_quick_cmc_decision_sources(self, status):
        rule = check_action(case(status), AVD, "cmc_decision", WorkflowMode.QUICK)
        assert rule.to_status == WorkflowStatus.CMC_DECIDED

    def test_quick_cmc_decision_is_avd_only(self):
        with pytest.raises(AuthorizationError):
            check_action(case(WorkflowStatus.PENDING_CMC), ADMIN, "cmc_decision", WorkflowMode.QUICK)

    def test_standard_action_names_rejected_in_quick_mode(self):
        with pytest.raises(ValidationError):
            check_action(case(WorkflowStatus.SUBMITTED_TO_HEAD), HEAD, "approve_as_head", WorkflowMode.QUICK)

    def test_quick_actions_respect_locking(self):
        locked = case(WorkflowStatus.SUBMITTED_TO_HEAD, cmc="Cleared")

        with pytest.raises(RecordLockedError):
            check_action(locked, HEAD, "approve_head", WorkflowMode.QUICK)


class TestAvailableActions:
    """Test which actions a client should offer"""

    def test_head_on_submitted_case(self):
        actions = available_actions(case(WorkflowStatus.SUBMITTED_TO_HEAD), HEAD)
        assert actions == ["set_dac_decision", "approve_as_head"]

    def test_deputy_on_submitted_case(self):
        assert available_actions(case(WorkflowStatus.SUBMITTED_TO_HEAD), DEPUTY) == []

    def test_admin_on_decided_case(self):
        assert available_actions(case(WorkflowStatus.CMC_DECIDED), ADMIN) == ["close"]

    def test_quick_mode_returns_single_action(self):
        roles = RoleSet.of(AppRole.DEPARTMENT_HEAD, AppRole.ACADEMIC_VICE_DEAN)
        actions = available_actions(case(WorkflowStatus.APPROVED_BY_HEAD), roles, WorkflowMode.QUICK)

        assert actions == ["submit_to_avd"]

    def test_no_roles_no_actions(self):
        for status in WorkflowStatus:
            assert available_actions(case(status), NOBODY) == []
