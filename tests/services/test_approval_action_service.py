"""
Tests for ApprovalActionService.

Covers:
- Approve: authorization against the captured approver, advancement, bypass
- Reject: terminal state with no level and no approver
- Guards: not-pending requests, unauthorized actors
- Auto-approval of stale requests, including per-request failure isolation
"""

from datetime import datetime, timedelta

import pytest

from approval_kernel.domain.approval import (
    ApprovalContext,
    ApprovalStatus,
    ApproverRule,
    RoleKey,
)
from approval_kernel.exceptions import (
    RequestNotPendingError,
    UnauthorizedApproverError,
)
from approval_kernel.services.approval_action_service import (
    DEFAULT_TIMEOUT_HOURS,
    ApprovalActionService,
    PendingApproval,
)
from approval_kernel.services.approval_workflow_service import ApprovalWorkflowService
from tests.conftest import (
    DEPT_MANAGER_ID,
    FINANCE_MANAGER_ID,
    GENERAL_MANAGER_ID,
    HR_MANAGER_ID,
    messages,
)
from tests.fakes import make_level


@pytest.fixture
def loan_chain(chains):
    chains.add(
        make_level(1, ApproverRule.DIRECT_MANAGER),
        make_level(2, ApproverRule.FINANCE_MANAGER),
        make_level(3, ApproverRule.GENERAL_MANAGER, final=True),
    )
    return chains


@pytest.fixture
def actions(loan_chain, directory, roles, deterministic_clock):
    workflow = ApprovalWorkflowService(loan_chain, directory, roles)
    return ApprovalActionService(workflow, clock=deterministic_clock)


def _pending(context, level, approver, *, request_id="LN-1", status="N", submitted_at=None):
    return PendingApproval(
        request_id=request_id,
        context=context,
        status=ApprovalStatus(status),
        next_approver_id=approver,
        next_level_number=level,
        submitted_at=submitted_at,
    )


class TestApprove:
    def test_captured_approver_advances_request(self, actions, loan_context):
        progress = actions.approve(_pending(loan_context, 1, DEPT_MANAGER_ID), DEPT_MANAGER_ID)

        assert progress.status is ApprovalStatus.NEEDS_APPROVAL
        assert progress.next_level_number == 2
        assert progress.next_approver_id == FINANCE_MANAGER_ID

    def test_final_level_approves(self, actions, loan_context):
        progress = actions.approve(
            _pending(loan_context, 3, GENERAL_MANAGER_ID), GENERAL_MANAGER_ID,
        )
        assert progress.status is ApprovalStatus.APPROVED

    def test_other_employee_rejected(self, actions, loan_context):
        with pytest.raises(UnauthorizedApproverError) as exc_info:
            actions.approve(_pending(loan_context, 1, DEPT_MANAGER_ID), HR_MANAGER_ID)

        assert exc_info.value.expected_approver_id == DEPT_MANAGER_ID
        assert exc_info.value.level_number == 1

    def test_captured_approver_checked_not_current_holder(
        self, actions, loan_context, roles,
    ):
        # The finance manager changed after routing; the captured one still acts.
        roles.holders[RoleKey.FINANCE_MANAGER] = 999
        progress = actions.approve(
            _pending(loan_context, 2, FINANCE_MANAGER_ID), FINANCE_MANAGER_ID,
        )

        assert progress.next_level_number == 3
        with pytest.raises(UnauthorizedApproverError):
            actions.approve(_pending(loan_context, 2, FINANCE_MANAGER_ID), 999)

    def test_privileged_bypass_approves_outright(self, actions, loan_context):
        progress = actions.approve(
            _pending(loan_context, 1, DEPT_MANAGER_ID), HR_MANAGER_ID, privileged_bypass=True,
        )
        assert progress.status is ApprovalStatus.APPROVED

    @pytest.mark.parametrize("status", ["A", "R"])
    def test_terminal_request_not_actionable(self, actions, loan_context, status):
        with pytest.raises(RequestNotPendingError) as exc_info:
            actions.approve(
                _pending(loan_context, None, None, status=status), DEPT_MANAGER_ID,
            )
        assert exc_info.value.status == status

    def test_not_pending_checked_before_bypass(self, actions, loan_context):
        with pytest.raises(RequestNotPendingError):
            actions.approve(
                _pending(loan_context, None, None, status="A"),
                HR_MANAGER_ID,
                privileged_bypass=True,
            )

    def test_approval_logged_with_request(self, actions, loan_context, captured_logs):
        actions.approve(_pending(loan_context, 1, DEPT_MANAGER_ID), DEPT_MANAGER_ID)

        approved = [r for r in captured_logs() if r["message"] == "approval_action_approved"]
        assert approved[0]["request_id"] == "LN-1"
        assert approved[0]["from_level"] == 1
        assert approved[0]["level_number"] == 2


class TestReject:
    def test_reject_is_terminal(self, actions, loan_context):
        progress = actions.reject(_pending(loan_context, 2, FINANCE_MANAGER_ID), FINANCE_MANAGER_ID)

        assert progress.status is ApprovalStatus.REJECTED
        assert progress.next_level_number is None
        assert progress.next_approver_id is None

    def test_reject_requires_captured_approver(self, actions, loan_context):
        with pytest.raises(UnauthorizedApproverError):
            actions.reject(_pending(loan_context, 2, FINANCE_MANAGER_ID), DEPT_MANAGER_ID)

    def test_rejected_request_cannot_be_rejected_again(self, actions, loan_context):
        with pytest.raises(RequestNotPendingError):
            actions.reject(_pending(loan_context, None, None, status="R"), DEPT_MANAGER_ID)


class TestAutoApproveStale:
    def test_only_stale_requests_approved(self, actions, loan_context, deterministic_clock):
        now = deterministic_clock.now()
        stale = _pending(
            loan_context, 1, DEPT_MANAGER_ID,
            request_id="LN-OLD", submitted_at=now - timedelta(hours=DEFAULT_TIMEOUT_HOURS),
        )
        fresh = _pending(
            loan_context, 1, DEPT_MANAGER_ID,
            request_id="LN-NEW", submitted_at=now - timedelta(hours=1),
        )
        undated = _pending(loan_context, 1, DEPT_MANAGER_ID, request_id="LN-UNDATED")

        report = actions.auto_approve_stale([stale, fresh, undated])

        assert report.approved == 1
        assert report.failed == 0
        assert [o.request_id for o in report.outcomes] == ["LN-OLD"]
        assert report.outcomes[0].progress.next_level_number == 2

    def test_terminal_requests_skipped(self, actions, loan_context, deterministic_clock):
        old = deterministic_clock.now() - timedelta(days=10)
        done = _pending(loan_context, None, None, status="A", submitted_at=old)

        assert actions.auto_approve_stale([done]).processed == 0

    def test_timeout_is_configurable(self, actions, loan_context, deterministic_clock):
        pending = _pending(
            loan_context, 1, DEPT_MANAGER_ID,
            submitted_at=deterministic_clock.now() - timedelta(hours=2),
        )

        assert actions.auto_approve_stale([pending]).processed == 0
        assert actions.auto_approve_stale([pending], timeout_hours=2).approved == 1

    def test_explicit_as_of(self, actions, loan_context, deterministic_clock):
        submitted = deterministic_clock.now()
        pending = _pending(loan_context, 1, DEPT_MANAGER_ID, submitted_at=submitted)

        report = actions.auto_approve_stale(
            [pending], as_of=submitted + timedelta(hours=DEFAULT_TIMEOUT_HOURS + 1),
        )
        assert report.approved == 1

    def test_clock_advance_makes_request_stale(
        self, actions, loan_context, deterministic_clock,
    ):
        pending = _pending(
            loan_context, 1, DEPT_MANAGER_ID, submitted_at=deterministic_clock.now(),
        )
        assert actions.auto_approve_stale([pending]).processed == 0

        deterministic_clock.advance(DEFAULT_TIMEOUT_HOURS * 3600)

        assert actions.auto_approve_stale([pending]).approved == 1

    def test_failure_isolated_and_reported(
        self, actions, loan_context, directory, deterministic_clock, captured_logs,
    ):
        old = deterministic_clock.now() - timedelta(days=3)
        missing_originator = ApprovalContext("LOAN", employee_id=424242)
        broken = _pending(
            missing_originator, 1, DEPT_MANAGER_ID, request_id="LN-BROKEN", submitted_at=old,
        )
        healthy = _pending(
            loan_context, 1, DEPT_MANAGER_ID, request_id="LN-OK", submitted_at=old,
        )

        report = actions.auto_approve_stale([broken, healthy])

        assert report.approved == 1
        assert report.failed == 1
        failed = report.outcomes[0]
        assert failed.request_id == "LN-BROKEN"
        assert not failed.succeeded
        assert failed.error_code == "EMPLOYEE_NOT_FOUND"
        assert report.outcomes[1].succeeded

        logs = messages(captured_logs())
        assert "auto_approval_failed" in logs
        assert "auto_approval_completed" in logs

    def test_unroutable_request_reported(self, actions, deterministic_clock):
        old = deterministic_clock.now() - timedelta(days=3)
        no_chain = _pending(
            ApprovalContext("VAC", employee_id=DEPT_MANAGER_ID), 1, HR_MANAGER_ID,
            submitted_at=old,
        )

        report = actions.auto_approve_stale([no_chain])

        assert report.failed == 1
        assert report.outcomes[0].error_code == "NO_APPROVAL_CHAIN"

    def test_naive_timestamp_fails_only_that_request(
        self, actions, loan_context, deterministic_clock, captured_logs,
    ):
        naive = _pending(
            loan_context, 1, DEPT_MANAGER_ID,
            request_id="LN-NAIVE", submitted_at=datetime(2020, 1, 1),
        )
        healthy = _pending(
            loan_context, 1, DEPT_MANAGER_ID, request_id="LN-OK",
            submitted_at=deterministic_clock.now() - timedelta(days=3),
        )

        report = actions.auto_approve_stale([naive, healthy])

        assert report.approved == 1
        assert report.failed == 1
        assert report.outcomes[0].request_id == "LN-NAIVE"
        assert report.outcomes[0].error_code == "TypeError"
        assert report.outcomes[1].succeeded
        assert "auto_approval_failed" in messages(captured_logs())
