"""
Tests for ApprovalWorkflowService wired to the database.

Covers:
- Initialization and advancement through a chain stored in requests_approval_set
- Department and project chains taking precedence over the global chain
- Role holders read from system_config
- Timeline reconstruction with employee names from the directory
- Log context binding for routed requests
"""

import pytest

from approval_kernel.domain.approval import (
    ApprovalContext,
    ApprovalStatus,
    ApproverRule,
    StepStatus,
)
from approval_kernel.exceptions import NoApprovalChainError, UnknownRoutingRuleError
from approval_kernel.models.approval_chain import ApprovalLevelConfig
from approval_kernel.services.approval_workflow_service import ApprovalWorkflowService
from approval_kernel.services.chain_config_service import ChainConfigurationService
from approval_kernel.services.role_config_service import RoleConfigurationService
from tests.conftest import (
    DEPT_ID,
    DEPT_MANAGER_ID,
    EMPLOYEE_ID,
    FINANCE_MANAGER_ID,
    GENERAL_MANAGER_ID,
    HR_MANAGER_ID,
    PROJECT_ID,
    PROJECT_MANAGER_ID,
)
from tests.fakes import make_level


@pytest.fixture
def loan_chain(session):
    ChainConfigurationService(session).apply_chain([
        make_level(1, ApproverRule.DIRECT_MANAGER),
        make_level(2, ApproverRule.FINANCE_MANAGER),
        make_level(3, ApproverRule.GENERAL_MANAGER, final=True),
    ])


@pytest.fixture
def workflow(session, organization, role_cache):
    return ApprovalWorkflowService.from_session(session, role_cache=role_cache)


class TestLoanWalk:
    def test_initialize(self, workflow, loan_chain, loan_context):
        progress = workflow.initialize(loan_context)

        assert progress.status is ApprovalStatus.NEEDS_APPROVAL
        assert progress.next_level_number == 1
        assert progress.next_approver_id == DEPT_MANAGER_ID

    def test_full_walk(self, workflow, loan_chain, loan_context):
        progress = workflow.initialize(loan_context)
        visited = [(progress.next_level_number, progress.next_approver_id)]

        while progress.status is ApprovalStatus.NEEDS_APPROVAL:
            progress = workflow.advance(loan_context, progress.next_level_number)
            if progress.next_level_number is not None:
                visited.append((progress.next_level_number, progress.next_approver_id))

        assert visited == [
            (1, DEPT_MANAGER_ID),
            (2, FINANCE_MANAGER_ID),
            (3, GENERAL_MANAGER_ID),
        ]
        assert progress.status is ApprovalStatus.APPROVED
        assert progress.next_approver_id is None

    def test_bypass_approves_immediately(self, workflow, loan_chain, loan_context):
        progress = workflow.advance(loan_context, 1, privileged_bypass=True)
        assert progress.status is ApprovalStatus.APPROVED

    def test_role_holder_change_seen_on_next_routing(
        self, session, workflow, loan_chain, loan_context, role_cache,
    ):
        assert workflow.advance(loan_context, 1).next_approver_id == FINANCE_MANAGER_ID

        RoleConfigurationService(session, cache=role_cache).update_value(
            "FINANCE_MANAGER_EMPLOYEE_NO", str(HR_MANAGER_ID),
        )

        assert workflow.advance(loan_context, 1).next_approver_id == HR_MANAGER_ID


class TestChainPrecedence:
    def test_department_chain_wins(self, workflow, loan_chain, loan_context, session):
        ChainConfigurationService(session).apply_chain([
            make_level(1, ApproverRule.HR_MANAGER, department_id=DEPT_ID, final=True),
        ])

        progress = workflow.initialize(loan_context)

        assert progress.next_approver_id == HR_MANAGER_ID

    def test_project_chain_used_without_department_chain(
        self, workflow, loan_chain, loan_context, session,
    ):
        ChainConfigurationService(session).apply_chain([
            make_level(1, ApproverRule.PROJECT_MANAGER, project_id=PROJECT_ID),
            make_level(2, ApproverRule.GENERAL_MANAGER, project_id=PROJECT_ID, final=True),
        ])

        progress = workflow.initialize(loan_context)

        assert progress.next_approver_id == PROJECT_MANAGER_ID

    def test_other_department_falls_back_to_global(self, workflow, loan_chain, session):
        ChainConfigurationService(session).apply_chain([
            make_level(1, ApproverRule.HR_MANAGER, department_id=DEPT_ID + 1, final=True),
        ])

        progress = workflow.initialize(ApprovalContext("LOAN", EMPLOYEE_ID, DEPT_ID))

        assert progress.next_approver_id == DEPT_MANAGER_ID

    def test_deactivated_department_chain_ignored(
        self, workflow, loan_chain, loan_context, session,
    ):
        service = ChainConfigurationService(session)
        service.apply_chain([
            make_level(1, ApproverRule.HR_MANAGER, department_id=DEPT_ID, final=True),
        ])
        service.deactivate_chain("LOAN", department_id=DEPT_ID)

        assert workflow.initialize(loan_context).next_approver_id == DEPT_MANAGER_ID

    def test_no_chain_raises(self, workflow, loan_context):
        with pytest.raises(NoApprovalChainError):
            workflow.initialize(loan_context)

    def test_unknown_stored_rule_raises(self, workflow, loan_context, session):
        session.add(
            ApprovalLevelConfig(
                request_type="LOAN", level_no=1, function_call="GetCEO",
                close_level="Y", is_active="Y",
            )
        )
        session.flush()

        with pytest.raises(UnknownRoutingRuleError):
            workflow.initialize(loan_context)


class TestTimeline:
    def test_names_from_directory(self, workflow, loan_chain, loan_context):
        steps = workflow.timeline(loan_context, 2, ApprovalStatus.NEEDS_APPROVAL)

        assert [s.approver_name for s in steps] == [
            "Operations Manager", "Finance Manager", "General Manager",
        ]
        assert [s.step_status for s in steps] == [
            StepStatus.COMPLETED, StepStatus.PENDING, StepStatus.FUTURE,
        ]

    def test_rejected_timeline(self, workflow, loan_chain, loan_context):
        steps = workflow.timeline(loan_context, 2, "R")
        assert [s.step_status for s in steps] == [
            StepStatus.COMPLETED, StepStatus.REJECTED, StepStatus.SKIPPED,
        ]


class TestAuthorizationAndLogging:
    def test_can_approve(self, workflow):
        assert workflow.can_approve(False, DEPT_MANAGER_ID, DEPT_MANAGER_ID)
        assert not workflow.can_approve(False, HR_MANAGER_ID, DEPT_MANAGER_ID)
        assert workflow.can_approve(True, HR_MANAGER_ID, DEPT_MANAGER_ID)

    def test_denied_check_carries_actor(self, workflow, captured_logs):
        workflow.can_approve(False, HR_MANAGER_ID, DEPT_MANAGER_ID, level_number=1)

        denied = [r for r in captured_logs() if r["message"] == "approver_not_authorized"]
        assert denied[0]["actor_id"] == str(HR_MANAGER_ID)

    def test_request_context_bound(self, workflow, loan_chain, loan_context, captured_logs):
        workflow.initialize(loan_context)

        initialized = [r for r in captured_logs() if r["message"] == "approval_initialized"]
        assert initialized[0]["request_type"] == "LOAN"
        assert initialized[0]["employee_id"] == str(EMPLOYEE_ID)
