"""
ApprovalWorkflowService -- engine facade for domain services.

Responsibility:
    Single entry point through which leave, loan, payroll, project and
    other domain services drive approval routing.  Binds the pure engines
    to concrete collaborators (chain store, organizational directory, role
    configuration) and to the log context of the request being routed.

Architecture position:
    Kernel > Services -- imperative shell around ``approval_engines``.
    Holds no mutable state of its own; the returned ``ApprovalProgress`` is
    persisted by the calling domain service on its own record.

Usage:
    with session_scope() as session:
        workflow = ApprovalWorkflowService.from_session(session)
        progress = workflow.initialize(
            ApprovalContext(RequestType.LOAN.value, employee_id=1001,
                            department_id=10),
        )
        loan.next_approval = progress.next_approver_id
        loan.next_app_level = progress.next_level_number
        loan.trans_status = progress.status.value
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from approval_engines.authorization import can_approve as _can_approve
from approval_kernel.domain.approval import type_code
from approval_engines.timeline import build_timeline
from approval_engines.workflow import advance_approval, initialize_approval
from approval_kernel.domain.approval import (
    ApprovalChainStore,
    ApprovalContext,
    ApprovalProgress,
    ApprovalStatus,
    ApprovalStep,
    OrganizationDirectory,
    RoleConfigurationStore,
)
from approval_kernel.logging_config import LogContext
from approval_kernel.selectors.approval_chain_selector import ApprovalChainSelector
from approval_kernel.selectors.organization_selector import OrganizationSelector
from approval_kernel.services.role_config_service import RoleConfigurationService
from approval_kernel.utils.cache import RoleHolderCache


class ApprovalWorkflowService:
    """Initialize, advance, authorize and explain approvals."""

    def __init__(
        self,
        chains: ApprovalChainStore,
        directory: OrganizationDirectory,
        roles: RoleConfigurationStore,
    ):
        self.chains = chains
        self.directory = directory
        self.roles = roles

    @classmethod
    def from_session(
        cls,
        session: Session,
        role_cache: RoleHolderCache | None = None,
    ) -> ApprovalWorkflowService:
        """Wire the service to the database-backed collaborators."""
        return cls(
            chains=ApprovalChainSelector(session),
            directory=OrganizationSelector(session),
            roles=RoleConfigurationService(session, cache=role_cache),
        )

    def initialize(self, context: ApprovalContext) -> ApprovalProgress:
        """First approval state of a newly submitted request."""
        with _bind(context):
            return initialize_approval(
                context,
                chains=self.chains,
                directory=self.directory,
                roles=self.roles,
            )

    def advance(
        self,
        context: ApprovalContext,
        current_level: int,
        privileged_bypass: bool = False,
    ) -> ApprovalProgress:
        """Approval state after the approver at ``current_level`` has approved."""
        with _bind(context):
            return advance_approval(
                context,
                current_level,
                privileged_bypass,
                chains=self.chains,
                directory=self.directory,
                roles=self.roles,
            )

    def can_approve(
        self,
        privileged_bypass: bool,
        acting_employee_id: int,
        expected_approver_id: int | None,
        level_number: int | None = None,
    ) -> bool:
        with LogContext.bind(actor_id=acting_employee_id):
            return _can_approve(
                privileged_bypass,
                acting_employee_id,
                expected_approver_id,
                level_number=level_number,
            )

    def timeline(
        self,
        context: ApprovalContext,
        current_level: int | None,
        status: ApprovalStatus | str,
    ) -> list[ApprovalStep]:
        """Per-level view of the request's approval progress."""
        with _bind(context):
            return build_timeline(
                context,
                current_level,
                status,
                chains=self.chains,
                directory=self.directory,
                roles=self.roles,
            )


def _bind(context: ApprovalContext):
    return LogContext.bind(
        request_type=type_code(context.request_type),
        employee_id=context.employee_id,
    )
