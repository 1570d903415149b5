"""
approval_engines.timeline -- Approval timeline reconstruction.

Responsibility:
    Derive a per-level status view of a request's approval progress from
    its chain, current level and terminal status, without any persisted
    per-step history.

Architecture position:
    Engines -- read path only.  Never called while routing.

Invariants enforced:
    - Pure re-derivation: identical inputs and organizational data give an
      identical timeline.
    - Display degradation is acceptable, routing errors are not: an
      approver whose name cannot be found gets a placeholder, while chain
      and routing-rule errors propagate.

Known limitation:
    Once a rejected request's current level has been cleared, the level
    that rejected it can no longer be identified; every level is then
    reported as REJECTED.
"""

from __future__ import annotations

import logging

from approval_engines.routing import friendly_label, resolve_approver, resolve_chain
from approval_engines.tracer import traced_engine
from approval_kernel.domain.approval import (
    ApprovalChainStore,
    ApprovalContext,
    ApprovalStatus,
    ApprovalStep,
    OrganizationDirectory,
    RoleConfigurationStore,
    StepStatus,
)
from approval_kernel.exceptions import MissingEmployeeError

_logger = logging.getLogger("approval_kernel.engines.timeline")

UNKNOWN_APPROVER_NAME = "موافق غير معروف"


def derive_step_status(
    level_number: int,
    current_level: int | None,
    status: ApprovalStatus | str,
) -> StepStatus:
    """Status label of one chain level given the request's position.

    Rejected:  before current -> COMPLETED, at current -> REJECTED,
               after current -> SKIPPED; no current level -> REJECTED.
    Approved with no current level -> COMPLETED.
    Otherwise: before current -> COMPLETED, at current -> PENDING,
               everything else -> FUTURE.
    """
    status = ApprovalStatus(status)

    if status is ApprovalStatus.REJECTED:
        if current_level is None:
            return StepStatus.REJECTED
        if level_number < current_level:
            return StepStatus.COMPLETED
        if level_number == current_level:
            return StepStatus.REJECTED
        return StepStatus.SKIPPED

    if status is ApprovalStatus.APPROVED and current_level is None:
        return StepStatus.COMPLETED

    if current_level is not None:
        if level_number < current_level:
            return StepStatus.COMPLETED
        if level_number == current_level:
            return StepStatus.PENDING
    return StepStatus.FUTURE


@traced_engine("timeline", "1.0", ("context", "current_level", "status"))
def build_timeline(
    context: ApprovalContext,
    current_level: int | None,
    status: ApprovalStatus | str,
    *,
    chains: ApprovalChainStore,
    directory: OrganizationDirectory,
    roles: RoleConfigurationStore,
) -> list[ApprovalStep]:
    """Reconstruct the approval timeline of a request.

    Raises:
        NoApprovalChainError: If no chain applies.
        MissingEmployeeError: If the originator does not exist.
        UnknownRoutingRuleError: From approver resolution.
    """
    chain = resolve_chain(
        chains, context.request_type, context.department_id, context.project_id,
    )
    directory.get_employee(context.employee_id)

    steps: list[ApprovalStep] = []
    for level in chain:
        approver = resolve_approver(
            level,
            context.employee_id,
            context.department_id,
            context.project_id,
            directory=directory,
            roles=roles,
        )
        steps.append(
            ApprovalStep(
                level_number=level.level_number,
                level_label=friendly_label(level.approver_rule),
                approver_id=approver,
                approver_name=_approver_name(approver, directory),
                step_status=derive_step_status(
                    level.level_number, current_level, status,
                ),
            )
        )
    return steps


def _approver_name(approver_id: int, directory: OrganizationDirectory) -> str:
    try:
        return directory.get_employee(approver_id).display_name
    except MissingEmployeeError:
        _logger.warning(
            "timeline_approver_name_unavailable",
            extra={"approver_id": approver_id},
        )
        return UNKNOWN_APPROVER_NAME
