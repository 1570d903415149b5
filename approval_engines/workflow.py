"""
approval_engines.workflow -- Level-advancement state machine.

Responsibility:
    Compute the next approval state of a request: the first level and its
    approver on submission, and on every approval action either the next
    level and approver or full approval.

Architecture position:
    Engines -- routing layer.  Side-effect-free with respect to storage: the
    caller persists the returned ``ApprovalProgress`` onto its own record.

States:
    NEEDS_APPROVAL(level, approver) --advance--> NEEDS_APPROVAL(next, approver')
    NEEDS_APPROVAL(level, approver) --advance--> APPROVED
    NEEDS_APPROVAL(level, approver) --reject (caller)--> REJECTED

    The engine only moves forward through the chain or terminates as
    APPROVED.  REJECTED is reached exclusively through the caller's
    explicit rejection path.

Invariants enforced:
    - Privileged bypass is an explicit boolean input; the engine never
      inspects caller identity.
    - ``advance_approval`` is a pure function of its inputs plus the current
      directory/role data.  Repeating a call with unchanged inputs returns
      the same result; callers prevent double-advancing.
    - Approvers are re-resolved on every call, never read from the chain.

Failure modes:
    - ``NoApprovalChainError`` if no chain applies.
    - ``LevelNotInChainError`` if ``current_level`` is not in the chain.
    - ``MissingEmployeeError`` if the originator does not exist.
    - ``UnknownRoutingRuleError`` from approver resolution.
    - Chain exhausted without a final marker: logged, treated as APPROVED.
"""

from __future__ import annotations

import logging

from approval_engines.routing import (
    friendly_label,
    resolve_approver,
    resolve_chain,
)
from approval_engines.tracer import traced_engine
from approval_kernel.domain.approval import (
    ApprovalChainStore,
    ApprovalContext,
    ApprovalLevelRule,
    ApprovalProgress,
    OrganizationDirectory,
    RoleConfigurationStore,
)
from approval_kernel.exceptions import LevelNotInChainError

_logger = logging.getLogger("approval_kernel.engines.workflow")


@traced_engine("workflow.initialize", "1.0", ("context",))
def initialize_approval(
    context: ApprovalContext,
    *,
    chains: ApprovalChainStore,
    directory: OrganizationDirectory,
    roles: RoleConfigurationStore,
) -> ApprovalProgress:
    """Route a new request to the first level of its chain.

    Returns:
        ``NEEDS_APPROVAL`` at the lowest-numbered level with its approver.
    """
    chain = resolve_chain(
        chains, context.request_type, context.department_id, context.project_id,
    )
    first_level = chain[0]

    directory.get_employee(context.employee_id)
    progress = _route_to(first_level, context, directory, roles)

    _logger.info(
        "approval_initialized",
        extra={
            "level_number": progress.next_level_number,
            "approver_id": progress.next_approver_id,
        },
    )
    return progress


@traced_engine(
    "workflow.advance", "1.0",
    ("context", "current_level", "privileged_bypass"),
)
def advance_approval(
    context: ApprovalContext,
    current_level: int,
    privileged_bypass: bool,
    *,
    chains: ApprovalChainStore,
    directory: OrganizationDirectory,
    roles: RoleConfigurationStore,
) -> ApprovalProgress:
    """Move a request past ``current_level``.

    Args:
        context: Originating request data.
        current_level: Level the request is currently waiting at.
        privileged_bypass: Administrative override; approves immediately,
            skipping every remaining level.

    Returns:
        ``NEEDS_APPROVAL`` at the next level, or ``APPROVED``.
    """
    if privileged_bypass:
        _logger.info(
            "approval_bypassed",
            extra={"level_number": current_level},
        )
        return ApprovalProgress.approved()

    chain = resolve_chain(
        chains, context.request_type, context.department_id, context.project_id,
    )

    current = next(
        (level for level in chain if level.level_number == current_level), None,
    )
    if current is None:
        raise LevelNotInChainError(chain[0].request_type, current_level)

    if current.is_final_level:
        _logger.info(
            "approval_final_level_reached",
            extra={"level_number": current_level},
        )
        return ApprovalProgress.approved()

    later = [level for level in chain if level.level_number > current_level]
    if not later:
        _logger.warning(
            "approval_chain_exhausted",
            extra={"level_number": current_level},
        )
        return ApprovalProgress.approved()

    next_level = min(later, key=lambda level: level.level_number)
    directory.get_employee(context.employee_id)
    progress = _route_to(next_level, context, directory, roles)

    _logger.info(
        "approval_advanced",
        extra={
            "from_level": current_level,
            "level_number": progress.next_level_number,
            "approver_id": progress.next_approver_id,
        },
    )
    return progress


def _route_to(
    level: ApprovalLevelRule,
    context: ApprovalContext,
    directory: OrganizationDirectory,
    roles: RoleConfigurationStore,
) -> ApprovalProgress:
    approver = resolve_approver(
        level,
        context.employee_id,
        context.department_id,
        context.project_id,
        directory=directory,
        roles=roles,
    )
    return ApprovalProgress.needs_approval(
        level.level_number, approver, friendly_label(level.approver_rule),
    )
