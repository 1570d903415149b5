"""
approval_engines.routing -- Chain selection and approver resolution.

Responsibility:
    Select the approval chain that applies to a request (department-,
    project- or globally-scoped) and resolve the concrete employee who must
    approve one level of it.

Architecture position:
    Engines -- routing layer.  Imports only ``approval_kernel.domain`` types
    and ``approval_kernel.exceptions``.  All organizational data is reached
    through the collaborator protocols passed in by the caller; nothing is
    cached here.

Invariants enforced:
    - Chain precedence: department scope, then project scope, then global.
      First non-empty match wins.
    - Chains are returned ordered by ``level_number`` ascending.
    - ``resolve_approver`` never returns None.  Missing managers degrade to
      the HR manager; unknown routing rules raise.

Failure modes:
    - ``NoApprovalChainError`` when no scope yields a chain.
    - ``UnknownRoutingRuleError`` for rule codes outside ``ApproverRule``.
    - ``ConfigurationError`` for a ``FIXED_EMPLOYEE`` rule with no approver.
"""

from __future__ import annotations

import logging
from enum import Enum

from approval_kernel.domain.approval import (
    ApprovalChainStore,
    ApprovalLevelRule,
    ApproverRule,
    OrganizationDirectory,
    RoleConfigurationStore,
    RoleKey,
    type_code,
)
from approval_kernel.exceptions import (
    ConfigurationError,
    NoApprovalChainError,
    UnknownRoutingRuleError,
)

_logger = logging.getLogger("approval_kernel.engines.routing")


# Display locale of the original deployment (Arabic).
LEVEL_LABELS: dict[ApproverRule, str] = {
    ApproverRule.DIRECT_MANAGER: "المدير المباشر",
    ApproverRule.PROJECT_MANAGER: "مدير المشروع",
    ApproverRule.REGIONAL_MANAGER: "مدير المشروع الإقليمي",
    ApproverRule.HR_MANAGER: "مدير الموارد البشرية",
    ApproverRule.FINANCE_MANAGER: "مدير المالية",
    ApproverRule.GENERAL_MANAGER: "المدير العام",
    ApproverRule.FIXED_EMPLOYEE: "موافق محدد",
}


def friendly_label(rule: ApproverRule | str) -> str:
    """Human-readable name of a routing rule.

    Unrecognized codes are returned unchanged; labels are display-only and
    never affect routing.
    """
    if isinstance(rule, ApproverRule):
        return LEVEL_LABELS[rule]
    try:
        return LEVEL_LABELS[ApproverRule(rule)]
    except ValueError:
        return rule


def resolve_chain(
    chains: ApprovalChainStore,
    request_type: str | Enum,
    department_id: int | None = None,
    project_id: int | None = None,
) -> tuple[ApprovalLevelRule, ...]:
    """Return the ordered approval chain for a request.

    Args:
        chains: Active chain configuration.
        request_type: Request category (``RequestType`` or stored code).
        department_id: Originating department, if any.
        project_id: Originating project, if any.

    Returns:
        Tuple of levels ordered by ``level_number`` ascending.

    Raises:
        NoApprovalChainError: If no department, project or global chain
            exists for ``request_type``.
    """
    code = type_code(request_type)

    if department_id is not None:
        chain = chains.find_department_chain(code, department_id)
        if chain:
            _logger.debug(
                "approval_chain_selected",
                extra={"scope": "department", "request_type": code,
                       "department_id": department_id, "levels": len(chain)},
            )
            return _ordered(chain)

    if project_id is not None:
        chain = chains.find_project_chain(code, project_id)
        if chain:
            _logger.debug(
                "approval_chain_selected",
                extra={"scope": "project", "request_type": code,
                       "project_id": project_id, "levels": len(chain)},
            )
            return _ordered(chain)

    chain = chains.find_global_chain(code)
    if chain:
        _logger.debug(
            "approval_chain_selected",
            extra={"scope": "global", "request_type": code, "levels": len(chain)},
        )
        return _ordered(chain)

    raise NoApprovalChainError(code, department_id, project_id)


def resolve_approver(
    rule: ApprovalLevelRule,
    employee_id: int,
    department_id: int | None = None,
    project_id: int | None = None,
    *,
    directory: OrganizationDirectory,
    roles: RoleConfigurationStore,
) -> int:
    """Compute the employee who must approve ``rule`` for this request.

    ``employee_id`` is the request originator; it is carried for log
    correlation only, since every rule resolves through the originator's
    department/project or a fixed role.

    Raises:
        UnknownRoutingRuleError: If the rule tag is not a known rule.
        ConfigurationError: If a FIXED_EMPLOYEE rule names no approver.
    """
    approver_rule = rule.approver_rule
    if not isinstance(approver_rule, ApproverRule):
        approver_rule = ApproverRule.from_code(approver_rule)

    if approver_rule is ApproverRule.DIRECT_MANAGER:
        approver = _department_manager(department_id, directory, roles)
    elif approver_rule is ApproverRule.PROJECT_MANAGER:
        approver = _project_manager(project_id, "manager_id", directory, roles)
    elif approver_rule is ApproverRule.REGIONAL_MANAGER:
        approver = _project_manager(
            project_id, "regional_manager_id", directory, roles,
        )
    elif approver_rule is ApproverRule.HR_MANAGER:
        approver = roles.get_role_holder(RoleKey.HR_MANAGER)
    elif approver_rule is ApproverRule.FINANCE_MANAGER:
        approver = roles.get_role_holder(RoleKey.FINANCE_MANAGER)
    elif approver_rule is ApproverRule.GENERAL_MANAGER:
        approver = roles.get_role_holder(RoleKey.GENERAL_MANAGER)
    elif approver_rule is ApproverRule.FIXED_EMPLOYEE:
        if rule.fixed_approver_id is None:
            raise ConfigurationError(
                f"Level {rule.level_number} of the {rule.request_type} chain "
                f"routes to a specific employee but names none"
            )
        approver = rule.fixed_approver_id
    else:
        raise UnknownRoutingRuleError(str(approver_rule))

    _logger.debug(
        "approver_resolved",
        extra={
            "rule": approver_rule.value,
            "level_number": rule.level_number,
            "originator_id": employee_id,
            "approver_id": approver,
        },
    )
    return approver


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ordered(chain) -> tuple[ApprovalLevelRule, ...]:
    return tuple(sorted(chain, key=lambda r: r.level_number))


def _department_manager(
    department_id: int | None,
    directory: OrganizationDirectory,
    roles: RoleConfigurationStore,
) -> int:
    if department_id is None:
        return _fallback_to_hr(ApproverRule.DIRECT_MANAGER, "no_department", roles)

    department = directory.get_department(department_id)
    if department is None:
        return _fallback_to_hr(
            ApproverRule.DIRECT_MANAGER, "department_not_found", roles,
            department_id=department_id,
        )
    if department.manager_id is None:
        return _fallback_to_hr(
            ApproverRule.DIRECT_MANAGER, "department_has_no_manager", roles,
            department_id=department_id,
        )
    return department.manager_id


def _project_manager(
    project_id: int | None,
    attribute: str,
    directory: OrganizationDirectory,
    roles: RoleConfigurationStore,
) -> int:
    rule = (
        ApproverRule.PROJECT_MANAGER
        if attribute == "manager_id"
        else ApproverRule.REGIONAL_MANAGER
    )
    if project_id is None:
        return _fallback_to_hr(rule, "no_project", roles)

    project = directory.get_project(project_id)
    if project is None:
        return _fallback_to_hr(
            rule, "project_not_found", roles, project_id=project_id,
        )
    manager_id = getattr(project, attribute)
    if manager_id is None:
        return _fallback_to_hr(
            rule, "project_has_no_manager", roles, project_id=project_id,
        )
    return manager_id


def _fallback_to_hr(
    rule: ApproverRule,
    reason: str,
    roles: RoleConfigurationStore,
    **fields: int,
) -> int:
    """Degraded path: route to the HR manager so the request is never stuck."""
    hr_manager = roles.get_role_holder(RoleKey.HR_MANAGER)
    _logger.warning(
        "approver_fallback",
        extra={
            "rule": rule.value,
            "reason": reason,
            "fallback_approver_id": hr_manager,
            **fields,
        },
    )
    return hr_manager
