"""
Approval domain types (``approval_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for the multi-level approval engine.  Defines the
request-type and routing-rule vocabularies, the approval level
configuration record, the per-call context, the progress value handed back
to domain services, and the timeline step.  Also declares the collaborator
protocols the engine consumes (organizational directory, role configuration
store, approval-chain store).

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/``, ``selectors/`` or outer layers.

Invariants enforced
-------------------
* Routing rules form a closed set.  ``ApproverRule.from_code`` raises
  ``UnknownRoutingRuleError`` for anything outside it; there is no default
  branch.
* ``ApprovalProgress`` is terminal exactly when ``next_level_number`` and
  ``next_approver_id`` are both None.
* Approver identity is never stored on ``ApprovalLevelRule`` (except the
  explicit ``fixed_approver_id`` of ``FIXED_EMPLOYEE`` rules); it is
  recomputed on every evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence

from approval_kernel.exceptions import UnknownRoutingRuleError


# =========================================================================
# Vocabularies
# =========================================================================


class RequestType(str, Enum):
    """Business request categories routed through approval chains."""

    LEAVE = "VAC"
    LOAN = "LOAN"
    SALARY_INCREASE = "INCR"
    LOAN_POSTPONEMENT = "POSTLOAN"
    PAYROLL = "PAYROLL"
    PROJECT_PAYMENT = "PROJ_PAYMENT"
    PROJECT_TRANSFER = "PROJ_TRANSFER"
    MANUAL_ATTENDANCE = "MANUAL_ATTENDANCE"
    ALLOWANCE = "ALLOW"
    DEDUCTION = "DEDUCT"
    LABOR_REQUEST = "LABOR_REQ"


def type_code(request_type: RequestType | str) -> str:
    """Normalize a RequestType member or raw string to its stored code."""
    if isinstance(request_type, Enum):
        return str(request_type.value)
    return request_type


class ApproverRule(str, Enum):
    """How the approver of one level is resolved.

    Values are the stored function-call codes of the chain configuration.
    """

    DIRECT_MANAGER = "GetDirectManager"
    PROJECT_MANAGER = "GetProjectManager"
    REGIONAL_MANAGER = "GetRegionalManager"
    HR_MANAGER = "GetHRManager"
    FINANCE_MANAGER = "GetFinManager"
    GENERAL_MANAGER = "GetGeneralManager"
    FIXED_EMPLOYEE = "SpecificEmployee"

    @classmethod
    def from_code(cls, code: str) -> ApproverRule:
        """Parse a stored rule code; unknown codes are an error, never a default."""
        try:
            return cls(code)
        except ValueError:
            raise UnknownRoutingRuleError(code) from None


class RoleKey(str, Enum):
    """Fixed organizational roles held in the role configuration store."""

    HR_MANAGER = "HR_MANAGER_EMPLOYEE_NO"
    FINANCE_MANAGER = "FINANCE_MANAGER_EMPLOYEE_NO"
    GENERAL_MANAGER = "GENERAL_MANAGER_EMPLOYEE_NO"


class ApprovalStatus(str, Enum):
    """Approval status as stored on the caller's record (``trans_status``)."""

    NEEDS_APPROVAL = "N"
    APPROVED = "A"
    REJECTED = "R"


TERMINAL_APPROVAL_STATUSES: frozenset[ApprovalStatus] = frozenset({
    ApprovalStatus.APPROVED,
    ApprovalStatus.REJECTED,
})


class StepStatus(str, Enum):
    """Display status of one level in a reconstructed timeline."""

    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FUTURE = "FUTURE"
    REJECTED = "REJECTED"
    SKIPPED = "SKIPPED"


# =========================================================================
# Configuration record
# =========================================================================


@dataclass(frozen=True)
class ApprovalLevelRule:
    """One level of an approval chain.

    A chain is global when both ``department_id`` and ``project_id`` are
    None, otherwise department- or project-scoped.  ``is_final_level``
    terminates the chain regardless of higher-numbered levels.
    """

    request_type: str
    level_number: int
    approver_rule: ApproverRule
    is_final_level: bool = False
    department_id: int | None = None
    project_id: int | None = None
    fixed_approver_id: int | None = None
    remarks: str | None = None

    @property
    def is_global(self) -> bool:
        return self.department_id is None and self.project_id is None


# =========================================================================
# Per-call input
# =========================================================================


@dataclass(frozen=True)
class ApprovalContext:
    """Originating request data used for chain selection and routing."""

    request_type: str
    employee_id: int
    department_id: int | None = None
    project_id: int | None = None


# =========================================================================
# Results
# =========================================================================


@dataclass(frozen=True)
class ApprovalProgress:
    """Next approval state computed by the engine.

    Owned and persisted by the calling domain record; replaced, never
    appended, on every advancement.
    """

    status: ApprovalStatus
    next_approver_id: int | None = None
    next_level_number: int | None = None
    next_level_label: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_APPROVAL_STATUSES

    @classmethod
    def needs_approval(
        cls, level_number: int, approver_id: int, label: str,
    ) -> ApprovalProgress:
        return cls(
            status=ApprovalStatus.NEEDS_APPROVAL,
            next_approver_id=approver_id,
            next_level_number=level_number,
            next_level_label=label,
        )

    @classmethod
    def approved(cls) -> ApprovalProgress:
        return cls(status=ApprovalStatus.APPROVED)

    @classmethod
    def rejected(cls) -> ApprovalProgress:
        return cls(status=ApprovalStatus.REJECTED)


@dataclass(frozen=True)
class ApprovalStep:
    """One row of a reconstructed approval timeline."""

    level_number: int
    level_label: str
    approver_id: int
    approver_name: str
    step_status: StepStatus


# =========================================================================
# Collaborator DTOs
# =========================================================================


@dataclass(frozen=True)
class DepartmentInfo:
    department_id: int
    name: str | None = None
    manager_id: int | None = None


@dataclass(frozen=True)
class ProjectInfo:
    project_id: int
    name: str | None = None
    manager_id: int | None = None
    regional_manager_id: int | None = None


@dataclass(frozen=True)
class EmployeeInfo:
    employee_id: int
    display_name: str
    department_id: int | None = None
    project_id: int | None = None


# =========================================================================
# Collaborator protocols
# =========================================================================


class OrganizationDirectory(Protocol):
    """Read-only organizational lookups consumed by the engine."""

    def get_department(self, department_id: int) -> DepartmentInfo | None:
        """Return the department, or None if it does not exist."""
        ...

    def get_project(self, project_id: int) -> ProjectInfo | None:
        """Return the project, or None if it does not exist."""
        ...

    def get_employee(self, employee_id: int) -> EmployeeInfo:
        """Return the employee; raise MissingEmployeeError if absent."""
        ...


class RoleConfigurationStore(Protocol):
    """Synchronous lookup of fixed role holders.

    Implementations own caching and fall back to a hardcoded default when
    the key is missing or malformed; the engine assumes neither.
    """

    def get_role_holder(self, role_key: RoleKey) -> int:
        """Return the employee holding ``role_key``."""
        ...


class ApprovalChainStore(Protocol):
    """Active approval-chain configuration, ordered by level number."""

    def find_department_chain(
        self, request_type: str, department_id: int,
    ) -> Sequence[ApprovalLevelRule]:
        ...

    def find_project_chain(
        self, request_type: str, project_id: int,
    ) -> Sequence[ApprovalLevelRule]:
        ...

    def find_global_chain(self, request_type: str) -> Sequence[ApprovalLevelRule]:
        ...
