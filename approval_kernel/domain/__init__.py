"""
Pure domain layer.

This module contains pure value objects and collaborator protocols
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from approval_kernel.domain.approval import (
    TERMINAL_APPROVAL_STATUSES,
    ApprovalChainStore,
    ApprovalContext,
    ApprovalLevelRule,
    ApprovalProgress,
    ApprovalStatus,
    ApprovalStep,
    ApproverRule,
    DepartmentInfo,
    EmployeeInfo,
    OrganizationDirectory,
    ProjectInfo,
    RequestType,
    RoleConfigurationStore,
    RoleKey,
    StepStatus,
    type_code,
)
from approval_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "TERMINAL_APPROVAL_STATUSES",
    "ApprovalChainStore",
    "ApprovalContext",
    "ApprovalLevelRule",
    "ApprovalProgress",
    "ApprovalStatus",
    "ApprovalStep",
    "ApproverRule",
    "Clock",
    "DepartmentInfo",
    "DeterministicClock",
    "EmployeeInfo",
    "OrganizationDirectory",
    "ProjectInfo",
    "RequestType",
    "RoleConfigurationStore",
    "RoleKey",
    "StepStatus",
    "SystemClock",
    "type_code",
]
