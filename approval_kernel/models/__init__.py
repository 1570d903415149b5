"""ORM models for the approval kernel."""

from approval_kernel.models.approval_chain import ApprovalLevelConfig
from approval_kernel.models.organization import Department, Employee, Project
from approval_kernel.models.system_config import SystemConfig

__all__ = [
    "ApprovalLevelConfig",
    "Department",
    "Employee",
    "Project",
    "SystemConfig",
]
