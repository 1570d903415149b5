"""Kernel services: approval facade, actions and configuration maintenance."""

from approval_kernel.services.approval_action_service import (
    ApprovalActionService,
    AutoApprovalOutcome,
    AutoApprovalReport,
    PendingApproval,
)
from approval_kernel.services.approval_workflow_service import ApprovalWorkflowService
from approval_kernel.services.chain_config_service import ChainConfigurationService
from approval_kernel.services.role_config_service import (
    ROLE_DEFAULTS,
    RoleConfigurationService,
    SystemConfigInfo,
)

__all__ = [
    "ROLE_DEFAULTS",
    "ApprovalActionService",
    "ApprovalWorkflowService",
    "AutoApprovalOutcome",
    "AutoApprovalReport",
    "ChainConfigurationService",
    "PendingApproval",
    "RoleConfigurationService",
    "SystemConfigInfo",
]
