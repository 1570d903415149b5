"""Read-only query selectors."""

from approval_kernel.selectors.approval_chain_selector import ApprovalChainSelector
from approval_kernel.selectors.base import BaseSelector
from approval_kernel.selectors.organization_selector import OrganizationSelector

__all__ = [
    "ApprovalChainSelector",
    "BaseSelector",
    "OrganizationSelector",
]
