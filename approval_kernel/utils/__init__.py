"""Utility modules for the approval kernel."""

from approval_kernel.utils.cache import RoleHolderCache

__all__ = [
    "RoleHolderCache",
]
