"""
Module: approval_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the approval
    routing engines.  This is the canonical import surface for the kernel
    services and for domain services embedding the engine directly.

Architecture position:
    Engines -- routing layer.
    May only import approval_kernel.domain and approval_kernel.exceptions.
    Organizational data arrives through the collaborator protocols passed
    in by the caller.

Invariants enforced:
    - No storage side effects: engines never write; callers persist the
      returned progress.
    - Determinism: identical inputs and collaborator state always produce
      identical outputs.

Usage:
    from approval_engines import (
        advance_approval,
        build_timeline,
        can_approve,
        initialize_approval,
        resolve_approver,
        resolve_chain,
    )
"""

from approval_engines.authorization import can_approve
from approval_engines.routing import (
    LEVEL_LABELS,
    friendly_label,
    resolve_approver,
    resolve_chain,
    type_code,
)
from approval_engines.timeline import (
    UNKNOWN_APPROVER_NAME,
    build_timeline,
    derive_step_status,
)
from approval_engines.tracer import compute_input_fingerprint, traced_engine
from approval_engines.workflow import advance_approval, initialize_approval

__all__ = [
    "LEVEL_LABELS",
    "UNKNOWN_APPROVER_NAME",
    "advance_approval",
    "build_timeline",
    "can_approve",
    "compute_input_fingerprint",
    "derive_step_status",
    "friendly_label",
    "initialize_approval",
    "resolve_approver",
    "resolve_chain",
    "traced_engine",
    "type_code",
]
