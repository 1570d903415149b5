"""
approval_engines.authorization -- Approver authorization guard.

Authorization is always checked against the approver captured on the
request when it was routed, never re-resolved at action time: the person
entitled to act on a pending step is frozen even if the organization
changes in between.
"""

from __future__ import annotations

import logging

_logger = logging.getLogger("approval_kernel.engines.authorization")


def can_approve(
    privileged_bypass: bool,
    acting_employee_id: int,
    expected_approver_id: int | None,
    *,
    level_number: int | None = None,
) -> bool:
    """Return True if ``acting_employee_id`` may act on the pending step.

    Privileged actors may always act.  Everyone else must be exactly the
    expected approver; there is no role-based or partial match.
    """
    if privileged_bypass:
        _logger.info(
            "approver_check_bypassed",
            extra={"actor": acting_employee_id, "level_number": level_number},
        )
        return True

    if expected_approver_id is None or acting_employee_id != expected_approver_id:
        _logger.warning(
            "approver_not_authorized",
            extra={
                "actor": acting_employee_id,
                "expected_approver_id": expected_approver_id,
                "level_number": level_number,
            },
        )
        return False
    return True
