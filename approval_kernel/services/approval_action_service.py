"""
ApprovalActionService -- approve, reject and auto-approve pending requests.

Responsibility:
    The action path shared by every request-owning domain service: check the
    request is still pending, check the actor is the captured approver, then
    advance (approve) or terminate (reject).  Also auto-approves requests
    that have waited past the approval timeout.

Architecture position:
    Kernel > Services.  Works on ``PendingApproval`` snapshots supplied by
    the caller; persisting the returned progress and serializing actions on
    the same request remain the caller's job.

Invariants enforced:
    - Only requests in ``NEEDS_APPROVAL`` can be acted on.
    - Authorization compares against the approver captured on the request,
      never a freshly resolved one.
    - Rejection is terminal and clears the pending level and approver.
    - Auto-approval acts on behalf of the captured approver, so it obeys the
      same guard as a human approval.  One failing request never stops the
      rest of the batch.

Failure modes:
    - ``RequestNotPendingError`` for a request that is already approved or
      rejected.
    - ``UnauthorizedApproverError`` for an actor other than the captured
      approver (without privileged bypass).
    - Engine errors (``ConfigurationError``, ``MissingEmployeeError``, ...)
      propagate from ``approve``; ``auto_approve_stale`` records them per
      request instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from approval_kernel.domain.approval import type_code
from approval_kernel.domain.approval import (
    ApprovalContext,
    ApprovalProgress,
    ApprovalStatus,
)
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.exceptions import (
    RequestNotPendingError,
    UnauthorizedApproverError,
)
from approval_kernel.logging_config import LogContext, get_logger
from approval_kernel.services.approval_workflow_service import ApprovalWorkflowService

logger = get_logger("services.approval_action")

DEFAULT_TIMEOUT_HOURS = 48


@dataclass(frozen=True)
class PendingApproval:
    """Approval-relevant snapshot of a caller-owned request record."""

    request_id: str
    context: ApprovalContext
    status: ApprovalStatus
    next_approver_id: int | None = None
    next_level_number: int | None = None
    submitted_at: datetime | None = None


@dataclass(frozen=True)
class AutoApprovalOutcome:
    request_id: str
    succeeded: bool
    progress: ApprovalProgress | None = None
    error_code: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class AutoApprovalReport:
    """Result of one auto-approval sweep."""

    approved: int
    failed: int
    outcomes: tuple[AutoApprovalOutcome, ...]

    @property
    def processed(self) -> int:
        return self.approved + self.failed


class ApprovalActionService:
    """Approve/reject actions on top of the workflow facade."""

    def __init__(
        self,
        workflow: ApprovalWorkflowService,
        clock: Clock | None = None,
    ):
        self.workflow = workflow
        self._clock = clock or SystemClock()

    def approve(
        self,
        pending: PendingApproval,
        acting_employee_id: int,
        privileged_bypass: bool = False,
    ) -> ApprovalProgress:
        """
        Record an approval by ``acting_employee_id`` and return the new state.

        Raises:
            RequestNotPendingError: If the request is not awaiting approval.
            UnauthorizedApproverError: If the actor is not the captured approver.
        """
        with self._bind(pending, acting_employee_id):
            self._authorize(pending, acting_employee_id, privileged_bypass)
            progress = self.workflow.advance(
                pending.context,
                pending.next_level_number,
                privileged_bypass,
            )
            logger.info(
                "approval_action_approved",
                extra={
                    "from_level": pending.next_level_number,
                    "status": progress.status.value,
                    "level_number": progress.next_level_number,
                    "bypass": privileged_bypass,
                },
            )
            return progress

    def reject(
        self,
        pending: PendingApproval,
        acting_employee_id: int,
        privileged_bypass: bool = False,
    ) -> ApprovalProgress:
        """
        Record a rejection.  The returned progress is REJECTED with no level
        and no approver.

        Raises:
            RequestNotPendingError: If the request is not awaiting approval.
            UnauthorizedApproverError: If the actor is not the captured approver.
        """
        with self._bind(pending, acting_employee_id):
            self._authorize(pending, acting_employee_id, privileged_bypass)
            logger.info(
                "approval_action_rejected",
                extra={
                    "level_number": pending.next_level_number,
                    "bypass": privileged_bypass,
                },
            )
            return ApprovalProgress.rejected()

    def auto_approve_stale(
        self,
        pendings: Iterable[PendingApproval],
        as_of: datetime | None = None,
        timeout_hours: int = DEFAULT_TIMEOUT_HOURS,
    ) -> AutoApprovalReport:
        """
        Approve every pending request submitted at least ``timeout_hours`` ago.

        Each stale request is approved on behalf of its captured approver and
        moves one level forward.  Failures are logged and reported.
        """
        as_of = as_of or self._clock.now()
        cutoff = as_of - timedelta(hours=timeout_hours)

        outcomes: list[AutoApprovalOutcome] = []
        for pending in pendings:
            try:
                if not self._is_stale(pending, cutoff):
                    continue
                progress = self.approve(pending, pending.next_approver_id)
            except Exception as exc:
                logger.exception(
                    "auto_approval_failed",
                    extra={"request_id": pending.request_id},
                )
                outcomes.append(
                    AutoApprovalOutcome(
                        request_id=pending.request_id,
                        succeeded=False,
                        error_code=getattr(exc, "code", type(exc).__name__),
                        error_message=str(exc),
                    )
                )
                continue
            outcomes.append(
                AutoApprovalOutcome(
                    request_id=pending.request_id,
                    succeeded=True,
                    progress=progress,
                )
            )

        approved = sum(1 for outcome in outcomes if outcome.succeeded)
        report = AutoApprovalReport(
            approved=approved,
            failed=len(outcomes) - approved,
            outcomes=tuple(outcomes),
        )
        logger.info(
            "auto_approval_completed",
            extra={
                "approved": report.approved,
                "failed": report.failed,
                "timeout_hours": timeout_hours,
                "cutoff": cutoff,
            },
        )
        return report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _authorize(
        self,
        pending: PendingApproval,
        acting_employee_id: int,
        privileged_bypass: bool,
    ) -> None:
        status = ApprovalStatus(pending.status)
        if status is not ApprovalStatus.NEEDS_APPROVAL:
            raise RequestNotPendingError(pending.request_id, status.value)

        if not self.workflow.can_approve(
            privileged_bypass,
            acting_employee_id,
            pending.next_approver_id,
            level_number=pending.next_level_number,
        ):
            raise UnauthorizedApproverError(
                pending.request_id,
                acting_employee_id,
                pending.next_approver_id,
                pending.next_level_number,
            )

    @staticmethod
    def _is_stale(pending: PendingApproval, cutoff: datetime) -> bool:
        return (
            ApprovalStatus(pending.status) is ApprovalStatus.NEEDS_APPROVAL
            and pending.submitted_at is not None
            and pending.submitted_at <= cutoff
        )

    @staticmethod
    def _bind(pending: PendingApproval, acting_employee_id: int | None):
        return LogContext.bind(
            request_id=pending.request_id,
            request_type=type_code(pending.context.request_type),
            actor_id=acting_employee_id,
        )
