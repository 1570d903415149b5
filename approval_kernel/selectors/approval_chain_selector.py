"""
ApprovalChainSelector -- read access to approval chain configuration.

Responsibility:
    Implements the ``ApprovalChainStore`` protocol over the
    ``requests_approval_set`` table, plus the administrative queries used by
    configuration screens and seed checks.

Invariants enforced:
    - Only active rows (``is_active = 'Y'``) are returned.
    - Chains are ordered by level number ascending.
    - Scopes never mix: a department chain contains only rows for that
      department, a project chain only rows for that project, and the
      global chain only rows with neither.

Failure modes:
    - ``UnknownRoutingRuleError`` if a stored ``function_call`` is not a
      known rule; bad configuration surfaces on first read, not as a silent
      default.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import func, select

from approval_kernel.domain.approval import ApprovalLevelRule, type_code
from approval_kernel.models.approval_chain import FLAG_YES, ApprovalLevelConfig
from approval_kernel.selectors.base import BaseSelector


class ApprovalChainSelector(BaseSelector[ApprovalLevelConfig]):
    """Queries over active approval chain levels."""

    def _active(self, request_type: str | Enum):
        return (
            select(ApprovalLevelConfig)
            .where(ApprovalLevelConfig.request_type == type_code(request_type))
            .where(ApprovalLevelConfig.is_active == FLAG_YES)
            .order_by(ApprovalLevelConfig.level_no)
        )

    def _rules(self, stmt) -> list[ApprovalLevelRule]:
        return [row.to_rule() for row in self.session.execute(stmt).scalars()]

    def find_global_chain(self, request_type: str | Enum) -> list[ApprovalLevelRule]:
        stmt = (
            self._active(request_type)
            .where(ApprovalLevelConfig.department_code.is_(None))
            .where(ApprovalLevelConfig.project_code.is_(None))
        )
        return self._rules(stmt)

    def find_department_chain(
        self, request_type: str | Enum, department_id: int,
    ) -> list[ApprovalLevelRule]:
        stmt = (
            self._active(request_type)
            .where(ApprovalLevelConfig.department_code == department_id)
            .where(ApprovalLevelConfig.project_code.is_(None))
        )
        return self._rules(stmt)

    def find_project_chain(
        self, request_type: str | Enum, project_id: int,
    ) -> list[ApprovalLevelRule]:
        stmt = (
            self._active(request_type)
            .where(ApprovalLevelConfig.project_code == project_id)
            .where(ApprovalLevelConfig.department_code.is_(None))
        )
        return self._rules(stmt)

    def list_active_configurations(self) -> list[ApprovalLevelRule]:
        """Every active level of every chain, grouped by request type."""
        stmt = (
            select(ApprovalLevelConfig)
            .where(ApprovalLevelConfig.is_active == FLAG_YES)
            .order_by(
                ApprovalLevelConfig.request_type,
                ApprovalLevelConfig.department_code,
                ApprovalLevelConfig.project_code,
                ApprovalLevelConfig.level_no,
            )
        )
        return self._rules(stmt)

    def exists_for_request_type(self, request_type: str | Enum) -> bool:
        """True if any active level, in any scope, exists for the request type."""
        stmt = (
            select(func.count())
            .select_from(ApprovalLevelConfig)
            .where(ApprovalLevelConfig.request_type == type_code(request_type))
            .where(ApprovalLevelConfig.is_active == FLAG_YES)
        )
        return self.session.execute(stmt).scalar_one() > 0

    def find_final_level(self, request_type: str | Enum) -> int | None:
        """Lowest level flagged final in the global chain, or None if unflagged."""
        stmt = (
            select(func.min(ApprovalLevelConfig.level_no))
            .where(ApprovalLevelConfig.request_type == type_code(request_type))
            .where(ApprovalLevelConfig.is_active == FLAG_YES)
            .where(ApprovalLevelConfig.close_level == FLAG_YES)
            .where(ApprovalLevelConfig.department_code.is_(None))
            .where(ApprovalLevelConfig.project_code.is_(None))
        )
        return self.session.execute(stmt).scalar_one_or_none()
