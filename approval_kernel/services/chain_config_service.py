"""
ChainConfigurationService -- maintenance of approval chain configuration.

Responsibility:
    Writes the ``requests_approval_set`` table: applies a full chain
    definition for one (request type, scope) and deactivates chains.

Architecture position:
    Kernel > Services.  Flushes, never commits.

Invariants enforced:
    - ``apply_chain`` is an upsert keyed by (request_type, department,
      project, level): re-applying the same definition changes nothing, and
      levels of the same scope that are absent from the definition are
      deactivated rather than deleted.
    - All levels of one definition share request type and scope.

Failure modes:
    - ``InvalidChainDefinitionError`` for an empty definition, mixed
      request types or scopes, or duplicate level numbers.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Sequence

from sqlalchemy import select

from approval_kernel.domain.approval import ApprovalLevelRule, ApproverRule, type_code
from approval_kernel.exceptions import InvalidChainDefinitionError
from approval_kernel.logging_config import get_logger
from approval_kernel.models.approval_chain import (
    FLAG_NO,
    FLAG_YES,
    ApprovalLevelConfig,
    to_flag,
)
from approval_kernel.services.base import BaseService

logger = get_logger("services.chain_config")


class ChainConfigurationService(BaseService[ApprovalLevelConfig]):
    """Upserts and deactivates approval chains."""

    def apply_chain(
        self,
        levels: Sequence[ApprovalLevelRule],
        actor_id: int | None = None,
    ) -> int:
        """
        Make the stored chain for the definition's scope match ``levels``.

        Returns:
            Number of levels written (inserted or updated).
        """
        request_type, department_id, project_id = self._check_definition(levels)

        existing = {
            row.level_no: row
            for row in self._scope_rows(request_type, department_id, project_id)
        }

        for level in levels:
            rule = level.approver_rule
            function_call = rule.value if isinstance(rule, ApproverRule) else rule
            row = existing.pop(level.level_number, None)
            if row is None:
                row = ApprovalLevelConfig(
                    request_type=request_type,
                    level_no=level.level_number,
                    department_code=department_id,
                    project_code=project_id,
                    created_by_id=actor_id,
                )
                self.session.add(row)
            else:
                row.updated_by_id = actor_id
            row.function_call = function_call
            row.close_level = to_flag(level.is_final_level)
            row.fixed_approver_no = level.fixed_approver_id
            row.remarks = level.remarks
            row.is_active = FLAG_YES

        for stale in existing.values():
            stale.is_active = FLAG_NO
            stale.updated_by_id = actor_id

        self.session.flush()
        logger.info(
            "approval_chain_applied",
            extra={
                "request_type": request_type,
                "department_id": department_id,
                "project_id": project_id,
                "levels": len(levels),
                "deactivated": len(existing),
                "actor": actor_id,
            },
        )
        return len(levels)

    def apply_chains(
        self,
        chains: Iterable[Sequence[ApprovalLevelRule]],
        actor_id: int | None = None,
    ) -> int:
        """Apply several chain definitions; returns the number of chains applied."""
        count = 0
        for levels in chains:
            self.apply_chain(levels, actor_id=actor_id)
            count += 1
        return count

    def deactivate_chain(
        self,
        request_type: str | Enum,
        department_id: int | None = None,
        project_id: int | None = None,
        actor_id: int | None = None,
    ) -> int:
        """Deactivate every active level of one chain scope; returns rows changed."""
        code = type_code(request_type)
        changed = 0
        for row in self._scope_rows(code, department_id, project_id):
            if row.is_active == FLAG_YES:
                row.is_active = FLAG_NO
                row.updated_by_id = actor_id
                changed += 1
        self.session.flush()

        logger.info(
            "approval_chain_deactivated",
            extra={
                "request_type": code,
                "department_id": department_id,
                "project_id": project_id,
                "levels": changed,
                "actor": actor_id,
            },
        )
        return changed

    def _scope_rows(
        self,
        request_type: str,
        department_id: int | None,
        project_id: int | None,
    ) -> list[ApprovalLevelConfig]:
        stmt = select(ApprovalLevelConfig).where(
            ApprovalLevelConfig.request_type == request_type,
        )
        if department_id is None:
            stmt = stmt.where(ApprovalLevelConfig.department_code.is_(None))
        else:
            stmt = stmt.where(ApprovalLevelConfig.department_code == department_id)
        if project_id is None:
            stmt = stmt.where(ApprovalLevelConfig.project_code.is_(None))
        else:
            stmt = stmt.where(ApprovalLevelConfig.project_code == project_id)
        return list(self.session.execute(stmt).scalars())

    @staticmethod
    def _check_definition(
        levels: Sequence[ApprovalLevelRule],
    ) -> tuple[str, int | None, int | None]:
        if not levels:
            raise InvalidChainDefinitionError(["chain has no levels"])

        first = levels[0]
        errors: list[str] = []
        scopes = {
            (type_code(level.request_type), level.department_id, level.project_id)
            for level in levels
        }
        if len(scopes) > 1:
            errors.append(
                f"levels of one chain must share request type and scope, "
                f"got {sorted(scopes, key=str)}"
            )
        numbers = [level.level_number for level in levels]
        if len(set(numbers)) != len(numbers):
            errors.append(f"duplicate level numbers in {first.request_type}: {numbers}")
        if errors:
            raise InvalidChainDefinitionError(errors)

        return type_code(first.request_type), first.department_id, first.project_id
