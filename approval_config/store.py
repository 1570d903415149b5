"""
In-memory approval chain store backed by a validated ``ChainSet``.

Used where chains come from YAML instead of the database: tests, local
tooling, and deployments that pin chains in version control.
"""

from __future__ import annotations

from enum import Enum

from approval_config.schema import ChainSet
from approval_kernel.domain.approval import ApprovalLevelRule


class StaticChainStore:
    """``ApprovalChainStore`` over a fixed chain set."""

    def __init__(self, chain_set: ChainSet):
        self.chain_set = chain_set
        self._chains: dict[tuple[str, int | None, int | None], tuple[ApprovalLevelRule, ...]] = {
            chain.scope_key: chain.to_rules() for chain in chain_set.chains
        }

    def _lookup(
        self,
        request_type: str | Enum,
        department_id: int | None,
        project_id: int | None,
    ) -> list[ApprovalLevelRule]:
        code = request_type.value if isinstance(request_type, Enum) else request_type
        return list(self._chains.get((code, department_id, project_id), ()))

    def find_global_chain(self, request_type: str | Enum) -> list[ApprovalLevelRule]:
        return self._lookup(request_type, None, None)

    def find_department_chain(
        self, request_type: str | Enum, department_id: int,
    ) -> list[ApprovalLevelRule]:
        return self._lookup(request_type, department_id, None)

    def find_project_chain(
        self, request_type: str | Enum, project_id: int,
    ) -> list[ApprovalLevelRule]:
        return self._lookup(request_type, None, project_id)

    def all_chains(self) -> list[tuple[ApprovalLevelRule, ...]]:
        """Every chain, for seeding the database through ChainConfigurationService."""
        return list(self._chains.values())
