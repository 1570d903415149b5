"""
Chain configuration schema (``approval_config.schema``).

Frozen dataclasses for approval chains as they appear in YAML.  Rule codes
stay raw strings here so that the validator can report every bad code at
once; they are parsed into ``ApproverRule`` members only by ``to_rules``,
which is called on validated chains.
"""

from __future__ import annotations

from dataclasses import dataclass

from approval_kernel.domain.approval import ApprovalLevelRule, ApproverRule


@dataclass(frozen=True)
class LevelDef:
    """One level of a chain definition."""

    level_number: int
    rule: str
    is_final_level: bool = False
    fixed_approver_id: int | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class ChainDef:
    """All levels of one (request type, scope) chain."""

    request_type: str
    levels: tuple[LevelDef, ...]
    department_id: int | None = None
    project_id: int | None = None
    description: str | None = None

    @property
    def scope_key(self) -> tuple[str, int | None, int | None]:
        return (self.request_type, self.department_id, self.project_id)

    @property
    def is_global(self) -> bool:
        return self.department_id is None and self.project_id is None

    def to_rules(self) -> tuple[ApprovalLevelRule, ...]:
        """Domain records for the engine, ordered by level number."""
        return tuple(
            ApprovalLevelRule(
                request_type=self.request_type,
                level_number=level.level_number,
                approver_rule=ApproverRule.from_code(level.rule),
                is_final_level=level.is_final_level,
                department_id=self.department_id,
                project_id=self.project_id,
                fixed_approver_id=level.fixed_approver_id,
                remarks=level.remarks,
            )
            for level in sorted(self.levels, key=lambda lv: lv.level_number)
        )


@dataclass(frozen=True)
class ChainSet:
    """A named, versioned collection of chain definitions."""

    name: str
    version: int
    chains: tuple[ChainDef, ...]
    checksum: str = ""

    def chains_for(self, request_type: str) -> tuple[ChainDef, ...]:
        return tuple(c for c in self.chains if c.request_type == request_type)
