"""
Chain configuration validator (``approval_config.validator``).

Checks a parsed ``ChainSet`` before it is used for routing or written to
the database.  Every problem is collected; nothing stops at the first one.

Errors (the set MUST NOT be used):
    * unknown request type or routing rule code
    * a chain with no levels
    * non-positive or duplicate level numbers within a chain
    * a ``SpecificEmployee`` level without ``fixed_approver_id``
    * a chain scoped to both a department and a project
    * two chains with the same (request type, scope)

Warnings (usable, should be reviewed):
    * a chain with no final level (it closes by exhaustion)
    * a final level that is not the highest level (later levels unreachable)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from approval_config.schema import ChainDef, ChainSet
from approval_kernel.domain.approval import ApproverRule, RequestType

_REQUEST_TYPES = frozenset(t.value for t in RequestType)
_RULES = frozenset(r.value for r in ApproverRule)


@dataclass
class ChainValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


def validate_chain_set(chain_set: ChainSet) -> ChainValidationResult:
    result = ChainValidationResult()

    seen: set[tuple[str, int | None, int | None]] = set()
    for chain in chain_set.chains:
        if chain.scope_key in seen:
            result.errors.append(f"{_describe(chain)}: duplicate chain for this scope")
        seen.add(chain.scope_key)
        _validate_chain(chain, result)

    return result


def _validate_chain(chain: ChainDef, result: ChainValidationResult) -> None:
    name = _describe(chain)

    if chain.request_type not in _REQUEST_TYPES:
        result.errors.append(f"{name}: unknown request type {chain.request_type!r}")
    if chain.department_id is not None and chain.project_id is not None:
        result.errors.append(f"{name}: scoped to both a department and a project")
    if not chain.levels:
        result.errors.append(f"{name}: chain has no levels")
        return

    numbers = [level.level_number for level in chain.levels]
    for number in numbers:
        if number <= 0:
            result.errors.append(f"{name}: level number {number} must be positive")
    duplicates = sorted({n for n in numbers if numbers.count(n) > 1})
    if duplicates:
        result.errors.append(f"{name}: duplicate level numbers {duplicates}")

    for level in chain.levels:
        if level.rule not in _RULES:
            result.errors.append(
                f"{name} level {level.level_number}: unknown routing rule {level.rule!r}"
            )
        elif (
            level.rule == ApproverRule.FIXED_EMPLOYEE.value
            and level.fixed_approver_id is None
        ):
            result.errors.append(
                f"{name} level {level.level_number}: "
                f"{level.rule} requires fixed_approver_id"
            )

    finals = [level.level_number for level in chain.levels if level.is_final_level]
    if not finals:
        result.warnings.append(f"{name}: no final level; chain closes by exhaustion")
    elif min(finals) < max(numbers):
        result.warnings.append(
            f"{name}: final level {min(finals)} makes levels above it unreachable"
        )


def _describe(chain: ChainDef) -> str:
    if chain.department_id is not None:
        return f"{chain.request_type}[department={chain.department_id}]"
    if chain.project_id is not None:
        return f"{chain.request_type}[project={chain.project_id}]"
    return chain.request_type
