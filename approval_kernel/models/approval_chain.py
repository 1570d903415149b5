"""
Module: approval_kernel.models.approval_chain
Responsibility: ORM persistence for approval chain configuration (one row per
    level of a chain).
Architecture position: Kernel > Models.  May import from db/base.py and the
    domain layer only.

Invariants enforced:
    - One row per level number within a chain scope (global, department or
      project), enforced by partial unique indexes.
    - close_level and is_active are 'Y'/'N' flags (check constraints).
    - Rows with is_active = 'N' never take part in a chain; selectors filter
      them out.

Failure modes:
    - IntegrityError on a duplicate level within one chain scope.
    - UnknownRoutingRuleError from to_rule() when function_call holds a code
      outside ApproverRule.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import TrackedBase
from approval_kernel.domain.approval import ApprovalLevelRule, ApproverRule

FLAG_YES = "Y"
FLAG_NO = "N"


def to_flag(value: bool) -> str:
    return FLAG_YES if value else FLAG_NO


def _scope_unique_index(name: str, columns: tuple[str, ...], where: str) -> Index:
    return Index(
        name, *columns,
        unique=True,
        sqlite_where=text(where),
        postgresql_where=text(where),
    )


class ApprovalLevelConfig(TrackedBase):
    """
    One level of an approval chain.

    A row is global when department_code and project_code are both NULL,
    otherwise department- or project-scoped.  The approver is never stored,
    only the function_call that resolves it (plus fixed_approver_no for
    SpecificEmployee levels).
    """

    __tablename__ = "requests_approval_set"

    __table_args__ = (
        # One level number per chain scope; NULL codes never collide.
        _scope_unique_index(
            "uq_requests_approval_set_global_level",
            ("request_type", "level_no"),
            "department_code IS NULL AND project_code IS NULL",
        ),
        _scope_unique_index(
            "uq_requests_approval_set_department_level",
            ("request_type", "department_code", "level_no"),
            "department_code IS NOT NULL AND project_code IS NULL",
        ),
        _scope_unique_index(
            "uq_requests_approval_set_project_level",
            ("request_type", "project_code", "level_no"),
            "project_code IS NOT NULL AND department_code IS NULL",
        ),
        CheckConstraint("level_no > 0", name="ck_requests_approval_set_level_positive"),
        CheckConstraint(
            "close_level IN ('Y', 'N')", name="ck_requests_approval_set_close_level",
        ),
        CheckConstraint(
            "is_active IN ('Y', 'N')", name="ck_requests_approval_set_is_active",
        ),
        Index("idx_requests_approval_set_type", "request_type", "is_active"),
    )

    request_type: Mapped[str] = mapped_column(String(30), nullable=False)
    level_no: Mapped[int] = mapped_column(nullable=False)
    function_call: Mapped[str] = mapped_column(String(50), nullable=False)
    close_level: Mapped[str] = mapped_column(
        String(1), nullable=False, default=FLAG_NO,
    )
    department_code: Mapped[int | None] = mapped_column(nullable=True)
    project_code: Mapped[int | None] = mapped_column(nullable=True)
    fixed_approver_no: Mapped[int | None] = mapped_column(nullable=True)
    remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[str] = mapped_column(
        String(1), nullable=False, default=FLAG_YES,
    )

    @property
    def is_final_level(self) -> bool:
        return self.close_level == FLAG_YES

    def __repr__(self) -> str:
        return (
            f"<ApprovalLevelConfig {self.request_type} "
            f"level={self.level_no} {self.function_call}>"
        )

    def to_rule(self) -> ApprovalLevelRule:
        """Convert to the frozen domain record consumed by the engine."""
        return ApprovalLevelRule(
            request_type=self.request_type,
            level_number=self.level_no,
            approver_rule=ApproverRule.from_code(self.function_call),
            is_final_level=self.is_final_level,
            department_id=self.department_code,
            project_id=self.project_code,
            fixed_approver_id=self.fixed_approver_no,
            remarks=self.remarks,
        )
