"""
Module: approval_kernel.models.system_config
Responsibility: ORM persistence for key/value system configuration, including
    the employee numbers of the fixed approval roles (HR manager, finance
    manager, general manager).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - config_key is unique.
    - Values are stored as text; RoleConfigurationService parses role
      holders and falls back to defaults on malformed values.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import TrackedBase


class SystemConfig(TrackedBase):
    """One configuration entry."""

    __tablename__ = "system_config"

    __table_args__ = (
        UniqueConstraint("config_key", name="uq_system_config_key"),
        Index("idx_system_config_category", "config_category"),
    )

    config_key: Mapped[str] = mapped_column(String(100), nullable=False)
    config_value: Mapped[str | None] = mapped_column(String(500), nullable=True)
    config_category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<SystemConfig {self.config_key}={self.config_value!r}>"
