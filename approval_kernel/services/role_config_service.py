"""
RoleConfigurationService -- fixed role holders and system configuration.

Responsibility:
    Answers "which employee is the HR / finance / general manager" for the
    approval engine, and maintains the ``system_config`` key/value table
    those answers come from.

Architecture position:
    Kernel > Services.  Implements the ``RoleConfigurationStore`` protocol.

Invariants enforced:
    - ``get_role_holder`` never raises for a known role and never returns
      None: a missing, inactive or unparsable value degrades to the
      hardcoded default holder (logged at WARNING).
    - Reads are served from a ``RoleHolderCache``.  ``update_value`` evicts
      the updated key and ``bulk_update`` evicts everything, both after the
      write is flushed, so the next read in the same transaction sees the
      new value.

Failure modes:
    - ``ValueError`` from ``get_role_holder`` for a key that is not a
      ``RoleKey``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from approval_kernel.domain.approval import RoleKey
from approval_kernel.logging_config import get_logger
from approval_kernel.models.system_config import SystemConfig
from approval_kernel.services.base import BaseService
from approval_kernel.utils.cache import RoleHolderCache

logger = get_logger("services.role_config")

ROLE_DEFAULTS: dict[RoleKey, int] = {
    RoleKey.HR_MANAGER: 2,
    RoleKey.FINANCE_MANAGER: 3,
    RoleKey.GENERAL_MANAGER: 1,
}

ROLE_CATEGORY = "APPROVAL_ROLES"
UNCATEGORIZED = "GENERAL"


@dataclass(frozen=True)
class SystemConfigInfo:
    """Immutable view of one configuration entry."""

    config_key: str
    config_value: str | None
    config_category: str | None
    description: str | None
    is_active: bool


class RoleConfigurationService(BaseService[SystemConfig]):
    """Cached access to role holders and raw configuration values."""

    def __init__(
        self,
        session: Session,
        cache: RoleHolderCache[str | None] | None = None,
    ):
        super().__init__(session)
        self.cache: RoleHolderCache[str | None] = (
            cache if cache is not None else RoleHolderCache()
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_value(self, config_key: str) -> str | None:
        """Active value of ``config_key``, or None if absent or inactive."""
        return self.cache.get_or_load(config_key, self._load_value)

    def get_role_holder(self, role_key: RoleKey | str) -> int:
        """Employee number holding ``role_key``, falling back to the default holder."""
        role = RoleKey(role_key)
        raw = self.get_value(role.value)

        if raw is None or not raw.strip():
            return self._fallback(role, "missing", raw)
        try:
            return int(raw.strip())
        except ValueError:
            return self._fallback(role, "unparsable", raw)

    def list_by_category(self) -> dict[str, list[SystemConfigInfo]]:
        """All entries grouped by category, keys sorted within each group."""
        stmt = select(SystemConfig).order_by(
            SystemConfig.config_category, SystemConfig.config_key,
        )
        grouped: dict[str, list[SystemConfigInfo]] = defaultdict(list)
        for row in self.session.execute(stmt).scalars():
            grouped[row.config_category or UNCATEGORIZED].append(self._to_dto(row))
        return dict(grouped)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_value(
        self,
        config_key: str,
        value: str,
        actor_id: int | None = None,
        category: str | None = None,
        description: str | None = None,
    ) -> SystemConfigInfo:
        """Create or update one entry, then evict it from the cache."""
        row = self._upsert(config_key, value, actor_id, category, description)
        self.session.flush()
        self.cache.invalidate(config_key)

        logger.info(
            "system_config_updated",
            extra={"config_key": config_key, "actor": actor_id},
        )
        return self._to_dto(row)

    def bulk_update(
        self,
        values: dict[str, str],
        actor_id: int | None = None,
    ) -> int:
        """Create or update several entries, then clear the whole cache."""
        for config_key, value in values.items():
            self._upsert(config_key, value, actor_id, None, None)
        self.session.flush()
        self.cache.invalidate_all()

        logger.info(
            "system_config_bulk_updated",
            extra={"count": len(values), "actor": actor_id},
        )
        return len(values)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_value(self, config_key: str) -> str | None:
        stmt = (
            select(SystemConfig.config_value)
            .where(SystemConfig.config_key == config_key)
            .where(SystemConfig.is_active.is_(True))
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _upsert(
        self,
        config_key: str,
        value: str,
        actor_id: int | None,
        category: str | None,
        description: str | None,
    ) -> SystemConfig:
        stmt = select(SystemConfig).where(SystemConfig.config_key == config_key)
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            if category is None and config_key in {r.value for r in RoleKey}:
                category = ROLE_CATEGORY
            row = SystemConfig(
                config_key=config_key,
                config_value=value,
                config_category=category,
                description=description,
                is_active=True,
                created_by_id=actor_id,
            )
            self.session.add(row)
            return row

        row.config_value = value
        row.updated_by_id = actor_id
        if category is not None:
            row.config_category = category
        if description is not None:
            row.description = description
        return row

    def _fallback(self, role: RoleKey, reason: str, raw: str | None) -> int:
        default = ROLE_DEFAULTS[role]
        logger.warning(
            "role_holder_fallback",
            extra={
                "role": role.value,
                "reason": reason,
                "raw_value": raw,
                "fallback_employee_id": default,
            },
        )
        return default

    @staticmethod
    def _to_dto(row: SystemConfig) -> SystemConfigInfo:
        return SystemConfigInfo(
            config_key=row.config_key,
            config_value=row.config_value,
            config_category=row.config_category,
            description=row.description,
            is_active=row.is_active,
        )
