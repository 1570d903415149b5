"""Database layer - engine, base classes and session scope."""

from approval_kernel.db.base import Base, TrackedBase, UUIDString
from approval_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_env,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_env",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
