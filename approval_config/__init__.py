"""
approval_config -- YAML-defined approval chains.

Responsibility:
    Loads approval chain definitions from YAML, validates them and exposes
    them as a ``ChainSet`` (with a deterministic checksum) or as an
    ``ApprovalChainStore`` the engine can route with directly.

Architecture position:
    Configuration -- sits above ``approval_kernel``.  The kernel MUST NEVER
    import from ``approval_config``; chains reach the database through
    ``ChainConfigurationService.apply_chains(StaticChainStore(...).all_chains())``.

Failure modes:
    - ``FileNotFoundError`` / ``yaml.YAMLError`` for unreadable files.
    - ``InvalidChainDefinitionError`` listing every validation error.

Audit relevance:
    Every successful ``load_chain_set()`` emits an ``APPROVAL_CONFIG_TRACE``
    log entry with the set name, version and checksum, tying routing
    decisions to the exact chain file that governed them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from approval_config.loader import load_yaml_file, parse_chain_set
from approval_config.schema import ChainDef, ChainSet, LevelDef
from approval_config.store import StaticChainStore
from approval_config.validator import ChainValidationResult, validate_chain_set
from approval_kernel.exceptions import InvalidChainDefinitionError

_logger = logging.getLogger("approval_kernel.config")

DEFAULT_CHAIN_FILE = Path(__file__).parent / "sets" / "default_chains.yaml"


def load_chain_set(path: Path | str | None = None) -> ChainSet:
    """Load and validate a chain file (the bundled defaults when ``path`` is None).

    Raises:
        InvalidChainDefinitionError: If validation reports any error.
    """
    source = Path(path) if path is not None else DEFAULT_CHAIN_FILE
    chain_set = parse_chain_set(load_yaml_file(source))

    result = validate_chain_set(chain_set)
    for warning in result.warnings:
        _logger.warning("approval_chain_warning", extra={"detail": warning})
    if not result.is_valid:
        raise InvalidChainDefinitionError(result.errors)

    _logger.info(
        "APPROVAL_CONFIG_TRACE",
        extra={
            "source": str(source),
            "set_name": chain_set.name,
            "version": chain_set.version,
            "checksum": chain_set.checksum,
            "chains": len(chain_set.chains),
        },
    )
    return chain_set


def load_chain_store(path: Path | str | None = None) -> StaticChainStore:
    """Convenience: ``StaticChainStore(load_chain_set(path))``."""
    return StaticChainStore(load_chain_set(path))


__all__ = [
    "DEFAULT_CHAIN_FILE",
    "ChainDef",
    "ChainSet",
    "ChainValidationResult",
    "LevelDef",
    "StaticChainStore",
    "load_chain_set",
    "load_chain_store",
    "validate_chain_set",
]
