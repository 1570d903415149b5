"""
approval_engines.tracer -- APPROVAL_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine function and emits one DEBUG
    record per call carrying the engine name and version, a fingerprint of
    the routing inputs, the elapsed time and whether the call returned or
    raised.  Two calls with equal inputs have equal fingerprints, so a trace
    line can be matched against a replayed routing decision.

Architecture position:
    Engines -- support code.  Logs under ``approval_kernel.engines`` so the
    kernel's structured handler formats the record.

Invariants enforced:
    - Fingerprints depend on values only: enum members hash like their
      stored codes, dataclasses like their fields, mappings irrespective of
      key order.
    - Inputs are never modified and exceptions always propagate.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import json
import logging
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, TypeVar

_logger = logging.getLogger("approval_kernel.engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])

FINGERPRINT_LENGTH = 16


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return _plain(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Hex SHA-256 prefix over the named arguments; absent names count as None."""
    selected = {name: _plain(arguments.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    """
    Decorate an engine entry point.

    ``fingerprint_fields`` name parameters of the decorated function; they
    are matched whether passed positionally or by keyword.
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                arguments = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, arguments)

            outcome = "error"
            started = time.monotonic()
            try:
                result = func(*args, **kwargs)
                outcome = "ok"
                return result
            finally:
                _logger.debug(
                    "APPROVAL_ENGINE_TRACE",
                    extra={
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fingerprint,
                        "duration_ms": round((time.monotonic() - started) * 1000, 2),
                        "outcome": outcome,
                        "function": func.__qualname__,
                    },
                )

        return wrapper  # type: ignore[return-value]

    return decorator
