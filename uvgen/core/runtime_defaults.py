"""
Runtime defaults for CLI/batch processing.

Every tunable reads an environment variable once at import. Values that do
not parse or fall outside their range are ignored in favour of the default.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T", int, float)

ENV_SPACING = "UVGEN_SPACING"
ENV_PACK_MAX_ATTEMPTS = "UVGEN_PACK_MAX_ATTEMPTS"
ENV_LAYOUT_RESOLUTION = "UVGEN_LAYOUT_RESOLUTION"
ENV_STRICT_PACKING = "UVGEN_STRICT_PACKING"
ENV_BATCH_WORKERS = "UVGEN_BATCH_WORKERS"

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class RuntimeDefaults:
    spacing: float
    pack_max_attempts: int
    layout_resolution: int
    strict_packing: bool
    batch_workers: int


def _read_number_env(
    env_name: str,
    default: T,
    parse: Callable[[str], T],
    *,
    min_value: Optional[T] = None,
    max_value: Optional[T] = None,
) -> T:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = parse(raw.strip())
    except ValueError:
        return default

    if isinstance(value, float) and not math.isfinite(value):
        return default
    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def _read_bool_env(env_name: str, default: bool) -> bool:
    word = os.environ.get(env_name, "").strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return default


def load_runtime_defaults() -> RuntimeDefaults:
    return RuntimeDefaults(
        spacing=_read_number_env(ENV_SPACING, 0.005, float, min_value=0.0, max_value=0.25),
        pack_max_attempts=_read_number_env(ENV_PACK_MAX_ATTEMPTS, 100, int, min_value=1, max_value=10000),
        layout_resolution=_read_number_env(ENV_LAYOUT_RESOLUTION, 1024, int, min_value=64, max_value=16384),
        strict_packing=_read_bool_env(ENV_STRICT_PACKING, False),
        batch_workers=_read_number_env(ENV_BATCH_WORKERS, 4, int, min_value=1, max_value=64),
    )


DEFAULTS = load_runtime_defaults()
