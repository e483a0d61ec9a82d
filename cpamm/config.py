"""
Protocol constants and runtime configuration.

``AmmConfig()`` carries the protocol defaults. Deployments may tighten them via
environment variables (``AmmConfig.from_env()``) or a YAML file
(``load_config(path)``); neither can loosen the hard protocol bounds.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

# Math constants
FEE_DENOM_BPS: int = 10_000  # 100%
MAX_FEE_BPS: int = 500  # 5%
MINIMUM_LIQUIDITY: int = 1_000  # withheld from the first deposit, never issued
MAX_DECIMALS: int = 9  # asset precision sanity bound


@dataclass(frozen=True)
class AmmConfig:
    """Runtime config for the pool engine."""

    max_fee_bps: int = MAX_FEE_BPS
    max_decimals: int = MAX_DECIMALS
    check_invariants: bool = True

    def __post_init__(self) -> None:
        for name in ("max_fee_bps", "max_decimals"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{name} must be a non-negative int: {value!r}")
        if self.max_fee_bps > MAX_FEE_BPS:
            raise ValueError(f"max_fee_bps must be <= {MAX_FEE_BPS}: {self.max_fee_bps}")
        if self.max_decimals > MAX_DECIMALS:
            raise ValueError(f"max_decimals must be <= {MAX_DECIMALS}: {self.max_decimals}")
        if not isinstance(self.check_invariants, bool):
            raise ValueError("check_invariants must be a bool")

    @classmethod
    def from_env(cls) -> "AmmConfig":
        """Read ``CPAMM_*`` environment variables, falling back to defaults."""
        return cls(
            max_fee_bps=_env_int("CPAMM_MAX_FEE_BPS", MAX_FEE_BPS, lo=0, hi=MAX_FEE_BPS),
            max_decimals=_env_int("CPAMM_MAX_DECIMALS", MAX_DECIMALS, lo=0, hi=MAX_DECIMALS),
            check_invariants=_env_bool("CPAMM_CHECK_INVARIANTS", True),
        )


DEFAULT_CONFIG = AmmConfig()


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def config_from_mapping(obj: Mapping[str, Any]) -> AmmConfig:
    """Build an AmmConfig from a mapping; unknown keys are rejected."""
    known = {f.name for f in fields(AmmConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    return AmmConfig(**dict(obj))


def load_config(path: Union[str, Path]) -> AmmConfig:
    """Load an AmmConfig from a YAML file (an empty file yields the defaults)."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return AmmConfig()
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    return config_from_mapping(obj)
