"""
cpamm: constant-product AMM pool core.

Public API:
- ``step(pool, ledger, signer, params) -> StepResult``
- ``step_or_raise(...)`` (raises ``AmmError`` on rejection)
- ``PoolService`` (in-process executor over an ``InMemoryLedger``)
"""

from .config import AmmConfig, load_config
from .core import (
    AmmError,
    Direction,
    ErrorKind,
    StepResult,
    step,
    step_or_raise,
)
from .integration import PoolService
from .state import InMemoryLedger, PoolConfig

__all__ = [
    "AmmConfig",
    "load_config",
    "AmmError",
    "Direction",
    "ErrorKind",
    "StepResult",
    "step",
    "step_or_raise",
    "PoolService",
    "InMemoryLedger",
    "PoolConfig",
]
