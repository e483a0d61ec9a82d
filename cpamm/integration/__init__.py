"""
Execution environment for the pool core (registry, locking, effect application)
"""

from .service import PoolExistsError, PoolService, apply_effects

__all__ = [
    "PoolExistsError",
    "PoolService",
    "apply_effects",
]
