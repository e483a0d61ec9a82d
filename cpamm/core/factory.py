"""
Pool factory: validates creation parameters and builds a new Pool Record.

Validation order matches the error precedence callers observe:
fee bound, then distinct assets, then per-asset precision.
"""

from __future__ import annotations

from ..config import DEFAULT_CONFIG, AmmConfig
from ..state.ledger import LedgerView, UnknownAssetError
from ..state.pool import HasAuthority, PoolConfig, Principal, new_pool_config
from .errors import AmmError, ErrorKind
from .fixed_point import require_u16, require_u64
from .guards import require_distinct_assets, require_precision, require_valid_fee
from .types import InitializeParams


def validate_initialize(
    params: InitializeParams,
    ledger: LedgerView,
    config: AmmConfig = DEFAULT_CONFIG,
) -> None:
    require_u64("seed", params.seed)
    require_u16("fee_bps", params.fee_bps)
    require_valid_fee(params.fee_bps, config.max_fee_bps)
    require_distinct_assets(params.asset_x, params.asset_y)
    for asset in (params.asset_x, params.asset_y):
        try:
            decimals = ledger.decimals(asset)
        except UnknownAssetError as exc:
            raise AmmError(ErrorKind.INVALID_TOKEN, str(exc)) from exc
        require_precision(decimals, config.max_decimals)


def create_pool(
    params: InitializeParams,
    creator: Principal,
    ledger: LedgerView,
    config: AmmConfig = DEFAULT_CONFIG,
) -> PoolConfig:
    """
    Create a new, unlocked pool whose settings authority is *creator*.

    Reserves and claim supply start at zero; they are Ledger state and are not
    written here.

    Raises:
        AmmError(InvalidFee): fee above the configured maximum
        AmmError(InvalidToken): asset_x == asset_y
        AmmError(InvalidPrecision): an asset has more than ``max_decimals`` decimals
    """
    validate_initialize(params, ledger, config)
    return new_pool_config(
        seed=params.seed,
        asset_x=params.asset_x,
        asset_y=params.asset_y,
        fee_bps=params.fee_bps,
        authority=HasAuthority(creator),
    )
