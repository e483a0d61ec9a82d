#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cpamm import AmmConfig, AmmError, InMemoryLedger, PoolService, load_config


def _reserves_line(svc: PoolService, pool_id: str) -> str:
    r = svc.reserves(pool_id)
    return f"reserve_x={r.reserve_x} reserve_y={r.reserve_y} lp_supply={r.lp_supply}"


def main() -> int:
    ap = argparse.ArgumentParser(description="Offline constant-product pool demo (in-memory ledger)")
    ap.add_argument("--fee-bps", type=int, default=30)
    ap.add_argument("--deposit-x", type=int, default=1_000_000)
    ap.add_argument("--deposit-y", type=int, default=1_000_000)
    ap.add_argument("--swap-in", type=int, default=10_000)
    ap.add_argument("--y-to-x", action="store_true", help="swap asset_y for asset_x")
    ap.add_argument("--config", type=str, default="", help="optional YAML config file")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(name)s: %(message)s")
    config = load_config(args.config) if args.config else AmmConfig.from_env()

    lp = "lp-provider"
    trader = "trader"
    asset_x = "0x" + "11" * 32
    asset_y = "0x" + "22" * 32

    ledger = InMemoryLedger()
    for asset in (asset_x, asset_y):
        ledger.register_asset(asset, 6)
        ledger.mint(asset, lp, 10 * max(args.deposit_x, args.deposit_y))
        ledger.mint(asset, trader, 10 * args.swap_in)

    svc = PoolService(ledger, config)
    try:
        pool = svc.initialize(lp, seed=1, fee_bps=args.fee_bps, asset_x=asset_x, asset_y=asset_y)
        pool_id = pool.pool_id
        print(f"[offline-demo] pool_id={pool_id}")

        dq = svc.deposit(pool_id, lp, args.deposit_x, args.deposit_y, 1)
        print(f"[offline-demo] deposit: claims={dq.claims}")
        print(f"[offline-demo] pool after deposit: {_reserves_line(svc, pool_id)}")

        is_x_to_y = not args.y_to_x
        asset_in, asset_out = (asset_x, asset_y) if is_x_to_y else (asset_y, asset_x)
        before_in = ledger.balance_of(trader, asset_in)
        before_out = ledger.balance_of(trader, asset_out)
        sq = svc.swap(pool_id, trader, is_x_to_y, args.swap_in, 1)
        print(f"[offline-demo] swap: amount_in={sq.amount_in} amount_out={sq.amount_out} fee={sq.fee_amount}")
        print(f"[offline-demo] pool after swap:    {_reserves_line(svc, pool_id)} k_before={sq.k_before} k_after={sq.k_after}")
        after_in = ledger.balance_of(trader, asset_in)
        after_out = ledger.balance_of(trader, asset_out)
        print(f"[offline-demo] deltas: d_in={after_in - before_in} d_out={after_out - before_out}")

        wq = svc.withdraw(pool_id, lp, dq.claims, 1, 1)
        print(f"[offline-demo] withdraw: claims={wq.claims} amount_x={wq.amount_x} amount_y={wq.amount_y}")
        print(f"[offline-demo] pool after withdraw: {_reserves_line(svc, pool_id)}")
    except AmmError as exc:
        print(f"[offline-demo] FAIL: {exc}")
        return 1

    print("[offline-demo] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
