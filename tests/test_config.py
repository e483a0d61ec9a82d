"""Tests for cpamm/config.py: defaults, environment and YAML sources."""

import pytest

from cpamm.config import (
    DEFAULT_CONFIG,
    MAX_DECIMALS,
    MAX_FEE_BPS,
    MINIMUM_LIQUIDITY,
    AmmConfig,
    config_from_mapping,
    load_config,
)
from cpamm.core.errors import AmmError, ErrorKind
from cpamm.integration import PoolService
from cpamm.state import InMemoryLedger

_ENV_NAMES = ("CPAMM_MAX_FEE_BPS", "CPAMM_MAX_DECIMALS", "CPAMM_CHECK_INVARIANTS")


class TestDefaults:
    def test_protocol_constants(self):
        assert DEFAULT_CONFIG.max_fee_bps == MAX_FEE_BPS == 500
        assert DEFAULT_CONFIG.max_decimals == MAX_DECIMALS == 9
        assert DEFAULT_CONFIG.check_invariants is True
        assert MINIMUM_LIQUIDITY == 1_000

    def test_tightening_allowed(self):
        cfg = AmmConfig(max_fee_bps=100, max_decimals=6)
        assert (cfg.max_fee_bps, cfg.max_decimals) == (100, 6)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_fee_bps": -1},
            {"max_fee_bps": MAX_FEE_BPS + 1},
            {"max_fee_bps": 10_000},
            {"max_decimals": MAX_DECIMALS + 1},
            {"max_decimals": True},
            {"check_invariants": "yes"},
        ],
    )
    def test_loosening_and_bad_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            AmmConfig(**kwargs)

    def test_minimum_liquidity_not_configurable(self):
        with pytest.raises(TypeError):
            AmmConfig(minimum_liquidity=0)


class TestFromEnv:
    def test_unset_uses_defaults(self, monkeypatch):
        for name in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)
        assert AmmConfig.from_env() == AmmConfig()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("CPAMM_MAX_FEE_BPS", "100")
        monkeypatch.setenv("CPAMM_MAX_DECIMALS", "6")
        monkeypatch.setenv("CPAMM_CHECK_INVARIANTS", "0")
        cfg = AmmConfig.from_env()
        assert cfg.max_fee_bps == 100
        assert cfg.max_decimals == 6
        assert cfg.check_invariants is False

    def test_clamped_to_protocol_bounds(self, monkeypatch):
        monkeypatch.setenv("CPAMM_MAX_FEE_BPS", "10000")
        monkeypatch.setenv("CPAMM_MAX_DECIMALS", "18")
        cfg = AmmConfig.from_env()
        assert cfg.max_fee_bps == MAX_FEE_BPS
        assert cfg.max_decimals == MAX_DECIMALS

    def test_garbage_falls_back(self, monkeypatch):
        monkeypatch.setenv("CPAMM_MAX_DECIMALS", "not-a-number")
        assert AmmConfig.from_env().max_decimals == MAX_DECIMALS

    def test_env_cannot_admit_oversized_fee(self, monkeypatch):
        monkeypatch.setenv("CPAMM_MAX_FEE_BPS", "10000")
        ledger = InMemoryLedger()
        ledger.register_asset("X", 6)
        ledger.register_asset("Y", 6)
        svc = PoolService(ledger, AmmConfig.from_env())
        with pytest.raises(AmmError) as exc:
            svc.initialize("alice", seed=1, fee_bps=10_000, asset_x="X", asset_y="Y")
        assert exc.value.kind is ErrorKind.INVALID_FEE


class TestYaml:
    def test_load(self, tmp_path):
        path = tmp_path / "cpamm.yaml"
        path.write_text("max_fee_bps: 100\nmax_decimals: 6\n", encoding="utf-8")
        cfg = load_config(path)
        assert cfg.max_fee_bps == 100
        assert cfg.max_decimals == 6
        assert cfg.check_invariants is True

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == AmmConfig()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(TypeError):
            load_config(path)

    def test_loosened_fee_rejected(self, tmp_path):
        path = tmp_path / "loose.yaml"
        path.write_text("max_fee_bps: 10000\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    @pytest.mark.parametrize("key", ["max_fee", "minimum_liquidity"])
    def test_unknown_key(self, key):
        with pytest.raises(ValueError):
            config_from_mapping({key: 1})
