import json
import os

import pytest
import yaml

from tokendist import config as cfgmod
from tokendist.config import (TierBand, TokenDistConfig, from_dict, from_env,
                              from_file, load, parse_tiers, pretty)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("TOKENDIST_"):
            monkeypatch.delenv(key, raising=False)


def test_defaults_match_deployment():
    cfg = TokenDistConfig()
    cfg.validate()
    assert [(t.days, t.rate_bps) for t in cfg.flexible.tiers] == [
        (30, 300), (60, 450), (92, 600), (183, 900), (365, 1200)
    ]
    assert not cfg.flexible.restake_enabled
    assert not cfg.flexible.add_funds_enabled
    assert cfg.flexible.unstake_cooldown_days == 7
    assert (cfg.fixed_term.min_amount, cfg.fixed_term.max_amount) == (25_000, 2_500_000)
    assert cfg.vesting.start_paused
    assert cfg.to_base_units(cfg.total_supply) == 7_200_000_000 * 10**18


def test_parse_tiers():
    assert parse_tiers("30:300, 60:450,") == [TierBand(30, 300), TierBand(60, 450)]
    with pytest.raises(ValueError):
        parse_tiers("30-300")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TOKENDIST_TIERS", "10:100,20:200")
    monkeypatch.setenv("TOKENDIST_RESTAKE_ENABLED", "yes")
    monkeypatch.setenv("TOKENDIST_UNSTAKE_COOLDOWN_DAYS", "14")
    monkeypatch.setenv("TOKENDIST_FIXED_MAX_AMOUNT", "3_000_000")
    monkeypatch.setenv("TOKENDIST_MERKLE_ROOT", "0x" + "ab" * 32)
    cfg = from_env()
    assert [(t.days, t.rate_bps) for t in cfg.flexible.tiers] == [(10, 100), (20, 200)]
    assert cfg.flexible.restake_enabled
    assert cfg.flexible.unstake_cooldown_days == 14
    assert cfg.fixed_term.max_amount == 3_000_000
    assert cfg.vesting.merkle_root == "0x" + "ab" * 32


@pytest.mark.parametrize(
    "key, value",
    [
        ("TOKENDIST_RESTAKE_ENABLED", "maybe"),
        ("TOKENDIST_TOKEN_DECIMALS", "eighteen"),
        ("TOKENDIST_MERKLE_ROOT", "0x1234"),
        ("TOKENDIST_FIXED_MIN_AMOUNT", "9999999"),
    ],
)
def test_invalid_env(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ValueError):
        from_env()


def test_from_dict_partial():
    cfg = from_dict(
        {
            "flexible": {"add_funds_enabled": True},
            "vesting": {"pools": [{"cliff_days": 92, "vesting_days": 365, "tge_bps": 500}]},
        }
    )
    assert cfg.flexible.add_funds_enabled
    assert len(cfg.flexible.tiers) == 5
    assert cfg.vesting.pools[0].tge_bps == 500
    assert len(cfg.fixed_term.pools) == 3


def test_from_dict_rejects_bad_tge():
    with pytest.raises(ValueError):
        from_dict({"vesting": {"pools": [{"cliff_days": 1, "vesting_days": 1, "tge_bps": 20_000}]}})


def test_yaml_and_json_files(tmp_path):
    data = {"total_supply": 1_000, "fixed_term": {"min_amount": 1, "max_amount": 10}}
    y = tmp_path / "cfg.yaml"
    y.write_text(yaml.safe_dump(data), encoding="utf-8")
    j = tmp_path / "cfg.json"
    j.write_text(json.dumps(data), encoding="utf-8")

    for path in (y, j):
        cfg = from_file(path)
        assert cfg.total_supply == 1_000
        assert (cfg.fixed_term.min_amount, cfg.fixed_term.max_amount) == (1, 10)

    with pytest.raises(FileNotFoundError):
        from_file(tmp_path / "missing.yaml")

    bad = tmp_path / "list.yaml"
    bad.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        from_file(bad)


def test_load_layers_env_over_file(tmp_path, monkeypatch):
    path = tmp_path / "cfg.yml"
    path.write_text("flexible:\n  restake_interval_days: 10\n  unstake_cooldown_days: 3\n", encoding="utf-8")
    monkeypatch.setenv("TOKENDIST_CONFIG_FILE", str(path))
    monkeypatch.setenv("TOKENDIST_UNSTAKE_COOLDOWN_DAYS", "5")
    cfg = load()
    assert cfg.flexible.restake_interval_days == 10
    assert cfg.flexible.unstake_cooldown_days == 5


def test_pretty_is_json():
    out = json.loads(pretty(TokenDistConfig()))
    assert out["token_decimals"] == 18
    assert out["flexible"]["tiers"][0] == {"days": 30, "rate_bps": 300}
    assert "load" in cfgmod.__all__
