import os

import pytest

from signal_scoring.infrastructure.config.env_loader import load_env
from signal_scoring.infrastructure.config.settlement_config import (
    SettlementConfigError,
    load_settlement_config,
)


def test_bundled_defaults():
    cfg = load_settlement_config()
    assert cfg.exchanges == ["kucoin", "gate", "mexc", "binance"]
    assert cfg.timeframe == "1m"
    assert cfg.page_limit == 1000
    rc = cfg.reward_config()
    assert rc.time_cost == 0.99999999
    assert rc.target_cost == 0.99
    assert rc.entry_mode == "first_bar"


def test_yaml_then_env_override(tmp_path, monkeypatch):
    path = tmp_path / "settlement.yaml"
    path.write_text(
        "market_data:\n  exchanges: [Binance, mexc]\n  timeframe: 5m\n"
        "reward:\n  entry_mode: scan\n  reward_base: 2\n",
        encoding="utf-8",
    )
    cfg = load_settlement_config(str(path))
    assert cfg.exchanges == ["binance", "mexc"]
    assert cfg.timeframe == "5m"
    assert cfg.reward_base == 2.0
    assert cfg.entry_mode == "scan"

    monkeypatch.setenv("SETTLEMENT_EXCHANGES", "gate")
    monkeypatch.setenv("SETTLEMENT_PAGE_LIMIT", "500")
    monkeypatch.setenv("EXCHANGE_RATE_LIMIT", "off")
    cfg = load_settlement_config(str(path))
    assert cfg.exchanges == ["gate"]
    assert cfg.page_limit == 500
    assert cfg.enable_rate_limit is False


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "alt.yaml"
    path.write_text("worker:\n  poll_interval_sec: 5\n", encoding="utf-8")
    monkeypatch.setenv("SETTLEMENT_CONFIG", str(path))
    assert load_settlement_config().poll_interval_sec == 5.0


@pytest.mark.parametrize("env", [
    {"SETTLEMENT_PAGE_LIMIT": "many"},
    {"SETTLEMENT_PAGE_LIMIT": "0"},
    {"SETTLEMENT_ENTRY_MODE": "eventually"},
    {"SETTLEMENT_EXCHANGES": " , "},
])
def test_invalid_env(monkeypatch, env):
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    with pytest.raises(SettlementConfigError):
        load_settlement_config()


def test_missing_explicit_path(tmp_path):
    with pytest.raises(SettlementConfigError):
        load_settlement_config(str(tmp_path / "nope.yaml"))


def test_non_mapping_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(SettlementConfigError):
        load_settlement_config(str(path))


def test_load_env_respects_process_values(tmp_path, monkeypatch):
    env_file = tmp_path / "scoring.env"
    env_file.write_text("SIGNAL_SCORING_TEST_VAR=from_file\n", encoding="utf-8")
    monkeypatch.setenv("SIGNAL_SCORING_TEST_VAR", "from_process")
    monkeypatch.delenv("SETTLEMENT_ENV_OVERRIDE", raising=False)

    assert load_env(str(env_file)) == str(env_file)
    assert os.environ["SIGNAL_SCORING_TEST_VAR"] == "from_process"

    monkeypatch.setenv("SETTLEMENT_ENV_OVERRIDE", "1")
    load_env(str(env_file))
    assert os.environ["SIGNAL_SCORING_TEST_VAR"] == "from_file"
