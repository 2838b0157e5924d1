import json
from unittest.mock import MagicMock

import pytest

from apps.settlement_worker import build_pipeline, run_loop
from signal_scoring.domain.entities.candle import CandleSeries
from signal_scoring.domain.entities.signal_aggregate import SignalAggregate
from signal_scoring.domain.errors import DataUnavailable
from signal_scoring.infrastructure.config.settlement_config import SettlementConfig
from signal_scoring.infrastructure.market.ccxt_market_data import CcxtMarketData
from signal_scoring.infrastructure.storage.publisher_score_repo_jsonl import PublisherScoreRepoJsonl
from signal_scoring.infrastructure.storage.signal_repo_jsonl import SignalRepoJsonl
from tools import calculate_reward as calculate_reward_cli
from tools.export_leaderboard import build_leaderboard

from conftest import HOUR_MS, T0, FakeMarketData, hourly


def _cfg(tmp_path):
    return SettlementConfig(
        exchanges=["kucoin"],
        timeframe="1h",
        signals_path=str(tmp_path / "signals.jsonl"),
        scores_path=str(tmp_path / "scores.jsonl"),
    )


def _closed_window_signal(signal_id="s1", publisher_id="pub"):
    return SignalAggregate.create(signal_id, publisher_id, "BTC/USDT", 100.0, 90.0, [105.0, 110.0],
                                  T0, T0 + 6 * HOUR_MS)


def test_pipeline_tick_settles_and_notifies(tmp_path):
    notifier = MagicMock()
    pipe = build_pipeline(_cfg(tmp_path), notifier=notifier)
    pipe["reward_uc"].market_data = FakeMarketData(hourly([(102, 99), (106, 103)]))
    pipe["signal_repo"].save(_closed_window_signal())

    summary = pipe["bot"].tick(T0 + 7 * HOUR_MS)

    assert summary.settled == ["s1"]
    assert pipe["signal_repo"].get("s1").status == "closed"
    assert pipe["score_repo"].get_score("pub") > 0
    topic, payload = notifier.handle_event.call_args[0]
    assert topic == "signal.settled"
    assert payload["signal_id"] == "s1"


def test_run_loop_once_survives_tick_errors():
    bot = MagicMock()
    bot.tick.side_effect = OSError("disk full")
    run_loop(bot, poll_interval_sec=60, once=True)
    bot.tick.assert_called_once()


def test_leaderboard(tmp_path):
    signal_repo = SignalRepoJsonl(str(tmp_path / "signals.jsonl"))
    score_repo = PublisherScoreRepoJsonl(str(tmp_path / "scores.jsonl"))
    pipe_uc = build_pipeline(_cfg(tmp_path), notifier=MagicMock())
    pipe_uc["reward_uc"].market_data = FakeMarketData(hourly([(102, 99), (111, 103)]))
    for sid, pub in (("a", "alice"), ("b", "alice"), ("c", "bob")):
        pipe_uc["signal_repo"].save(_closed_window_signal(sid, pub))
    pipe_uc["bot"].tick(T0 + 7 * HOUR_MS)
    score_repo.add_score("carol", -0.5)

    df = build_leaderboard(score_repo, signal_repo)

    assert list(df["publisher_id"]) == ["alice", "bob", "carol"]
    alice = df.iloc[0]
    assert alice["signals_settled"] == 2
    assert alice["signals_with_targets"] == 2
    assert df.iloc[2]["signals_settled"] == 0


def test_cli_invalid_parameters(capsys):
    code = calculate_reward_cli.main(["--market", "BTC/USDT", "--entry", "100", "--stop", "90", "--targets", ""])
    assert code == 2
    assert json.loads(capsys.readouterr().out)["error"] == "invalid_parameters"


def _cli_args():
    return ["--market", "BTC/USDT", "--entry", "100", "--stop", "90", "--targets", "105,110",
            "--start", "2025-01-01T00:00:00Z", "--end", "2025-01-01T06:00:00Z", "--exchanges", "gate"]


def test_cli_data_unavailable(monkeypatch, capsys):
    def fail(self, *args, **kwargs):
        raise DataUnavailable("Failed to fetch OHLCV from exchanges [gate] - last error: timeout")

    monkeypatch.setattr(CcxtMarketData, "fetch_candles", fail)
    assert calculate_reward_cli.main(_cli_args()) == 3
    assert json.loads(capsys.readouterr().out)["error"] == "data_unavailable"


def test_cli_prints_reward(monkeypatch, capsys):
    seen = {}

    def fetch(self, exchange_candidates, symbol, timeframe, start_iso, end_iso):
        seen["exchanges"] = list(exchange_candidates)
        return CandleSeries(tuple(hourly([(102, 99), (106, 103), (95, 85)])), T0, T0 + 6 * HOUR_MS, "gate", timeframe)

    monkeypatch.setattr(CcxtMarketData, "fetch_candles", fetch)
    assert calculate_reward_cli.main(_cli_args()) == 0
    out = json.loads(capsys.readouterr().out)
    assert seen["exchanges"] == ["gate"]
    assert out["ok"] is True
    assert out["outcome"] == "targets"
    assert out["exited_by_stop"] is True
    assert out["reward"] == pytest.approx(0.1 * 0.99999999 - (5 / 105) * 0.99 * 0.99999999, rel=1e-9)
