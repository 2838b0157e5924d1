#!/usr/bin/env python3
"""
main.py -- offline demo for signal settlement

Usage:
    TELEGRAM_ENABLED=0 python main.py demo

Publishes three synthetic signals, replays synthetic 1h candles through the
real settlement pipeline (in-memory repos, no network) and prints the scores.
In production use apps/settlement_worker.py (CCXT + JSONL storage).
"""
from __future__ import annotations
import sys
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

# ensure project root on sys.path
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger("signal_scoring")

from signal_scoring.application.ports.market_data_port import MarketDataPort
from signal_scoring.application.ports.publisher_score_repository import PublisherScoreRepositoryPort
from signal_scoring.application.ports.signal_repository import SignalRepositoryPort
from signal_scoring.application.usecases.calculate_reward_usecase import CalculateRewardUsecase
from signal_scoring.application.usecases.settle_signal_usecase import SettleSignalUsecase
from signal_scoring.domain.entities.candle import Candle, CandleSeries
from signal_scoring.domain.entities.signal_aggregate import SignalAggregate
from signal_scoring.domain.errors import DataUnavailable
from signal_scoring.infrastructure.events.event_dispatcher import EventDispatcher
from signal_scoring.infrastructure.market.ccxt_market_data import parse_iso_ms
from signal_scoring.infrastructure.notify.message_builder import build_message_from_event

HOUR_MS = 3_600_000


# -------------------------
# In-memory adapters (for demo)
# -------------------------
class InMemorySignalRepo(SignalRepositoryPort):
    def __init__(self):
        self._by_id: Dict[str, SignalAggregate] = {}

    def save(self, signal):
        self._by_id[signal.signal_id] = signal

    def get(self, signal_id: str) -> Optional[SignalAggregate]:
        return self._by_id.get(signal_id)

    def list_by_status(self, *statuses: str) -> List[SignalAggregate]:
        return [s for s in self._by_id.values() if not statuses or s.status in statuses]


class InMemoryScoreRepo(PublisherScoreRepositoryPort):
    def __init__(self):
        self._scores: Dict[str, float] = {}

    def add_score(self, publisher_id, delta, signal_id=None):
        self._scores[publisher_id] = self._scores.get(publisher_id, 0.0) + float(delta)
        return self._scores[publisher_id]

    def get_score(self, publisher_id):
        return self._scores.get(publisher_id, 0.0)

    def list_scores(self):
        return dict(self._scores)


class SyntheticMarketData(MarketDataPort):
    """Serves hourly candles from a per-market high/low path."""

    def __init__(self, paths: Dict[str, List[tuple]]):
        self.paths = paths

    def fetch_candles(self, exchange_candidates, symbol, timeframe, start_time_iso, end_time_iso):
        start_ms = parse_iso_ms(start_time_iso, "start_time_iso")
        end_ms = parse_iso_ms(end_time_iso, "end_time_iso")
        path = self.paths.get(symbol)
        if not path:
            raise DataUnavailable(f"no synthetic data for {symbol}", exchanges=list(exchange_candidates))
        floor_ms = (start_ms // HOUR_MS) * HOUR_MS
        candles = []
        for i, (high, low) in enumerate(path):
            ts = floor_ms + i * HOUR_MS
            if ts >= end_ms:
                break
            mid = (high + low) / 2.0
            candles.append(Candle(ts_ms=ts, open=mid, high=high, low=low, close=mid, volume=1.0))
        return CandleSeries(tuple(candles), start_ms, end_ms, "synthetic", timeframe)


# -------------------------
# Demo flow (end-to-end)
# -------------------------
def demo_flow():
    logger.info("Starting demo flow")
    t0 = 1_735_689_600_000  # 2025-01-01T00:00:00Z

    market_data = SyntheticMarketData({
        # arms, touches target 0, then stops out
        "BTC/USDT": [(102, 99), (106, 103), (95, 85)],
        # arms, touches both targets
        "ETH/USDT": [(2010, 1990), (2060, 2001), (2110, 2040)],
        # never reaches the entry on the first candle
        "SOL/USDT": [(98, 96), (120, 97)],
    })
    signal_repo = InMemorySignalRepo()
    score_repo = InMemoryScoreRepo()

    dispatcher = EventDispatcher()
    dispatcher.subscribe("signal.settled", lambda topic, payload: print(build_message_from_event({"type": topic, "payload": payload})))
    dispatcher.subscribe("signal.deferred", lambda topic, payload: print(build_message_from_event({"type": topic, "payload": payload})))

    reward_uc = CalculateRewardUsecase(market_data)
    settle_uc = SettleSignalUsecase(signal_repo, score_repo, reward_uc, exchange_candidates=["synthetic"],
                                    timeframe="1h", event_bus=dispatcher, clock=lambda: t0)

    for sid, pub, market, entry, stop, targets in (
        ("sig-btc", "alice", "BTC/USDT", 100.0, 90.0, [105.0, 110.0]),
        ("sig-eth", "bob", "ETH/USDT", 2000.0, 1950.0, [2050.0, 2100.0]),
        ("sig-sol", "alice", "SOL/USDT", 100.0, 90.0, [110.0]),
    ):
        signal_repo.save(SignalAggregate.create(sid, pub, market, entry, stop, targets, t0, t0 + 3 * HOUR_MS))

    # opens signals
    settle_uc.settle_due(t0)
    # past close time: settles
    summary = settle_uc.settle_due(t0 + 3 * HOUR_MS)
    logger.info("Settlement summary: %s", summary.to_dict())

    for sig in signal_repo.list_by_status():
        logger.info("%s status=%s score=%s flags=%s", sig.signal_id, sig.status, sig.score,
                    {t.index: t.touched for t in sig.targets})
    print("=== PUBLISHER SCORES ===")
    print(json.dumps(score_repo.list_scores(), indent=2))
    logger.info("Demo finished")


# -------------------------
# Entry point
# -------------------------
if __name__ == "__main__":
    if len(sys.argv) >= 2 and sys.argv[1] == "demo":
        try:
            demo_flow()
        except Exception as e:
            logger.exception("Demo failed: %s", e)
            raise
    else:
        print("Usage: python main.py demo")
        print("Example: TELEGRAM_ENABLED=0 python main.py demo")
