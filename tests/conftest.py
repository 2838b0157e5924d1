import pytest

from signal_scoring.application.ports.market_data_port import MarketDataPort
from signal_scoring.application.ports.publisher_score_repository import PublisherScoreRepositoryPort
from signal_scoring.application.ports.signal_repository import SignalRepositoryPort
from signal_scoring.domain.entities.candle import Candle, CandleSeries

HOUR_MS = 3_600_000
T0 = 1_735_689_600_000  # 2025-01-01T00:00:00Z


def hourly(rows, start_ms=T0):
    """[(high, low), ...] -> hourly candles starting at start_ms."""
    out = []
    for i, (high, low) in enumerate(rows):
        mid = (high + low) / 2.0
        out.append(Candle(ts_ms=start_ms + i * HOUR_MS, open=mid, high=high, low=low, close=mid, volume=1.0))
    return out


class FakeMarketData(MarketDataPort):
    def __init__(self, candles=None, error=None, exchange_id="fakex"):
        self.candles = candles or []
        self.error = error
        self.exchange_id = exchange_id
        self.calls = []

    def fetch_candles(self, exchange_candidates, symbol, timeframe, start_time_iso, end_time_iso):
        self.calls.append((list(exchange_candidates), symbol, timeframe, start_time_iso, end_time_iso))
        if self.error is not None:
            raise self.error
        return CandleSeries(tuple(self.candles), T0, T0 + 24 * HOUR_MS, self.exchange_id, timeframe)


class InMemorySignalRepo(SignalRepositoryPort):
    def __init__(self):
        self.rows = {}
        self.saves = 0

    def save(self, signal):
        self.saves += 1
        self.rows[signal.signal_id] = signal

    def get(self, signal_id):
        return self.rows.get(signal_id)

    def list_by_status(self, *statuses):
        return [s for s in self.rows.values() if not statuses or s.status in statuses]


class InMemoryScoreRepo(PublisherScoreRepositoryPort):
    def __init__(self):
        self.scores = {}
        self.entries = []

    def add_score(self, publisher_id, delta, signal_id=None):
        self.entries.append((publisher_id, delta, signal_id))
        self.scores[publisher_id] = self.scores.get(publisher_id, 0.0) + delta
        return self.scores[publisher_id]

    def get_score(self, publisher_id):
        return self.scores.get(publisher_id, 0.0)

    def list_scores(self):
        return dict(self.scores)


class RecordingBus:
    def __init__(self):
        self.events = []

    def publish(self, topic, payload):
        self.events.append((topic, payload))

    def topics(self):
        return [t for t, _ in self.events]


@pytest.fixture
def signal_repo():
    return InMemorySignalRepo()


@pytest.fixture
def score_repo():
    return InMemoryScoreRepo()


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture(autouse=True)
def _clean_settlement_env(monkeypatch):
    for key in (
        "SETTLEMENT_CONFIG", "SETTLEMENT_EXCHANGES", "SETTLEMENT_TIMEFRAME", "SETTLEMENT_PAGE_LIMIT",
        "EXCHANGE_TIMEOUT_MS", "EXCHANGE_RATE_LIMIT", "SETTLEMENT_ENTRY_MODE", "SETTLEMENT_POLL_SEC",
        "SIGNALS_PATH", "SCORES_PATH", "TELEGRAM_ENABLED", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID",
    ):
        monkeypatch.delenv(key, raising=False)
