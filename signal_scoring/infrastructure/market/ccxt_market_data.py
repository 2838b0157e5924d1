# signal_scoring/infrastructure/market/ccxt_market_data.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Union

import ccxt
import pandas as pd

from ...application.ports.market_data_port import MarketDataPort
from ...domain.entities.candle import Candle, CandleSeries
from ...domain.errors import DataUnavailable, InvalidParameters
from .exchange_factory import make_spot_exchange, parse_exchange_list


logger = logging.getLogger("ccxt_market_data")

_COLUMNS = ["ts_ms", "open", "high", "low", "close", "volume"]


def parse_iso_ms(value: str, name: str) -> int:
    ms = None
    if isinstance(value, str) and value.strip():
        try:
            ms = ccxt.Exchange.parse8601(value.strip())
        except Exception:
            ms = None
    if ms is None:
        raise InvalidParameters(f"{name} must be an ISO8601 string, got {value!r}")
    return int(ms)


def timeframe_ms(timeframe: str) -> int:
    try:
        sec = ccxt.Exchange.parse_timeframe(timeframe)
    except Exception as e:
        raise InvalidParameters(f"unsupported timeframe {timeframe!r}") from e
    if not sec or sec <= 0:
        raise InvalidParameters(f"unsupported timeframe {timeframe!r}")
    return int(sec * 1000)


def normalize_ohlcv(rows: List[Sequence[Any]], start_ms: int, end_ms: int) -> List[Candle]:
    """Raw CCXT rows -> sorted, de-duplicated candles inside [start_ms, end_ms)."""
    # some venues omit volume
    rows = [list(r[:6]) + [0.0] * (6 - len(r[:6])) for r in rows if r is not None and len(r) >= 5]
    if not rows:
        return []
    df = pd.DataFrame(rows, columns=_COLUMNS)
    df["volume"] = df["volume"].fillna(0.0)
    df = df.dropna(subset=["ts_ms", "open", "high", "low", "close"])
    df["ts_ms"] = df["ts_ms"].astype("int64")
    df = df[(df["ts_ms"] >= start_ms) & (df["ts_ms"] < end_ms)]
    df = df.drop_duplicates(subset=["ts_ms"], keep="first").sort_values("ts_ms")
    return [Candle.from_ohlcv(r) for r in df[_COLUMNS].itertuples(index=False, name=None)]


class CcxtMarketData(MarketDataPort):
    """OHLCV window fetcher with ordered venue fallback.

    Venues are tried one after another; the first one that yields candles
    wins. A failing venue is not retried, the next candidate is tried instead.
    Within a venue, pages are requested sequentially from the timeframe-floored
    start until the cursor reaches the end or a page comes back empty.
    """

    def __init__(
        self,
        exchange_builder: Optional[Callable[[str], Any]] = None,
        page_limit: int = 1000,
    ):
        self.exchange_builder = exchange_builder or make_spot_exchange
        self.page_limit = int(page_limit)

    def fetch_candles(
        self,
        exchange_candidates: Union[str, Sequence[str]],
        symbol: str,
        timeframe: str,
        start_time_iso: str,
        end_time_iso: str,
    ) -> CandleSeries:
        candidates = parse_exchange_list(exchange_candidates)
        if not candidates:
            raise InvalidParameters("at least one exchange candidate is required")
        if not symbol:
            raise InvalidParameters("symbol is required (e.g. 'BTC/USDT')")

        start_ms = parse_iso_ms(start_time_iso, "start_time_iso")
        end_ms = parse_iso_ms(end_time_iso, "end_time_iso")
        if start_ms >= end_ms:
            raise InvalidParameters("start_time_iso must be before end_time_iso")
        tf_ms = timeframe_ms(timeframe)
        floor_ms = (start_ms // tf_ms) * tf_ms

        last_error: Optional[BaseException] = None
        for ex_id in candidates:
            try:
                ex = self.exchange_builder(ex_id)
            except Exception as e:
                last_error = e
                logger.warning("exchange %s unavailable: %s", ex_id, e)
                continue

            try:
                rows = self._fetch_pages(ex, symbol, timeframe, floor_ms, end_ms)
            except Exception as e:
                last_error = e
                logger.warning("fetch_ohlcv failed on %s for %s: %s", ex_id, symbol, e)
                continue

            candles = normalize_ohlcv(rows, floor_ms, end_ms)
            if candles:
                logger.debug("fetched %d candles for %s from %s", len(candles), symbol, ex_id)
                return CandleSeries(
                    candles=tuple(candles),
                    start_ms=start_ms,
                    end_ms=end_ms,
                    exchange_id=ex_id,
                    timeframe=timeframe,
                )
            logger.info("exchange %s returned no candles for %s", ex_id, symbol)

        raise DataUnavailable(
            f"Failed to fetch OHLCV from exchanges [{', '.join(candidates)}] - last error: {last_error}",
            last_error=last_error,
            exchanges=candidates,
        )

    def _fetch_pages(self, ex, symbol: str, timeframe: str, since_ms: int, end_ms: int) -> List[Sequence[Any]]:
        try:
            ex.load_markets()
        except Exception as e:
            # fetch_ohlcv loads markets lazily; a failure here is not fatal yet
            logger.debug("load_markets failed: %s", e)

        rows: List[Sequence[Any]] = []
        cursor = since_ms
        while cursor < end_ms:
            batch = ex.fetch_ohlcv(symbol, timeframe=timeframe, since=cursor, limit=self.page_limit)
            if not batch:
                break
            rows.extend(batch)
            last_ts = int(batch[-1][0])
            cursor = max(cursor + 1, last_ts + 1)
        return rows
