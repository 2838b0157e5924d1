# signal_scoring/application/ports/market_data_port.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Sequence, Union

from ...domain.entities.candle import CandleSeries


class MarketDataPort(ABC):
    @abstractmethod
    def fetch_candles(
        self,
        exchange_candidates: Union[str, Sequence[str]],
        symbol: str,
        timeframe: str,
        start_time_iso: str,
        end_time_iso: str,
    ) -> CandleSeries:
        """Ordered candles covering [start, end) from the first venue that has them.

        Raises InvalidParameters for unparseable bounds, DataUnavailable when
        every venue fails or returns nothing.
        """
        raise NotImplementedError()
