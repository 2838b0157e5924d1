# signal_scoring/domain/entities/candle.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Candle:
    ts_ms: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def from_ohlcv(cls, row: Sequence) -> "Candle":
        """Build from a CCXT-style row: [timestamp, open, high, low, close, volume]."""
        vol = row[5] if len(row) > 5 and row[5] is not None else 0.0
        return cls(
            ts_ms=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(vol),
        )


@dataclass(frozen=True)
class CandleSeries:
    """Candles for one settlement window plus where they came from."""
    candles: tuple
    start_ms: int
    end_ms: int
    exchange_id: str
    timeframe: str

    def __len__(self) -> int:
        return len(self.candles)
