# signal_scoring/domain/entities/settlement_request.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple
import math

from ..errors import InvalidParameters


def _finite(name: str, v: Any) -> float:
    if isinstance(v, bool):
        raise InvalidParameters(f"{name} must be a number")
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise InvalidParameters(f"{name} must be a number, got {v!r}")
    if not math.isfinite(f):
        raise InvalidParameters(f"{name} must be finite")
    return f


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return default


@dataclass(frozen=True)
class SettlementRequest:
    """Input of one reward computation, as handed over by the signal store."""
    exchange_candidates: Tuple[str, ...]
    market: str
    timeframe: str
    start_time_iso: str
    end_time_iso: str
    entry_point: float
    stop_loss: float
    targets: Tuple[float, ...]

    def __post_init__(self):
        if not self.market or not str(self.market).strip():
            raise InvalidParameters("market is required (e.g. 'BTC/USDT')")
        if not self.start_time_iso or not self.end_time_iso:
            raise InvalidParameters("start_time_iso and end_time_iso are required (ISO8601)")
        if not self.timeframe:
            raise InvalidParameters("timeframe is required")
        if not self.exchange_candidates:
            raise InvalidParameters("at least one exchange candidate is required")
        entry = _finite("entry_point", self.entry_point)
        if entry <= 0:
            raise InvalidParameters("entry_point must be > 0")
        _finite("stop_loss", self.stop_loss)
        if not self.targets:
            raise InvalidParameters("targets must be a non-empty list of numbers")
        for i, t in enumerate(self.targets):
            if _finite(f"targets[{i}]", t) <= 0:
                raise InvalidParameters(f"targets[{i}] must be > 0")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_exchanges: Optional[Sequence[str]] = None) -> "SettlementRequest":
        """Parse a payload using camelCase, legacy or snake_case keys."""
        if not isinstance(data, dict):
            raise InvalidParameters("settlement payload must be a dict")

        ex = _pick(data, "exchangeCandidates", "exchangeId", "exchange_candidates", default=default_exchanges)
        if isinstance(ex, str):
            ex = [ex]
        candidates = tuple(str(x).strip().lower() for x in (ex or []) if str(x).strip())

        targets = _pick(data, "targets", default=[])
        if not isinstance(targets, (list, tuple)):
            raise InvalidParameters("targets must be a non-empty list of numbers")

        return cls(
            exchange_candidates=candidates,
            market=str(_pick(data, "market", default="") or "").strip(),
            timeframe=str(_pick(data, "timeframe", default="1m")),
            start_time_iso=_pick(data, "startTimeIso", "startTime", "start_time_iso", default=""),
            end_time_iso=_pick(data, "endTimeIso", "endTime", "end_time_iso", default=""),
            entry_point=_finite("entry_point", _pick(data, "entryPoint", "entry_point")),
            stop_loss=_finite("stop_loss", _pick(data, "stopLoss", "stop_loss")),
            targets=tuple(_finite(f"targets[{i}]", t) for i, t in enumerate(targets)),
        )
