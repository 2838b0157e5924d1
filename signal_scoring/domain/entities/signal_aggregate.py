# signal_scoring/domain/entities/signal_aggregate.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
import copy

from .reward_state import RewardState
from .settlement_request import SettlementRequest
from .target import Target, fresh_targets


STATUS_NOT_OPENED = "not_opened"
STATUS_OPEN = "open"
STATUS_CLOSED = "closed"
STATUSES = (STATUS_NOT_OPENED, STATUS_OPEN, STATUS_CLOSED)

# Transitions fire up to one second early to absorb clock skew between hosts.
TRANSITION_GRACE_MS = 1000


class SignalAggregateError(Exception):
    pass


def ms_to_iso(ts_ms: int) -> str:
    dt = datetime.fromtimestamp(int(ts_ms) / 1000.0, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(ts_ms) % 1000:03d}Z"


@dataclass
class SignalAggregate:
    schema_version: str
    signal_id: str
    publisher_id: str
    market: str
    entry_point: float
    stop_loss: float
    targets: List[Target]
    open_time_ms: int
    close_time_ms: int
    status: str = STATUS_NOT_OPENED
    score: Optional[float] = None
    reward_state: Optional[RewardState] = None
    settle_attempts: int = 0
    last_error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, signal_id: str, publisher_id: str, market: str, entry_point: float, stop_loss: float,
               targets: Sequence[float], open_time_ms: int, close_time_ms: int, meta: Optional[Dict[str, Any]] = None):
        if close_time_ms <= open_time_ms:
            raise SignalAggregateError("close_time_ms must be after open_time_ms")
        return cls(
            schema_version="v1",
            signal_id=signal_id,
            publisher_id=publisher_id,
            market=market,
            entry_point=float(entry_point),
            stop_loss=float(stop_loss),
            targets=fresh_targets(targets),
            open_time_ms=int(open_time_ms),
            close_time_ms=int(close_time_ms),
            status=STATUS_NOT_OPENED,
            meta=dict(meta or {}),
        )

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def refresh_status(self, now_ms: int) -> bool:
        """not_opened -> open once open time is reached. Returns True if changed."""
        if self.status == STATUS_NOT_OPENED and now_ms - self.open_time_ms >= -TRANSITION_GRACE_MS:
            self.status = STATUS_OPEN
            return True
        return False

    def is_due(self, now_ms: int) -> bool:
        return self.status == STATUS_OPEN and now_ms - self.close_time_ms >= -TRANSITION_GRACE_MS

    def attach_reward(self, reward: RewardState) -> None:
        if self.status == STATUS_CLOSED:
            raise SignalAggregateError("signal already settled")
        if self.status != STATUS_OPEN:
            raise SignalAggregateError("cannot settle a signal that is not open")
        flags = reward.target_flags()
        by_index = {t.index: t for t in reward.targets}
        for t in self.targets:
            if flags.get(t.index):
                t.touched = True
                t.touched_at_ms = by_index[t.index].touched_at_ms
        self.reward_state = reward
        self.score = float(reward.reward)
        self.status = STATUS_CLOSED
        self.last_error = None

    def record_deferral(self, error: BaseException) -> None:
        self.settle_attempts += 1
        self.last_error = f"{type(error).__name__}: {error}"

    def to_settlement_request(self, exchange_candidates: Sequence[str], timeframe: str = "1m") -> SettlementRequest:
        return SettlementRequest(
            exchange_candidates=tuple(exchange_candidates),
            market=self.market,
            timeframe=timeframe,
            start_time_iso=ms_to_iso(self.open_time_ms),
            end_time_iso=ms_to_iso(self.close_time_ms),
            entry_point=self.entry_point,
            stop_loss=self.stop_loss,
            targets=tuple(t.value for t in sorted(self.targets, key=lambda t: t.index)),
        )

    # ----------------------------
    # Serialization
    # ----------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "signal_id": self.signal_id,
            "publisher_id": self.publisher_id,
            "market": self.market,
            "entry_point": self.entry_point,
            "stop_loss": self.stop_loss,
            "targets": [t.to_dict() for t in self.targets],
            "open_time_ms": self.open_time_ms,
            "close_time_ms": self.close_time_ms,
            "status": self.status,
            "score": self.score,
            "reward_state": self.reward_state.to_dict() if self.reward_state else None,
            "settle_attempts": self.settle_attempts,
            "last_error": self.last_error,
            "meta": copy.deepcopy(self.meta),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignalAggregate":
        if not isinstance(data, dict):
            raise SignalAggregateError("SignalAggregate.from_dict expects a dict")
        status = str(data.get("status", STATUS_NOT_OPENED))
        if status not in STATUSES:
            raise SignalAggregateError(f"unknown status {status!r}")
        raw_targets = data.get("targets")
        if not isinstance(raw_targets, list) or not raw_targets:
            raise SignalAggregateError("Missing/invalid targets")
        targets = [Target.from_dict(t) if isinstance(t, dict) else Target(value=float(t), index=i)
                   for i, t in enumerate(raw_targets)]
        rs = data.get("reward_state")
        score = data.get("score")
        return cls(
            schema_version=str(data.get("schema_version", "v1")),
            signal_id=str(data["signal_id"]),
            publisher_id=str(data.get("publisher_id", "")),
            market=str(data.get("market", "")),
            entry_point=float(data["entry_point"]),
            stop_loss=float(data["stop_loss"]),
            targets=targets,
            open_time_ms=int(data["open_time_ms"]),
            close_time_ms=int(data["close_time_ms"]),
            status=status,
            score=float(score) if score is not None else None,
            reward_state=RewardState.from_dict(rs) if isinstance(rs, dict) else None,
            settle_attempts=int(data.get("settle_attempts", 0) or 0),
            last_error=data.get("last_error"),
            meta=dict(data.get("meta") or {}),
        )
