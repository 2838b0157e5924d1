# signal_scoring/domain/entities/reward_state.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .target import Target


OUTCOME_NO_ENTRY = "no_entry"
OUTCOME_STOP_LOSS = "stop_loss"
OUTCOME_EXPIRED = "expired"
OUTCOME_TARGETS = "targets"


@dataclass
class RewardState:
    reward: float
    outcome: str
    exited_by_stop: bool = False
    exit_time_ms: Optional[int] = None
    armed_at_ms: Optional[int] = None
    max_touched_index: Optional[int] = None
    targets: List[Target] = field(default_factory=list)
    reward_version: str = "v1"

    # Where the candles came from (filled by the use case, not the calculator).
    exchange_id: Optional[str] = None
    candles_evaluated: int = 0

    def target_flags(self) -> Dict[int, bool]:
        return {t.index: t.touched for t in self.targets}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reward": self.reward,
            "outcome": self.outcome,
            "exited_by_stop": self.exited_by_stop,
            "exit_time_ms": self.exit_time_ms,
            "armed_at_ms": self.armed_at_ms,
            "max_touched_index": self.max_touched_index,
            "targets": [t.to_dict() for t in self.targets],
            "reward_version": self.reward_version,
            "exchange_id": self.exchange_id,
            "candles_evaluated": self.candles_evaluated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RewardState":
        return cls(
            reward=float(data["reward"]),
            outcome=str(data["outcome"]),
            exited_by_stop=bool(data.get("exited_by_stop", False)),
            exit_time_ms=data.get("exit_time_ms"),
            armed_at_ms=data.get("armed_at_ms"),
            max_touched_index=data.get("max_touched_index"),
            targets=[Target.from_dict(t) for t in data.get("targets") or []],
            reward_version=str(data.get("reward_version", "v1")),
            exchange_id=data.get("exchange_id"),
            candles_evaluated=int(data.get("candles_evaluated", 0) or 0),
        )
