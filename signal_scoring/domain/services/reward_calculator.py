# signal_scoring/domain/services/reward_calculator.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union
import math

from ..errors import InvalidParameters
from ..entities.candle import Candle
from ..entities.reward_state import (
    RewardState,
    OUTCOME_NO_ENTRY,
    OUTCOME_STOP_LOSS,
    OUTCOME_EXPIRED,
    OUTCOME_TARGETS,
)
from ..entities.target import Target, fresh_targets
from .target_replay import ENTRY_MODE_FIRST_BAR, ENTRY_MODES, ReplayResult, replay_candles


MS_PER_HOUR = 3_600_000


@dataclass(frozen=True)
class RewardConfig:
    time_cost: float = 0.99999999   # per-hour decay
    target_cost: float = 0.99       # per-rank decay
    reward_base: float = 1.0
    entry_mode: str = ENTRY_MODE_FIRST_BAR

    def __post_init__(self):
        if self.entry_mode not in ENTRY_MODES:
            raise InvalidParameters(f"entry_mode must be one of {ENTRY_MODES}")
        if not (0.0 < self.time_cost <= 1.0) or not (0.0 < self.target_cost <= 1.0):
            raise InvalidParameters("time_cost and target_cost must be in (0, 1]")

    def decay(self, hours: float) -> float:
        return self.time_cost ** hours

    def rank_decay(self, index: int) -> float:
        return self.target_cost ** index


DEFAULT_CONFIG = RewardConfig()


def hours_between(a_ms: int, b_ms: int) -> float:
    return abs(float(a_ms) - float(b_ms)) / MS_PER_HOUR


def _validate(entry_point, stop_loss, targets: Sequence, window_start_ms) -> None:
    for name, v in (("entry_point", entry_point), ("stop_loss", stop_loss)):
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise InvalidParameters(f"{name} must be a finite number")
    if entry_point <= 0:
        raise InvalidParameters("entry_point must be > 0")
    if not targets:
        raise InvalidParameters("targets must be a non-empty list")
    for t in targets:
        v = t.value if isinstance(t, Target) else t
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v) or v <= 0:
            raise InvalidParameters(f"target value must be a finite number > 0, got {v!r}")
    if window_start_ms is None or isinstance(window_start_ms, bool) or not isinstance(window_start_ms, (int, float)):
        raise InvalidParameters("window_start_ms is required")
    if not math.isfinite(window_start_ms):
        raise InvalidParameters("window_start_ms must be finite")


def _target_gain(t: Target, entry_point: float, window_start_ms: int, cfg: RewardConfig) -> float:
    hours = hours_between(t.touched_at_ms, window_start_ms)
    return ((t.value - entry_point) / entry_point) * cfg.decay(hours) * cfg.rank_decay(t.index)


def score_replay(
    replay: ReplayResult,
    entry_point: float,
    stop_loss: float,
    window_start_ms: int,
    config: Optional[RewardConfig] = None,
) -> RewardState:
    """Turn a finished replay into a RewardState."""
    cfg = config or DEFAULT_CONFIG

    base = dict(
        exited_by_stop=replay.exited_by_stop,
        exit_time_ms=replay.exit_time_ms,
        armed_at_ms=replay.armed_at_ms,
        targets=replay.targets,
        candles_evaluated=replay.candles_evaluated,
    )

    if replay.aborted or not replay.armed:
        return RewardState(reward=0.0, outcome=OUTCOME_NO_ENTRY, **base)

    touched = replay.touched()
    if not touched:
        if replay.exited_by_stop:
            hours = hours_between(replay.exit_time_ms, window_start_ms)
            penalty = (abs(stop_loss - entry_point) / entry_point) * cfg.decay(hours)
            return RewardState(reward=-penalty * cfg.reward_base, outcome=OUTCOME_STOP_LOSS, **base)
        return RewardState(reward=0.0, outcome=OUTCOME_EXPIRED, **base)

    # Highest rank wins, not highest price.
    max_t = max(touched, key=lambda t: t.index)
    max_hours = hours_between(max_t.touched_at_ms, window_start_ms)

    max_touched_reward = _target_gain(max_t, entry_point, window_start_ms, cfg)

    reward_per_touched = sum(_target_gain(t, entry_point, window_start_ms, cfg) for t in touched) / len(touched)

    # Untouched targets all use the max touched target's clock.
    untouched = replay.untouched()
    reward_per_not_touched = 0.0
    if untouched:
        reward_per_not_touched = sum(
            -((t.value - max_t.value) / max_t.value) * cfg.decay(max_hours) * cfg.rank_decay(t.index)
            for t in untouched
        ) / len(untouched)

    reward = (max_touched_reward + reward_per_touched + reward_per_not_touched) * cfg.reward_base
    return RewardState(reward=reward, outcome=OUTCOME_TARGETS, max_touched_index=max_t.index, **base)


def calculate_reward(
    candles: Sequence[Candle],
    entry_point: float,
    stop_loss: float,
    targets: Iterable[Union[float, int, Target]],
    window_start_ms: int,
    config: Optional[RewardConfig] = None,
) -> RewardState:
    """Replay candles against a signal and score it.

    Pure: `targets` is copied, never mutated. Same inputs give the same reward.
    Raises InvalidParameters on empty targets or non-finite prices.
    """
    targets = list(targets)
    _validate(entry_point, stop_loss, targets, window_start_ms)
    cfg = config or DEFAULT_CONFIG

    working: List[Target] = fresh_targets(targets)
    replay = replay_candles(candles, float(entry_point), float(stop_loss), working, entry_mode=cfg.entry_mode)
    return score_replay(replay, float(entry_point), float(stop_loss), int(window_start_ms), cfg)
