# signal_scoring/domain/services/target_replay.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..entities.candle import Candle
from ..entities.target import Target


ENTRY_MODE_FIRST_BAR = "first_bar"
ENTRY_MODE_SCAN = "scan"
ENTRY_MODES = (ENTRY_MODE_FIRST_BAR, ENTRY_MODE_SCAN)


@dataclass
class ReplayResult:
    armed: bool = False
    armed_at_ms: Optional[int] = None
    aborted: bool = False
    exited_by_stop: bool = False
    exit_time_ms: Optional[int] = None
    candles_evaluated: int = 0
    targets: List[Target] = field(default_factory=list)

    def touched(self) -> List[Target]:
        return [t for t in self.targets if t.touched]

    def untouched(self) -> List[Target]:
        return [t for t in self.targets if not t.touched]


def replay_candles(
    candles: Sequence[Candle],
    entry_point: float,
    stop_loss: float,
    targets: List[Target],
    entry_mode: str = ENTRY_MODE_FIRST_BAR,
) -> ReplayResult:
    """Walk candles in order and mark stop breach / target touches.

    `targets` is mutated (touched / touched_at_ms); callers pass working copies.

    first_bar: a first candle whose high is below the entry aborts the replay.
    scan:      candles below the entry are skipped until one reaches it.
    Once armed, the entry is not checked again. On an armed candle the stop is
    checked before the targets, and a stop breach ends the replay.
    """
    if entry_mode not in ENTRY_MODES:
        raise ValueError(f"entry_mode must be one of {ENTRY_MODES}")

    res = ReplayResult(targets=targets)
    for c in candles:
        res.candles_evaluated += 1
        if not res.armed:
            if c.high < entry_point:
                if entry_mode == ENTRY_MODE_FIRST_BAR:
                    res.aborted = True
                    return res
                continue
            res.armed = True
            res.armed_at_ms = c.ts_ms

        if c.low <= stop_loss:
            res.exited_by_stop = True
            res.exit_time_ms = c.ts_ms
            break

        for t in targets:
            if not t.touched and c.high >= t.value:
                t.touch(c.ts_ms)

    return res
