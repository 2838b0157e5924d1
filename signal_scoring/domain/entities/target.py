# signal_scoring/domain/entities/target.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union


@dataclass
class Target:
    value: float
    index: int
    touched: bool = False
    touched_at_ms: Optional[int] = None

    def touch(self, ts_ms: int) -> None:
        self.touched = True
        self.touched_at_ms = int(ts_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "value": self.value,
            "touched": self.touched,
            "touched_at_ms": self.touched_at_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Target":
        touched_at = data.get("touched_at_ms")
        return cls(
            value=float(data["value"]),
            index=int(data["index"]),
            touched=bool(data.get("touched", False)),
            touched_at_ms=int(touched_at) if touched_at is not None else None,
        )


def fresh_targets(targets: Iterable[Union[float, int, Target]]) -> List[Target]:
    """Untouched working copies; plain numbers get their list position as index."""
    out: List[Target] = []
    for pos, t in enumerate(targets):
        if isinstance(t, Target):
            out.append(Target(value=float(t.value), index=int(t.index)))
        else:
            out.append(Target(value=float(t), index=pos))
    return out
