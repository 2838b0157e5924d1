# signal_scoring/infrastructure/storage/signal_repo_jsonl.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ...application.ports.signal_repository import SignalRepositoryPort
from ...domain.entities.signal_aggregate import SignalAggregate, SignalAggregateError
from .jsonl_repo import JsonlRepo


logger = logging.getLogger("signal_repo")


class SignalRepoJsonl(SignalRepositoryPort):
    """Signals stored append-only; the last row per signal_id is the current state."""

    def __init__(self, path: str = "data/runtime/signals.jsonl"):
        self._repo = JsonlRepo(path)

    @property
    def path(self) -> str:
        return str(self._repo.path)

    def save(self, signal: SignalAggregate) -> None:
        self._repo.append(signal.to_dict())

    def _latest(self) -> Dict[str, SignalAggregate]:
        last_by_id: Dict[str, SignalAggregate] = {}
        for row in self._repo.iter():
            row.pop("_write_time_ms", None)
            try:
                sig = SignalAggregate.from_dict(row)
            except (SignalAggregateError, KeyError, TypeError, ValueError) as e:
                logger.warning("skipping unreadable signal row %s: %s", row.get("signal_id"), e)
                continue
            last_by_id[sig.signal_id] = sig
        return last_by_id

    def get(self, signal_id: str) -> Optional[SignalAggregate]:
        return self._latest().get(signal_id)

    def list_by_status(self, *statuses: str) -> List[SignalAggregate]:
        latest = self._latest().values()
        if not statuses:
            return list(latest)
        return [s for s in latest if s.status in statuses]
