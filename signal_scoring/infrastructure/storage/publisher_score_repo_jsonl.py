# signal_scoring/infrastructure/storage/publisher_score_repo_jsonl.py
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Optional

from ...application.ports.publisher_score_repository import PublisherScoreRepositoryPort
from .jsonl_repo import JsonlRepo


class PublisherScoreRepoJsonl(PublisherScoreRepositoryPort):
    """Score ledger: one row per settled signal, totals are sums of deltas."""

    def __init__(self, path: str = "data/runtime/publisher_scores.jsonl"):
        self._repo = JsonlRepo(path)

    def add_score(self, publisher_id: str, delta: float, signal_id: Optional[str] = None) -> float:
        self._repo.append({"publisher_id": str(publisher_id), "delta": float(delta), "signal_id": signal_id})
        return self.get_score(publisher_id)

    def get_score(self, publisher_id: str) -> float:
        return self.list_scores().get(str(publisher_id), 0.0)

    def list_scores(self) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for row in self._repo.iter():
            pid = row.get("publisher_id")
            if pid is None:
                continue
            totals[str(pid)] += float(row.get("delta") or 0.0)
        return dict(totals)
