# signal_scoring/application/ports/publisher_score_repository.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Optional


class PublisherScoreRepositoryPort(ABC):
    @abstractmethod
    def add_score(self, publisher_id: str, delta: float, signal_id: Optional[str] = None) -> float:
        """Add `delta` to the publisher's aggregate score and return the new total."""
        raise NotImplementedError()

    @abstractmethod
    def get_score(self, publisher_id: str) -> float:
        raise NotImplementedError()

    @abstractmethod
    def list_scores(self) -> Dict[str, float]:
        raise NotImplementedError()
