# signal_scoring/application/ports/signal_repository.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional
from ...domain.entities.signal_aggregate import SignalAggregate


class SignalRepositoryPort(ABC):
    @abstractmethod
    def save(self, signal: SignalAggregate) -> None:
        raise NotImplementedError()

    @abstractmethod
    def get(self, signal_id: str) -> Optional[SignalAggregate]:
        raise NotImplementedError()

    @abstractmethod
    def list_by_status(self, *statuses: str) -> List[SignalAggregate]:
        """Latest state of every signal whose status is one of `statuses`."""
        raise NotImplementedError()
