# signal_scoring/application/usecases/settle_signal_usecase.py
from __future__ import annotations
import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ...application.ports.event_bus_port import EventBusPort
from ...application.ports.publisher_score_repository import PublisherScoreRepositoryPort
from ...application.ports.signal_repository import SignalRepositoryPort
from ...domain.entities.reward_state import RewardState
from ...domain.entities.signal_aggregate import SignalAggregate, STATUS_NOT_OPENED, STATUS_OPEN
from ...domain.errors import DataUnavailable, InvalidParameters
from .calculate_reward_usecase import CalculateRewardUsecase

logger = logging.getLogger("settle_signal")


@dataclass
class SettlementSummary:
    opened: List[str] = field(default_factory=list)
    settled: List[str] = field(default_factory=list)
    deferred: List[str] = field(default_factory=list)
    # storage errors outside settle_signal (status refresh, deferral bookkeeping)
    failed: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "opened": len(self.opened),
            "settled": len(self.settled),
            "deferred": len(self.deferred),
            "failed": len(self.failed),
        }


def _now_ms() -> int:
    return int(time.time() * 1000)


class SettleSignalUsecase:
    """Close due signals, persist their score and credit the publisher.

    Settling is all or nothing: either the signal is stored closed and the
    publisher is credited, or the signal stays open with its score unchanged
    so a later tick can retry it.
    """

    def __init__(
        self,
        signal_repo: SignalRepositoryPort,
        score_repo: PublisherScoreRepositoryPort,
        reward_usecase: CalculateRewardUsecase,
        exchange_candidates: Sequence[str],
        timeframe: str = "1m",
        event_bus: Optional[EventBusPort] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.signal_repo = signal_repo
        self.score_repo = score_repo
        self.reward_usecase = reward_usecase
        self.exchange_candidates = list(exchange_candidates)
        self.timeframe = timeframe
        self.event_bus = event_bus
        self.clock = clock

    def settle_due(self, now_ms: Optional[int] = None) -> SettlementSummary:
        now_ms = self.clock() if now_ms is None else int(now_ms)
        summary = SettlementSummary()

        for sig in self.signal_repo.list_by_status(STATUS_NOT_OPENED, STATUS_OPEN):
            try:
                if sig.refresh_status(now_ms):
                    self.signal_repo.save(sig)
                    summary.opened.append(sig.signal_id)
                if not sig.is_due(now_ms):
                    continue
                settled = self.settle_signal(sig) is not None
            except Exception:
                logger.exception("signal %s: tick step failed, retrying next tick", sig.signal_id)
                summary.failed.append(sig.signal_id)
                continue
            if settled:
                summary.settled.append(sig.signal_id)
            else:
                summary.deferred.append(sig.signal_id)

        if summary.settled or summary.deferred or summary.failed:
            logger.info("settlement tick: %s", summary.to_dict())
        return summary

    def settle_signal(self, signal: SignalAggregate) -> Optional[RewardState]:
        try:
            request = signal.to_settlement_request(self.exchange_candidates, self.timeframe)
            reward = self.reward_usecase.execute(request)
        except InvalidParameters as e:
            logger.error("signal %s has invalid parameters, deferring: %s", signal.signal_id, e)
            self._defer(signal, e)
            return None
        except DataUnavailable as e:
            logger.warning("signal %s deferred, no market data: %s", signal.signal_id, e)
            self._defer(signal, e)
            return None
        except Exception as e:
            logger.exception("signal %s settlement failed", signal.signal_id)
            self._defer(signal, e)
            return None

        total = self._commit(signal, reward)
        if total is None:
            return None

        signal.attach_reward(reward)
        logger.info(
            "signal %s settled outcome=%s reward=%.8f publisher=%s total=%.8f",
            signal.signal_id, reward.outcome, reward.reward, signal.publisher_id, total,
        )
        if self.event_bus:
            payload = signal.to_dict()
            payload["publisher_score"] = total
            self.event_bus.publish("signal.settled", payload)
        return reward

    def _commit(self, signal: SignalAggregate, reward: RewardState) -> Optional[float]:
        """Credit the publisher, then store the closed signal. Returns the new total or None if deferred.

        `signal` itself is left untouched until both writes succeeded.
        """
        closed = copy.deepcopy(signal)
        closed.attach_reward(reward)

        try:
            total = self.score_repo.add_score(signal.publisher_id, reward.reward, signal_id=signal.signal_id)
        except Exception as e:
            logger.exception("signal %s: crediting publisher %s failed, deferring", signal.signal_id, signal.publisher_id)
            self._defer(signal, e)
            return None

        try:
            self.signal_repo.save(closed)
        except Exception as e:
            logger.exception("signal %s: storing settled state failed, reverting credit", signal.signal_id)
            try:
                self.score_repo.add_score(signal.publisher_id, -reward.reward, signal_id=signal.signal_id)
            except Exception:
                logger.exception(
                    "signal %s: could not revert credit %.8f for publisher %s",
                    signal.signal_id, reward.reward, signal.publisher_id,
                )
            self._defer(signal, e)
            return None
        return total

    def _defer(self, signal: SignalAggregate, error: BaseException) -> None:
        signal.record_deferral(error)
        self.signal_repo.save(signal)
        if self.event_bus:
            self.event_bus.publish("signal.deferred", signal.to_dict())
