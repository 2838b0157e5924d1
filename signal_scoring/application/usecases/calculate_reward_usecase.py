# signal_scoring/application/usecases/calculate_reward_usecase.py
from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Sequence, Union

from ...application.ports.market_data_port import MarketDataPort
from ...domain.entities.reward_state import RewardState
from ...domain.entities.settlement_request import SettlementRequest
from ...domain.services.reward_calculator import RewardConfig, calculate_reward

logger = logging.getLogger("calculate_reward")


class CalculateRewardUsecase:
    """Fetch the signal window from market data and score it.

    DataUnavailable from the market data port is not caught here.
    """

    def __init__(self, market_data: MarketDataPort, config: Optional[RewardConfig] = None,
                 default_exchanges: Optional[Sequence[str]] = None):
        self.market_data = market_data
        self.config = config or RewardConfig()
        self.default_exchanges = tuple(default_exchanges or ())

    def execute(self, request: Union[SettlementRequest, Dict[str, Any]]) -> RewardState:
        if not isinstance(request, SettlementRequest):
            request = SettlementRequest.from_dict(request, default_exchanges=self.default_exchanges)

        series = self.market_data.fetch_candles(
            list(request.exchange_candidates),
            request.market,
            request.timeframe,
            request.start_time_iso,
            request.end_time_iso,
        )
        state = calculate_reward(
            series.candles,
            request.entry_point,
            request.stop_loss,
            request.targets,
            series.start_ms,
            config=self.config,
        )
        state.exchange_id = series.exchange_id
        logger.info(
            "reward market=%s exchange=%s candles=%d outcome=%s reward=%.8f",
            request.market, series.exchange_id, len(series), state.outcome, state.reward,
        )
        return state
