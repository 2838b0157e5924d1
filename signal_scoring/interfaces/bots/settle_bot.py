# signal_scoring/interfaces/bots/settle_bot.py
from __future__ import annotations
from typing import Optional
from ...application.usecases.settle_signal_usecase import SettleSignalUsecase, SettlementSummary


class SettleBot:
    def __init__(self, settle_usecase: SettleSignalUsecase):
        self.settle_usecase = settle_usecase

    def tick(self, now_ms: Optional[int] = None) -> SettlementSummary:
        return self.settle_usecase.settle_due(now_ms)
