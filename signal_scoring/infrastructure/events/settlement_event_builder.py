# signal_scoring/infrastructure/events/settlement_event_builder.py
from __future__ import annotations
from typing import Any, Dict


class SettlementEventBuilder:
    @staticmethod
    def build_settled_event(signal: Dict[str, Any]) -> Dict[str, Any]:
        rs = signal.get("reward_state") or {}
        targets = signal.get("targets") or []
        return {
            "type": "signal.settled",
            "signal_id": signal.get("signal_id"),
            "publisher_id": signal.get("publisher_id"),
            "market": signal.get("market"),
            "reward": rs.get("reward", signal.get("score")),
            "outcome": rs.get("outcome"),
            "exchange_id": rs.get("exchange_id"),
            "targets_touched": sum(1 for t in targets if t.get("touched")),
            "targets_total": len(targets),
            "publisher_score": signal.get("publisher_score"),
            "close_time_ms": signal.get("close_time_ms"),
        }

    @staticmethod
    def build_deferred_event(signal: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "type": "signal.deferred",
            "signal_id": signal.get("signal_id"),
            "publisher_id": signal.get("publisher_id"),
            "market": signal.get("market"),
            "settle_attempts": signal.get("settle_attempts"),
            "error": signal.get("last_error"),
            "close_time_ms": signal.get("close_time_ms"),
        }
