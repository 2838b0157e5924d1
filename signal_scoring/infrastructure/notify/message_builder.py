# signal_scoring/infrastructure/notify/message_builder.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..events.settlement_event_builder import SettlementEventBuilder


def _fmt_time(ts_ms: Optional[int]) -> str:
    if ts_ms is None:
        return "N/A"
    try:
        dt = datetime.fromtimestamp(int(ts_ms) / 1000.0, tz=timezone.utc)
        return dt.strftime("%Y-%m-%d %H:%M:%S UTC")
    except (TypeError, ValueError, OverflowError, OSError):
        return "N/A"


def _fmt_reward(v: Any) -> str:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return "N/A"
    sign = "+" if f > 0 else ""
    return f"{sign}{f:.6f}"


def _normalize_event(event: Any) -> Optional[Dict[str, Any]]:
    """Accept builder events or raw (topic, signal dict) pairs."""
    if not isinstance(event, dict):
        return None
    t = str(event.get("type") or "").lower()
    payload = event.get("payload")
    if isinstance(payload, dict) and "signal_id" in payload:
        if t == "signal.settled":
            return SettlementEventBuilder.build_settled_event(payload)
        if t == "signal.deferred":
            return SettlementEventBuilder.build_deferred_event(payload)
        return None
    if t in ("signal.settled", "signal.deferred"):
        return event
    return None


def build_message_from_event(event: Dict[str, Any]) -> Optional[str]:
    ev = _normalize_event(event)
    if not ev:
        return None

    if ev["type"] == "signal.settled":
        outcome = str(ev.get("outcome") or "N/A")
        icon = {"targets": "✅", "stop_loss": "🛑", "expired": "⌛", "no_entry": "⚪"}.get(outcome, "ℹ️")
        lines = [
            f"{icon} SIGNAL SETTLED",
            f"Market: {ev.get('market') or 'N/A'}",
            f"SignalId: {ev.get('signal_id')}",
            f"Publisher: {ev.get('publisher_id')}",
            f"Outcome: {outcome}",
            f"Targets: {ev.get('targets_touched', 0)}/{ev.get('targets_total', 0)}",
            f"Reward: {_fmt_reward(ev.get('reward'))}",
        ]
        if ev.get("publisher_score") is not None:
            lines.append(f"Publisher score: {_fmt_reward(ev.get('publisher_score'))}")
        if ev.get("exchange_id"):
            lines.append(f"Data: {ev['exchange_id']}")
        lines.append(f"Closed: {_fmt_time(ev.get('close_time_ms'))}")
        return "\n".join(lines)

    # signal.deferred
    return "\n".join([
        "⚠️ SETTLEMENT DEFERRED",
        f"Market: {ev.get('market') or 'N/A'}",
        f"SignalId: {ev.get('signal_id')}",
        f"Attempts: {ev.get('settle_attempts') or 0}",
        f"Error: {ev.get('error') or 'N/A'}",
        f"Closed: {_fmt_time(ev.get('close_time_ms'))}",
    ])
