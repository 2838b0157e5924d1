# signal_scoring/infrastructure/market/exchange_factory.py
from __future__ import annotations

from typing import Callable, List

import ccxt


DEFAULT_EXCHANGES = ("kucoin", "gate", "mexc", "binance")

# Old ccxt ids still found in stored configs and signal payloads.
_LEGACY_IDS = {"gateio": "gate"}


class ExchangeAdapterError(Exception):
    pass


def make_spot_exchange(exchange_id: str, timeout_ms: int = 30000, enable_rate_limit: bool = True):
    """Public (no keys) CCXT spot client for OHLCV reads."""
    ex_id = (exchange_id or "").lower().strip()
    ex_id = _LEGACY_IDS.get(ex_id, ex_id)
    if not ex_id or not hasattr(ccxt, ex_id):
        raise ExchangeAdapterError(f"ccxt does not support exchange_id={exchange_id!r}")

    klass = getattr(ccxt, ex_id)
    try:
        return klass(
            {
                "enableRateLimit": bool(enable_rate_limit),
                "timeout": int(timeout_ms),
                "options": {"defaultType": "spot"},
            }
        )
    except Exception as e:
        raise ExchangeAdapterError(f"failed to build exchange {ex_id}: {e}") from e


def make_exchange_builder(timeout_ms: int = 30000, enable_rate_limit: bool = True) -> Callable[[str], object]:
    """Factory: exchange_id -> spot client, with shared client settings."""

    def build(exchange_id: str):
        return make_spot_exchange(exchange_id, timeout_ms=timeout_ms, enable_rate_limit=enable_rate_limit)

    return build


def parse_exchange_list(raw) -> List[str]:
    """'kucoin, gate' or ['kucoin', 'gate'] -> ['kucoin', 'gate'] (order kept, de-duped)."""
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    out: List[str] = []
    for x in items:
        s = str(x).strip().lower()
        if s and s not in out:
            out.append(s)
    return out
