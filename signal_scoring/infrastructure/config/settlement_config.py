# signal_scoring/infrastructure/config/settlement_config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ...domain.services.reward_calculator import RewardConfig
from ..market.exchange_factory import DEFAULT_EXCHANGES, make_exchange_builder, parse_exchange_list


# config/settlement.yaml at the project root
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "settlement.yaml"


class SettlementConfigError(Exception):
    pass


@dataclass
class SettlementConfig:
    exchanges: List[str] = field(default_factory=lambda: list(DEFAULT_EXCHANGES))
    timeframe: str = "1m"
    page_limit: int = 1000
    timeout_ms: int = 30000
    enable_rate_limit: bool = True

    time_cost: float = 0.99999999
    target_cost: float = 0.99
    reward_base: float = 1.0
    entry_mode: str = "first_bar"

    poll_interval_sec: float = 60.0
    signals_path: str = "data/runtime/signals.jsonl"
    scores_path: str = "data/runtime/publisher_scores.jsonl"

    def reward_config(self) -> RewardConfig:
        return RewardConfig(
            time_cost=self.time_cost,
            target_cost=self.target_cost,
            reward_base=self.reward_base,
            entry_mode=self.entry_mode,
        )

    def exchange_builder(self):
        return make_exchange_builder(timeout_ms=self.timeout_ms, enable_rate_limit=self.enable_rate_limit)


# yaml section/key -> attribute
_YAML_KEYS = {
    ("market_data", "exchanges"): "exchanges",
    ("market_data", "timeframe"): "timeframe",
    ("market_data", "page_limit"): "page_limit",
    ("market_data", "timeout_ms"): "timeout_ms",
    ("market_data", "enable_rate_limit"): "enable_rate_limit",
    ("reward", "time_cost"): "time_cost",
    ("reward", "target_cost"): "target_cost",
    ("reward", "reward_base"): "reward_base",
    ("reward", "entry_mode"): "entry_mode",
    ("worker", "poll_interval_sec"): "poll_interval_sec",
    ("storage", "signals_path"): "signals_path",
    ("storage", "scores_path"): "scores_path",
}

_ENV_KEYS = {
    "SETTLEMENT_EXCHANGES": "exchanges",
    "SETTLEMENT_TIMEFRAME": "timeframe",
    "SETTLEMENT_PAGE_LIMIT": "page_limit",
    "EXCHANGE_TIMEOUT_MS": "timeout_ms",
    "EXCHANGE_RATE_LIMIT": "enable_rate_limit",
    "SETTLEMENT_ENTRY_MODE": "entry_mode",
    "SETTLEMENT_POLL_SEC": "poll_interval_sec",
    "SIGNALS_PATH": "signals_path",
    "SCORES_PATH": "scores_path",
}


def _coerce(attr: str, value: Any) -> Any:
    if attr == "exchanges":
        return parse_exchange_list(value)
    if attr in ("page_limit", "timeout_ms"):
        return int(float(value))
    if attr in ("time_cost", "target_cost", "reward_base", "poll_interval_sec"):
        return float(value)
    if attr == "enable_rate_limit":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "y", "on")
    return str(value).strip()


def _read_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise SettlementConfigError(f"{path}: top level must be a mapping")
    return data


def load_settlement_config(path: Optional[str] = None) -> SettlementConfig:
    """Defaults <- YAML file <- environment variables."""
    cfg = SettlementConfig()

    p = Path(path or os.getenv("SETTLEMENT_CONFIG") or DEFAULT_CONFIG_PATH)
    if p.exists():
        data = _read_yaml(p)
        for (section, key), attr in _YAML_KEYS.items():
            sec = data.get(section) or {}
            if key in sec and sec[key] is not None:
                setattr(cfg, attr, _coerce(attr, sec[key]))
    elif path:
        raise SettlementConfigError(f"config file not found: {path}")

    for env_key, attr in _ENV_KEYS.items():
        raw = os.getenv(env_key)
        if raw is not None and raw.strip() != "":
            try:
                setattr(cfg, attr, _coerce(attr, raw))
            except ValueError as e:
                raise SettlementConfigError(f"invalid {env_key}={raw!r}") from e

    if not cfg.exchanges:
        raise SettlementConfigError("at least one exchange must be configured")
    if cfg.page_limit <= 0:
        raise SettlementConfigError("page_limit must be > 0")
    try:
        cfg.reward_config()
    except ValueError as e:
        raise SettlementConfigError(str(e)) from e
    return cfg
