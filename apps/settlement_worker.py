"""Settlement worker.

Polls the signal store, opens signals whose open time has passed and settles
signals whose close time has passed: fetch candles (CCXT, venue fallback),
compute the reward, persist the score and credit the publisher.

Usage:
    python -m apps.settlement_worker            # loop
    python -m apps.settlement_worker --once     # single tick (cron)

Env (see config/settlement.yaml for the full list):
    SETTLEMENT_CONFIG      path to YAML config
    SETTLEMENT_EXCHANGES   comma list, tried in order (e.g. kucoin,gate,binance)
    SETTLEMENT_POLL_SEC    seconds between ticks
    TELEGRAM_ENABLED / TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID  operator alerts
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from signal_scoring.infrastructure.config.env_loader import load_env
from signal_scoring.infrastructure.config.settlement_config import SettlementConfig, load_settlement_config
from signal_scoring.infrastructure.events.event_dispatcher import EventDispatcher
from signal_scoring.infrastructure.market.ccxt_market_data import CcxtMarketData
from signal_scoring.infrastructure.notify.tele_notifier import TeleNotifier
from signal_scoring.infrastructure.notify.telegram_client import TelegramClient
from signal_scoring.infrastructure.storage.publisher_score_repo_jsonl import PublisherScoreRepoJsonl
from signal_scoring.infrastructure.storage.signal_repo_jsonl import SignalRepoJsonl
from signal_scoring.application.usecases.calculate_reward_usecase import CalculateRewardUsecase
from signal_scoring.application.usecases.settle_signal_usecase import SettleSignalUsecase
from signal_scoring.interfaces.bots.settle_bot import SettleBot


logger = logging.getLogger("settlement_worker")


def build_pipeline(cfg: SettlementConfig, notifier: Optional[TeleNotifier] = None) -> Dict[str, Any]:
    market_data = CcxtMarketData(exchange_builder=cfg.exchange_builder(), page_limit=cfg.page_limit)
    signal_repo = SignalRepoJsonl(cfg.signals_path)
    score_repo = PublisherScoreRepoJsonl(cfg.scores_path)

    dispatcher = EventDispatcher()
    notifier = notifier or TeleNotifier(client=TelegramClient())
    dispatcher.subscribe("signal.settled", notifier.handle_event)
    dispatcher.subscribe("signal.deferred", notifier.handle_event)

    reward_uc = CalculateRewardUsecase(market_data, config=cfg.reward_config(), default_exchanges=cfg.exchanges)
    settle_uc = SettleSignalUsecase(
        signal_repo,
        score_repo,
        reward_uc,
        exchange_candidates=cfg.exchanges,
        timeframe=cfg.timeframe,
        event_bus=dispatcher,
    )
    return {
        "market_data": market_data,
        "signal_repo": signal_repo,
        "score_repo": score_repo,
        "dispatcher": dispatcher,
        "reward_uc": reward_uc,
        "settle_uc": settle_uc,
        "bot": SettleBot(settle_uc),
    }


def run_loop(bot: SettleBot, poll_interval_sec: float, once: bool = False) -> None:
    while True:
        try:
            summary = bot.tick()
            logger.debug("tick ok: %s", summary.to_dict())
        except Exception:
            # storage/config problems; keep the worker alive for the next tick
            logger.exception("settlement tick failed")
        if once:
            return
        time.sleep(max(1.0, float(poll_interval_sec)))


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="settlement_worker")
    parser.add_argument("--once", action="store_true", help="run a single tick and exit")
    parser.add_argument("--config", default=None, help="YAML config path")
    parser.add_argument("--env-file", default=None)
    args = parser.parse_args(argv)

    env_used = load_env(args.env_file)
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("Env loaded from: %s", env_used or "(none)")

    cfg = load_settlement_config(args.config)
    logger.info(
        "Start settlement worker. exchanges=%s timeframe=%s entry_mode=%s poll=%ss",
        ",".join(cfg.exchanges), cfg.timeframe, cfg.entry_mode, cfg.poll_interval_sec,
    )
    pipe = build_pipeline(cfg)
    try:
        run_loop(pipe["bot"], cfg.poll_interval_sec, once=args.once)
    except KeyboardInterrupt:
        logger.info("settlement worker stopped")


if __name__ == "__main__":
    main()
