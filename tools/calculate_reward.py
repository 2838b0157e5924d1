"""Compute the reward for one signal window and print it as JSON.

Usage:
  python tools/calculate_reward.py --market BTC/USDT --entry 100 --stop 90 \
      --targets 105,110 --start 2025-01-01T00:00:00Z --end 2025-01-02T00:00:00Z

  python tools/calculate_reward.py --payload request.json

The payload file uses the settlement request keys:
  {"exchangeCandidates": [...], "market": "BTC/USDT", "timeframe": "1m",
   "startTimeIso": "...", "endTimeIso": "...", "entryPoint": 100,
   "stopLoss": 90, "targets": [105, 110]}

Exit codes: 0 ok, 2 invalid parameters, 3 market data unavailable.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from signal_scoring.application.usecases.calculate_reward_usecase import CalculateRewardUsecase
from signal_scoring.domain.errors import DataUnavailable, InvalidParameters
from signal_scoring.infrastructure.config.env_loader import load_env
from signal_scoring.infrastructure.config.settlement_config import load_settlement_config
from signal_scoring.infrastructure.market.ccxt_market_data import CcxtMarketData
from signal_scoring.infrastructure.market.exchange_factory import parse_exchange_list


def _payload_from_args(args) -> dict:
    if args.payload:
        return json.loads(Path(args.payload).read_text(encoding="utf-8"))
    payload = {
        "market": args.market,
        "timeframe": args.timeframe,
        "startTimeIso": args.start,
        "endTimeIso": args.end,
        "entryPoint": args.entry,
        "stopLoss": args.stop,
        "targets": [x for x in (args.targets or "").split(",") if x.strip()],
    }
    if args.exchanges:
        payload["exchangeCandidates"] = parse_exchange_list(args.exchanges)
    return payload


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="calculate_reward")
    parser.add_argument("--payload", help="JSON file with the settlement request")
    parser.add_argument("--market")
    parser.add_argument("--timeframe", default=None)
    parser.add_argument("--start")
    parser.add_argument("--end")
    parser.add_argument("--entry")
    parser.add_argument("--stop")
    parser.add_argument("--targets", help="comma separated, nearest first")
    parser.add_argument("--exchanges", help="comma separated venue ids, tried in order")
    parser.add_argument("--config", default=None)
    args = parser.parse_args(argv)

    load_env()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    cfg = load_settlement_config(args.config)
    if args.timeframe is None:
        args.timeframe = cfg.timeframe

    market_data = CcxtMarketData(exchange_builder=cfg.exchange_builder(), page_limit=cfg.page_limit)
    uc = CalculateRewardUsecase(market_data, config=cfg.reward_config(), default_exchanges=cfg.exchanges)

    try:
        state = uc.execute(_payload_from_args(args))
    except InvalidParameters as e:
        print(json.dumps({"ok": False, "error": "invalid_parameters", "message": str(e)}))
        return 2
    except DataUnavailable as e:
        print(json.dumps({"ok": False, "error": "data_unavailable", "message": str(e)}))
        return 3

    out = {"ok": True}
    out.update(state.to_dict())
    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
