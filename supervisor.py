#!/usr/bin/env python3
"""Entrypoint router.

- `python supervisor.py demo`            -> offline demo (same as main.py demo)
- `python supervisor.py worker [--once]` -> settlement worker loop
- `python supervisor.py reward ...`      -> one-shot reward calculation (tools/calculate_reward.py)

Secrets (Telegram token) belong in /etc/signal_scoring/signal_scoring.env (chmod 600),
not in a project-root .env.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parent


def main() -> None:
    parser = argparse.ArgumentParser(prog="signal_scoring supervisor")
    parser.add_argument("cmd", nargs="?", default="worker", choices=["demo", "worker", "reward"])
    args, rest = parser.parse_known_args()

    if str(ROOT) not in sys.path:
        sys.path.insert(0, str(ROOT))

    if os.path.isfile(ROOT / ".env"):
        print(
            "[SECURITY] Found .env in project directory. "
            "Prefer /etc/signal_scoring/signal_scoring.env to avoid accidental leaks.",
            file=sys.stderr,
        )

    if args.cmd == "demo":
        from main import demo_flow

        demo_flow()
        return

    if args.cmd == "worker":
        from apps.settlement_worker import main as worker_main

        worker_main(rest)
        return

    if args.cmd == "reward":
        from tools.calculate_reward import main as reward_main

        raise SystemExit(reward_main(rest))


if __name__ == "__main__":
    main()
