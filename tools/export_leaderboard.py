"""Export publisher scores (sum of settled signal rewards) to CSV.

Usage:
  python tools/export_leaderboard.py [--out data/reports/leaderboard.csv]

Env:
  SCORES_PATH    score ledger (default from config/settlement.yaml)
  SIGNALS_PATH   signal store, used for per-publisher signal counts
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from signal_scoring.domain.entities.signal_aggregate import STATUS_CLOSED
from signal_scoring.infrastructure.config.env_loader import load_env
from signal_scoring.infrastructure.config.settlement_config import load_settlement_config
from signal_scoring.infrastructure.storage.publisher_score_repo_jsonl import PublisherScoreRepoJsonl
from signal_scoring.infrastructure.storage.signal_repo_jsonl import SignalRepoJsonl


def build_leaderboard(score_repo: PublisherScoreRepoJsonl, signal_repo: SignalRepoJsonl) -> pd.DataFrame:
    scores = score_repo.list_scores()
    closed = signal_repo.list_by_status(STATUS_CLOSED)

    rows = []
    for sig in closed:
        rows.append({
            "publisher_id": sig.publisher_id,
            "outcome": sig.reward_state.outcome if sig.reward_state else None,
        })
    per_signal = pd.DataFrame(rows, columns=["publisher_id", "outcome"])
    counts = per_signal.groupby("publisher_id").size().rename("signals_settled")
    wins = per_signal[per_signal["outcome"] == "targets"].groupby("publisher_id").size().rename("signals_with_targets")

    df = pd.DataFrame({"publisher_id": list(scores.keys()), "score": list(scores.values())})
    df = df.merge(counts, how="left", left_on="publisher_id", right_index=True)
    df = df.merge(wins, how="left", left_on="publisher_id", right_index=True)
    df[["signals_settled", "signals_with_targets"]] = df[["signals_settled", "signals_with_targets"]].fillna(0).astype(int)
    return df.sort_values("score", ascending=False).reset_index(drop=True)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="export_leaderboard")
    parser.add_argument("--out", default="data/reports/leaderboard.csv")
    parser.add_argument("--config", default=None)
    args = parser.parse_args(argv)

    load_env()
    cfg = load_settlement_config(args.config)
    df = build_leaderboard(PublisherScoreRepoJsonl(cfg.scores_path), SignalRepoJsonl(cfg.signals_path))

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    print(f"OK: publishers={len(df)} -> {out}")


if __name__ == "__main__":
    main()
