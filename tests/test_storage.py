import json

from signal_scoring.domain.entities.reward_state import RewardState
from signal_scoring.domain.entities.signal_aggregate import SignalAggregate
from signal_scoring.infrastructure.storage.jsonl_repo import JsonlRepo
from signal_scoring.infrastructure.storage.publisher_score_repo_jsonl import PublisherScoreRepoJsonl
from signal_scoring.infrastructure.storage.signal_repo_jsonl import SignalRepoJsonl

from conftest import HOUR_MS, T0


def _signal(signal_id="s1"):
    return SignalAggregate.create(signal_id, "pub", "BTC/USDT", 100.0, 90.0, [105.0], T0, T0 + HOUR_MS)


def test_jsonl_repo_skips_malformed_lines(tmp_path):
    path = tmp_path / "nested" / "rows.jsonl"
    repo = JsonlRepo(str(path))
    repo.append({"a": 1})
    with path.open("a", encoding="utf-8") as f:
        f.write("{not json\n\n[1, 2]\n")
    repo.append({"a": 2, "_write_time_ms": 5})

    rows = repo.read_all()
    assert [r["a"] for r in rows] == [1, 2]
    assert rows[1]["_write_time_ms"] == 5
    assert "_write_time_ms" in rows[0]


def test_jsonl_repo_missing_file(tmp_path):
    assert JsonlRepo(str(tmp_path / "none.jsonl")).read_all() == []


def test_signal_repo_last_row_wins(tmp_path):
    repo = SignalRepoJsonl(str(tmp_path / "signals.jsonl"))
    sig = _signal()
    repo.save(sig)
    repo.save(_signal("s2"))
    sig.refresh_status(T0)
    sig.attach_reward(RewardState(reward=0.1, outcome="targets", max_touched_index=0))
    repo.save(sig)

    loaded = repo.get("s1")
    assert loaded.status == "closed"
    assert loaded.score == 0.1
    assert [s.signal_id for s in repo.list_by_status("not_opened")] == ["s2"]
    assert len(repo.list_by_status()) == 2
    assert repo.get("missing") is None


def test_signal_repo_skips_unreadable_rows(tmp_path):
    path = tmp_path / "signals.jsonl"
    repo = SignalRepoJsonl(str(path))
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps({"signal_id": "bad", "status": "weird", "targets": [1]}) + "\n")
    repo.save(_signal())
    assert [s.signal_id for s in repo.list_by_status()] == ["s1"]


def test_score_ledger_sums_deltas(tmp_path):
    repo = PublisherScoreRepoJsonl(str(tmp_path / "scores.jsonl"))
    assert repo.get_score("alice") == 0.0
    assert repo.add_score("alice", 0.25, signal_id="s1") == 0.25
    repo.add_score("bob", -0.1)
    assert repo.add_score("alice", -0.05, signal_id="s2") == 0.2
    scores = repo.list_scores()
    assert scores["alice"] == 0.2
    assert scores["bob"] == -0.1
