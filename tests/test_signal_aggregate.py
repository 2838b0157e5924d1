import pytest

from signal_scoring.domain.entities.reward_state import RewardState
from signal_scoring.domain.entities.signal_aggregate import (
    STATUS_CLOSED,
    STATUS_NOT_OPENED,
    STATUS_OPEN,
    SignalAggregate,
    SignalAggregateError,
    ms_to_iso,
)
from signal_scoring.domain.entities.target import Target

from conftest import HOUR_MS, T0


def _signal(**kw):
    params = dict(
        signal_id="s1",
        publisher_id="pub",
        market="BTC/USDT",
        entry_point=100.0,
        stop_loss=90.0,
        targets=[105.0, 110.0],
        open_time_ms=T0,
        close_time_ms=T0 + 6 * HOUR_MS,
    )
    params.update(kw)
    return SignalAggregate.create(**params)


def test_ms_to_iso():
    assert ms_to_iso(T0) == "2025-01-01T00:00:00.000Z"
    assert ms_to_iso(T0 + 1234) == "2025-01-01T00:00:01.234Z"


def test_create_rejects_inverted_window():
    with pytest.raises(SignalAggregateError):
        _signal(close_time_ms=T0)


def test_refresh_status_within_grace():
    sig = _signal()
    assert sig.refresh_status(T0 - 5000) is False
    assert sig.status == STATUS_NOT_OPENED
    assert sig.refresh_status(T0 - 1000) is True
    assert sig.status == STATUS_OPEN
    assert sig.refresh_status(T0) is False


def test_is_due_only_when_open():
    sig = _signal()
    close = sig.close_time_ms
    assert sig.is_due(close) is False
    sig.refresh_status(T0)
    assert sig.is_due(close - 2000) is False
    assert sig.is_due(close - 1000) is True


def test_attach_reward_closes_and_copies_touches():
    sig = _signal()
    sig.refresh_status(T0)
    sig.record_deferral(RuntimeError("boom"))
    reward = RewardState(
        reward=0.5,
        outcome="targets",
        max_touched_index=0,
        targets=[Target(105.0, 0, True, T0 + HOUR_MS), Target(110.0, 1)],
    )
    sig.attach_reward(reward)
    assert sig.status == STATUS_CLOSED
    assert sig.score == 0.5
    assert sig.last_error is None
    assert sig.targets[0].touched_at_ms == T0 + HOUR_MS
    assert sig.targets[1].touched is False
    with pytest.raises(SignalAggregateError):
        sig.attach_reward(reward)


def test_attach_reward_requires_open():
    with pytest.raises(SignalAggregateError):
        _signal().attach_reward(RewardState(reward=0.0, outcome="expired"))


def test_record_deferral():
    sig = _signal()
    sig.record_deferral(ValueError("bad"))
    sig.record_deferral(ValueError("bad"))
    assert sig.settle_attempts == 2
    assert sig.last_error == "ValueError: bad"


def test_to_settlement_request():
    req = _signal().to_settlement_request(["kucoin"], timeframe="1h")
    assert req.start_time_iso == "2025-01-01T00:00:00.000Z"
    assert req.end_time_iso == "2025-01-01T06:00:00.000Z"
    assert req.targets == (105.0, 110.0)
    assert req.timeframe == "1h"


def test_dict_round_trip():
    sig = _signal(meta={"channel": "alpha"})
    sig.refresh_status(T0)
    sig.attach_reward(RewardState(reward=-0.1, outcome="stop_loss", exited_by_stop=True, exit_time_ms=T0))
    restored = SignalAggregate.from_dict(sig.to_dict())
    assert restored.to_dict() == sig.to_dict()


def test_from_dict_rejects_unknown_status():
    data = _signal().to_dict()
    data["status"] = "pending"
    with pytest.raises(SignalAggregateError):
        SignalAggregate.from_dict(data)
