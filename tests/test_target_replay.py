import pytest

from signal_scoring.domain.entities.target import Target, fresh_targets
from signal_scoring.domain.services.target_replay import replay_candles

from conftest import HOUR_MS, T0, hourly


def _targets(*values):
    return [Target(value=v, index=i) for i, v in enumerate(values)]


def test_arming_persists_after_price_drops_below_entry():
    targets = _targets(105.0)
    res = replay_candles(hourly([(101, 99), (98, 95), (106, 96)]), 100.0, 90.0, targets)
    assert res.armed and res.armed_at_ms == T0
    assert not res.aborted
    assert targets[0].touched_at_ms == T0 + 2 * HOUR_MS


def test_first_bar_abort_leaves_targets_untouched():
    targets = _targets(105.0)
    res = replay_candles(hourly([(99, 95), (110, 100)]), 100.0, 90.0, targets)
    assert res.aborted and not res.armed
    assert res.candles_evaluated == 1
    assert res.untouched() == targets


def test_scan_mode_never_arms():
    res = replay_candles(hourly([(99, 95), (98, 80)]), 100.0, 90.0, _targets(105.0), entry_mode="scan")
    assert not res.armed and not res.aborted
    # stop below entry is not evaluated while unarmed
    assert res.exited_by_stop is False


def test_touch_keeps_first_timestamp():
    targets = _targets(105.0)
    replay_candles(hourly([(106, 99), (120, 100)]), 100.0, 90.0, targets)
    assert targets[0].touched_at_ms == T0


def test_high_equal_to_entry_arms_and_low_equal_to_stop_exits():
    res = replay_candles(hourly([(100, 95), (101, 90)]), 100.0, 90.0, _targets(105.0))
    assert res.armed_at_ms == T0
    assert res.exited_by_stop and res.exit_time_ms == T0 + HOUR_MS


def test_unknown_entry_mode():
    with pytest.raises(ValueError):
        replay_candles([], 100.0, 90.0, [], entry_mode="late")


def test_fresh_targets_copies_and_indexes():
    src = [Target(value=110.0, index=3, touched=True, touched_at_ms=T0)]
    out = fresh_targets(src + [120])
    assert out[0].index == 3 and out[0].touched is False and out[0].touched_at_ms is None
    assert out[1].index == 1 and out[1].value == 120.0
    assert src[0].touched is True
