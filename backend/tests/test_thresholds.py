"""Unit tests for threshold derivation."""
import pytest
from noise_challenge.core.errors import UnknownPreset
from noise_challenge.game.presets import PRESETS
from noise_challenge.game.thresholds import derive


def test_low_spread_widens_thresholds():
    """Whisper, baseline 50, p80 52: spread 2 widens to 58 / 66."""
    summary, should_warn = derive(50, 52, "whisper")

    assert summary.yellow == 58
    assert summary.red == 66
    assert summary.baseline == 50
    assert summary.p80 == 52
    assert not should_warn


def test_normal_spread_uses_preset_offsets():
    """Partner, baseline 40, p80 50: plain offsets 52 / 60."""
    summary, should_warn = derive(40, 50, "partner")

    assert (summary.yellow, summary.red) == (52, 60)
    assert not should_warn


def test_loud_baseline_warns():
    """Group, baseline 85: warn because the room is already loud."""
    summary, should_warn = derive(85, 90, "group")

    assert should_warn
    assert summary.yellow == 92
    assert summary.red == 96


def test_clamp_ceiling_warns():
    """Reaching a clamp ceiling warns even with a moderate baseline."""
    summary, should_warn = derive(78, 90, "whisper")

    assert summary.red == 90
    assert summary.yellow == 84
    assert not should_warn

    summary, should_warn = derive(80, 90, "group")
    assert summary.yellow == 92
    assert should_warn


def test_wide_enough_gap_is_left_alone():
    """Partner at baseline 0: both thresholds sit at their floors, already 5 apart."""
    summary, _ = derive(0, 0, "partner")

    assert summary.red == 20
    assert summary.yellow == 15


def test_rounding_is_half_up():
    """Fractional statistics round half up."""
    summary, _ = derive(40.5, 52.5, "whisper")

    assert summary.baseline == 41
    assert summary.p80 == 53
    assert summary.yellow == 47
    assert summary.red == 53


@pytest.mark.parametrize("preset", sorted(PRESETS))
def test_yellow_below_red_everywhere(preset):
    """yellow < red and both in [0, 100] across the whole input range."""
    for baseline in range(0, 101, 5):
        for spread in (-5, 0, 3, 6, 15, 40):
            summary, _ = derive(baseline, baseline + spread, preset)
            assert 0 <= summary.yellow < summary.red <= 100


def test_unknown_preset():
    """Bad preset keys raise UnknownPreset (a ValueError)."""
    with pytest.raises(ValueError):
        derive(50, 60, "library")
    with pytest.raises(UnknownPreset):
        derive(50, 60, "library")
