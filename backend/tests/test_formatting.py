"""Tests for duration and rules formatting."""
from noise_challenge.core.config import GameSettings
from noise_challenge.utils.formatting import format_duration, minutes_to_seconds, minutes_to_string, rules_summary
from noise_challenge.utils.numeric import clamp, round_half_up


def test_format_duration():
    assert format_duration(0) == "00:00"
    assert format_duration(75) == "01:15"
    assert format_duration(3600) == "60:00"


def test_minutes_to_string():
    """Sub-minute values are spelled out in seconds."""
    assert minutes_to_string(0.1) == "6 seconds"
    assert minutes_to_string(1 / 60) == "1 second"
    assert minutes_to_string(1) == "1 minute"
    assert minutes_to_string(2) == "2 minutes"
    assert minutes_to_string(2.5) == "2 minutes, 30 seconds"
    assert minutes_to_string(1 + 1 / 60) == "1 minute, 1 second"


def test_minutes_to_seconds():
    assert minutes_to_seconds(1.5) == 90


def test_rules_summary():
    game_settings = GameSettings(add_points=2, lose_points=3, time_in_green=0.5)

    summary = rules_summary(game_settings)

    assert "Earn 2 point(s) for every 30 seconds in the green" in summary
    assert "Lose 3 point(s)" in summary


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(-0.5) == 0


def test_clamp():
    assert clamp(-5, 0, 100) == 0
    assert clamp(150, 0, 100) == 100
    assert clamp(42, 0, 100) == 42
