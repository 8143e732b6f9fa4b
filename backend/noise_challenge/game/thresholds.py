"""Derive yellow/red alert thresholds from calibration statistics."""
from typing import Tuple

from noise_challenge.game.models import CalibrationSummary
from noise_challenge.game.presets import get_preset
from noise_challenge.utils.numeric import clamp, round_half_up

# Spread (p80 - baseline) below which the room counts as very stable
LOW_SPREAD = 6
# Offsets used instead of the preset's when the room is very stable
WIDE_YELLOW_OFFSET = 8
WIDE_RED_OFFSET = 16
# Minimum distance kept between the yellow and red thresholds
MIN_SEPARATION = 3
# Baseline above which the room is considered already loud
LOUD_BASELINE = 80


def derive(baseline: float, p80: float, preset: str) -> Tuple[CalibrationSummary, bool]:
    """
    Map calibration statistics to a pair of alert thresholds.

    Steps:
    1. Offset the baseline by the preset's yellow/red offsets, clamped to
       the preset's ranges.
    2. If the room is very stable (spread below LOW_SPREAD), widen both
       thresholds so small fluctuations do not trigger alerts.
    3. Keep MIN_SEPARATION between them, raising red before lowering
       yellow so yellow stays close to what was measured.
    4. Clamp to [0, 100] and round.

    Args:
        baseline: Median calibration level
        p80: 80th percentile calibration level
        preset: Preset key (whisper, partner, group)

    Returns:
        (summary, should_warn) where should_warn means the thresholds were
        safety-capped rather than calibration-derived
    """
    config = get_preset(preset)
    yellow_min, yellow_max = config.yellow_clamp
    red_min, red_max = config.red_clamp

    yellow = clamp(baseline + config.yellow_offset, yellow_min, yellow_max)
    red = clamp(baseline + config.red_offset, red_min, red_max)

    if p80 - baseline < LOW_SPREAD:
        yellow = max(yellow, clamp(baseline + WIDE_YELLOW_OFFSET, yellow_min, yellow_max))
        red = max(red, clamp(baseline + WIDE_RED_OFFSET, red_min, red_max))

    if yellow >= red - MIN_SEPARATION:
        red = max(red, clamp(yellow + MIN_SEPARATION, red_min, red_max))
        if yellow >= red - MIN_SEPARATION:
            yellow = clamp(red - MIN_SEPARATION, yellow_min, yellow_max)

    yellow = clamp(yellow, 0, 100)
    red = clamp(red, 0, 100)

    summary = CalibrationSummary(
        preset=preset,
        baseline=round_half_up(clamp(baseline, 0, 100)),
        p80=round_half_up(clamp(p80, 0, 100)),
        yellow=round_half_up(yellow),
        red=round_half_up(red),
    )

    should_warn = (
        baseline > LOUD_BASELINE
        or summary.yellow >= yellow_max
        or summary.red >= red_max
    )

    return summary, should_warn
