"""Noise-environment presets used to turn a room baseline into thresholds."""
from dataclasses import dataclass
from typing import Dict, Tuple

from noise_challenge.core.errors import UnknownPreset


@dataclass(frozen=True)
class PresetConfig:
    """Static tuning for one noise environment."""
    label: str
    yellow_offset: int
    red_offset: int
    yellow_clamp: Tuple[int, int]  # (min, max)
    red_clamp: Tuple[int, int]  # (min, max)

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "yellow_offset": self.yellow_offset,
            "red_offset": self.red_offset,
            "yellow_clamp": {"min": self.yellow_clamp[0], "max": self.yellow_clamp[1]},
            "red_clamp": {"min": self.red_clamp[0], "max": self.red_clamp[1]},
        }


PRESETS: Dict[str, PresetConfig] = {
    "whisper": PresetConfig(
        label="Whisper",
        yellow_offset=6,
        red_offset=12,
        yellow_clamp=(10, 90),
        red_clamp=(15, 95),
    ),
    "partner": PresetConfig(
        label="Partner",
        yellow_offset=12,
        red_offset=20,
        yellow_clamp=(15, 90),
        red_clamp=(20, 95),
    ),
    "group": PresetConfig(
        label="Group",
        yellow_offset=18,
        red_offset=28,
        yellow_clamp=(20, 92),
        red_clamp=(28, 96),
    ),
}


def get_preset(key: str) -> PresetConfig:
    """Look up a preset, raising UnknownPreset for bad keys."""
    try:
        return PRESETS[key]
    except KeyError:
        raise UnknownPreset(f"Unknown preset '{key}', expected one of {sorted(PRESETS)}") from None
