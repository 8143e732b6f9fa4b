"""Game state models: traffic light, score, cooldowns and calibration results."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TrafficState(str, Enum):
    """Current discrete alert level."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


@dataclass(frozen=True)
class Transition:
    """A change of traffic state caused by a level reading."""
    previous: TrafficState
    current: TrafficState
    level: float


@dataclass
class ScoreState:
    """Accumulated game progress."""
    points: int = 0
    elapsed_seconds: int = 0
    green_seconds: int = 0
    goal_reached: bool = False


@dataclass
class CooldownState:
    """Loop time at which each alert color last fired (None = never)."""
    last_red_fired_at: Optional[float] = None
    last_yellow_fired_at: Optional[float] = None

    def last_fired(self, color: TrafficState) -> Optional[float]:
        if color is TrafficState.RED:
            return self.last_red_fired_at
        return self.last_yellow_fired_at

    def mark_fired(self, color: TrafficState, when: float) -> None:
        if color is TrafficState.RED:
            self.last_red_fired_at = when
        else:
            self.last_yellow_fired_at = when


@dataclass(frozen=True)
class CalibrationSummary:
    """Result of a completed calibration, all values integers in [0, 100]."""
    preset: str
    baseline: int
    p80: int
    yellow: int
    red: int

    def to_dict(self) -> dict:
        return {
            "preset": self.preset,
            "baseline": self.baseline,
            "p80": self.p80,
            "yellow": self.yellow,
            "red": self.red,
        }


@dataclass(frozen=True)
class CalibrationResult:
    """What a finished calibration hands back to its caller."""
    summary: CalibrationSummary
    should_warn: bool
    sample_count: int


@dataclass
class CalibrationSession:
    """One in-progress calibration run."""
    preset: str
    started_at: float
    duration: float
    opened_audio: bool = False
    samples: List[int] = field(default_factory=list)
