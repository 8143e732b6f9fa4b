"""Three-state traffic light driven by the smoothed level."""
from typing import Optional

from noise_challenge.game.models import CalibrationSummary, TrafficState, Transition


class TrafficStateMachine:
    """
    Maps each level reading to green, yellow or red.

    level < yellow -> green, yellow <= level < red -> yellow,
    level >= red -> red. There is no hysteresis: readings hovering on a
    threshold flip the state every time they cross it.
    """

    def __init__(self, yellow_threshold: float, red_threshold: float):
        self.state = TrafficState.GREEN
        self.set_thresholds(yellow_threshold, red_threshold)

    def set_thresholds(self, yellow_threshold: float, red_threshold: float) -> None:
        if red_threshold <= yellow_threshold:
            raise ValueError(
                f"Red threshold ({red_threshold}) must be above yellow ({yellow_threshold})"
            )
        self.yellow_threshold = yellow_threshold
        self.red_threshold = red_threshold

    def apply_calibration(self, summary: CalibrationSummary) -> None:
        self.set_thresholds(summary.yellow, summary.red)

    def classify(self, level: float) -> TrafficState:
        if level < self.yellow_threshold:
            return TrafficState.GREEN
        if level < self.red_threshold:
            return TrafficState.YELLOW
        return TrafficState.RED

    def evaluate(self, level: float) -> Optional[Transition]:
        """Update the state from a new reading; return the transition if it changed."""
        new_state = self.classify(level)
        if new_state is self.state:
            return None
        transition = Transition(previous=self.state, current=new_state, level=level)
        self.state = new_state
        return transition

    def reset(self) -> None:
        self.state = TrafficState.GREEN
