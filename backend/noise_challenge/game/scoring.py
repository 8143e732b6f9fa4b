"""Points game: reward sustained green time, penalize red bursts."""
import asyncio
from dataclasses import replace
from typing import Callable, List, Optional

from noise_challenge.core.config import GameSettings
from noise_challenge.core.logging import logger
from noise_challenge.game.models import ScoreState, TrafficState, Transition
from noise_challenge.utils.formatting import minutes_to_seconds
from noise_challenge.utils.timers import Ticker

TickListener = Callable[[ScoreState], None]


class ScoringEngine:
    """
    Accumulates points over time from traffic-light transitions.

    While active, a 1-second ticker advances elapsed time and, while the
    light is green, a green-time accumulator. Reaching time_in_green
    minutes of green awards add_points. Every transition into red costs
    lose_points (never below zero) and forfeits the green time collected
    so far. The goal flag latches until reset().
    """

    def __init__(
        self,
        game_settings: GameSettings,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.settings = game_settings
        self.score = ScoreState()
        self.state = TrafficState.GREEN
        self._active = False
        self._ticker = Ticker(1.0, self.tick, loop=loop)
        self._tick_listeners: List[TickListener] = []

    def add_tick_listener(self, listener: TickListener) -> None:
        self._tick_listeners.append(listener)

    def update_settings(self, game_settings: GameSettings) -> None:
        self.settings = game_settings
        self._check_goal()

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def points(self) -> int:
        return self.score.points

    @property
    def elapsed_seconds(self) -> int:
        return self.score.elapsed_seconds

    @property
    def goal_reached(self) -> bool:
        return self.score.goal_reached

    def snapshot(self) -> ScoreState:
        return replace(self.score)

    def _green_target_seconds(self) -> float:
        # 0.1 minutes must be exactly 6 seconds, not 6.000000000000001
        return round(minutes_to_seconds(self.settings.time_in_green), 6)

    # Lifecycle

    def start(self) -> None:
        """Start (or resume) the 1-second ticker."""
        if self._active:
            return
        self._active = True
        self._ticker.start()
        logger.info("Scoring started")

    def pause(self) -> None:
        """Freeze all timers; nothing accumulates until start() again."""
        if not self._active:
            return
        self._active = False
        self._ticker.stop()
        logger.info(f"Scoring paused at {self.score.points} points, {self.score.elapsed_seconds}s")

    def reset(self) -> None:
        """Zero the score. An active engine restarts its ticker from zero."""
        self.score = ScoreState()
        if self._active:
            self._ticker.restart()
        logger.info("Score reset")

    # Events

    def tick(self) -> None:
        """Advance the game clock by one second."""
        self.score.elapsed_seconds += 1

        if self.state is TrafficState.GREEN:
            self.score.green_seconds += 1
            if self.score.green_seconds >= self._green_target_seconds():
                self.score.points += self.settings.add_points
                self.score.green_seconds = 0
                logger.info(f"Awarded {self.settings.add_points} point(s), total {self.score.points}")

        self._check_goal()
        for listener in list(self._tick_listeners):
            listener(self.snapshot())

    def on_transition(self, transition: Transition) -> None:
        """Record a state change; entering red costs points while active."""
        self.state = transition.current
        if not self._active or transition.current is not TrafficState.RED:
            return

        self.score.points = max(0, self.score.points - self.settings.lose_points)
        self.score.green_seconds = 0
        logger.info(f"Red alert: lost {self.settings.lose_points} point(s), total {self.score.points}")

    def _check_goal(self) -> None:
        if not self.score.goal_reached and self.score.points >= self.settings.goal:
            self.score.goal_reached = True
            logger.info(f"Goal of {self.settings.goal} reached")
