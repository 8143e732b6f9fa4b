"""One noise-challenge session: the per-frame level -> state -> score/alert pipeline."""
import asyncio
from typing import Optional

from noise_challenge.audio.level import LevelEstimator
from noise_challenge.audio.models import LevelSample
from noise_challenge.audio.sources import AudioSource
from noise_challenge.core.config import GameSettings
from noise_challenge.core.errors import CalibrationError, NoiseChallengeError
from noise_challenge.core.logging import logger
from noise_challenge.game.alerts import AlertDispatcher
from noise_challenge.game.calibration import CalibrationSampler
from noise_challenge.game.models import CalibrationResult, ScoreState, TrafficState, Transition
from noise_challenge.game.scoring import ScoringEngine
from noise_challenge.game.traffic import TrafficStateMachine
from noise_challenge.utils.formatting import format_duration
from noise_challenge.utils.numeric import clamp, round_half_up


class SessionListener:
    """Callbacks a host can override to observe a session. All are optional."""

    def on_level(self, session: "NoiseSession", sample: LevelSample) -> None:
        pass

    def on_transition(self, session: "NoiseSession", transition: Transition) -> None:
        pass

    def on_tick(self, session: "NoiseSession", score: ScoreState) -> None:
        pass

    def on_alert(self, session: "NoiseSession", color: TrafficState) -> None:
        pass

    def on_calibrated(self, session: "NoiseSession", result: CalibrationResult) -> None:
        pass

    def on_calibration_failed(self, session: "NoiseSession", error: CalibrationError) -> None:
        pass

    def on_stopped(self, session: "NoiseSession", reason: str) -> None:
        pass


class NoiseSession:
    """
    Wires the estimator, traffic light, scoring and alerts for one stream.

    Every level reading runs through a fixed order: calibration sample,
    traffic evaluation, then scoring and alerts on a transition. Nothing
    here reads global state; settings come in through the constructor or
    update_settings().
    """

    def __init__(
        self,
        stream_id: str,
        source: AudioSource,
        game_settings: GameSettings,
        listener: Optional[SessionListener] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.stream_id = stream_id
        self.settings = game_settings
        self.listener = listener or SessionListener()
        self.timer_mode = False

        self.estimator = LevelEstimator(
            source,
            window_size=game_settings.average_window_size,
            method=game_settings.level_method,
        )
        self.traffic = TrafficStateMachine(game_settings.yellow_min_dec, game_settings.red_min_dec)
        self.scoring = ScoringEngine(game_settings, loop=loop)
        self.alerts = AlertDispatcher(game_settings, self._on_alert, loop=loop)
        self.calibration = CalibrationSampler(
            self.estimator,
            on_complete=self._on_calibrated,
            on_error=self._on_calibration_failed,
            loop=loop,
        )
        self.last_calibration: Optional[CalibrationResult] = None

        self.estimator.add_listener(self._on_level)
        self.estimator.add_device_lost_listener(self._on_device_lost)
        self.estimator.add_stop_listener(self._on_audio_stopped)
        self.scoring.add_tick_listener(self._on_tick)

    # Lifecycle

    @property
    def is_active(self) -> bool:
        return self.estimator.is_active and self.scoring.is_active

    async def start(self, timer_mode: bool = False) -> None:
        """
        Start listening and scoring.

        Raises:
            PermissionDenied, DeviceUnavailable: audio could not be acquired;
            score and state are left untouched
        """
        await self.estimator.start()
        if self.calibration.is_active:
            # The game now owns the audio; calibration must not release it
            self.calibration.session.opened_audio = False
        self.timer_mode = timer_mode and self.settings.timer > 0
        self.scoring.start()
        logger.info(f"Session {self.stream_id} started ({'timer' if self.timer_mode else 'stopwatch'} mode)")

    def stop(self, reason: str = "stopped") -> None:
        """Stop listening; pending alerts are dropped and the score is frozen."""
        was_active = self.is_active
        if self.calibration.is_active:
            self.calibration.cancel()
        self.estimator.stop()
        self.alerts.cancel_pending()
        self.scoring.pause()
        if was_active:
            logger.info(f"Session {self.stream_id} stopped: {reason}")
            self.listener.on_stopped(self, reason)

    def reset(self) -> None:
        """Zero the score and forget alert cooldowns."""
        self.scoring.reset()
        self.alerts.reset()

    def update_settings(self, game_settings: GameSettings) -> None:
        self.settings = game_settings
        self.traffic.set_thresholds(game_settings.yellow_min_dec, game_settings.red_min_dec)
        self.estimator.set_window_size(game_settings.average_window_size)
        self.estimator.set_method(game_settings.level_method)
        self.scoring.update_settings(game_settings)
        self.alerts.update_settings(game_settings)
        if game_settings.timer <= 0:
            self.timer_mode = False
        logger.info(f"Session {self.stream_id} settings updated")

    # Calibration

    async def calibrate(self, preset: str) -> None:
        """
        Begin a room calibration; the result arrives via the listener.

        Raises:
            AlreadyCalibrating, UnknownPreset, PermissionDenied, DeviceUnavailable
        """
        await self.calibration.begin(preset)

    def cancel_calibration(self) -> None:
        self.calibration.cancel()

    def _on_calibrated(self, result: CalibrationResult) -> None:
        self.last_calibration = result
        self.settings = self.settings.model_copy(
            update={"yellow_min_dec": result.summary.yellow, "red_min_dec": result.summary.red}
        )
        self.traffic.apply_calibration(result.summary)
        self.listener.on_calibrated(self, result)

    def _on_calibration_failed(self, error: CalibrationError) -> None:
        self.listener.on_calibration_failed(self, error)

    # Pipeline

    def _on_level(self, sample: LevelSample) -> None:
        # A red reading during calibration is just another sample; calibration carries on
        self.calibration.add_sample(sample.level)

        transition = self.traffic.evaluate(sample.level)
        if transition is not None:
            self.scoring.on_transition(transition)
            if self.scoring.is_active:
                self.alerts.on_transition(transition)
            self.listener.on_transition(self, transition)

        self.listener.on_level(self, sample)

    def _on_tick(self, score: ScoreState) -> None:
        self.listener.on_tick(self, score)
        if self.timer_mode and self.remaining_seconds == 0:
            self.stop(reason="timer")

    def _on_alert(self, color: TrafficState) -> None:
        self.listener.on_alert(self, color)

    def _on_audio_stopped(self) -> None:
        # The level is 0 once the input is released; the light must follow it
        transition = self.traffic.evaluate(self.estimator.level)
        if transition is not None:
            self.scoring.on_transition(transition)
            if self.scoring.is_active:
                self.alerts.on_transition(transition)
            self.listener.on_transition(self, transition)

    def _on_device_lost(self, error: NoiseChallengeError) -> None:
        self.alerts.cancel_pending()
        self.scoring.pause()
        logger.warning(f"Session {self.stream_id} lost its audio input: {error}")
        self.listener.on_stopped(self, error.code)

    # Reporting

    @property
    def remaining_seconds(self) -> Optional[int]:
        if not self.timer_mode:
            return None
        total = round_half_up(self.settings.timer * 60)
        return max(0, total - self.scoring.elapsed_seconds)

    @property
    def display_level(self) -> int:
        return int(clamp(round_half_up(self.estimator.level), 0, 100))

    def snapshot(self) -> dict:
        """JSON-ready view of the session for clients."""
        score = self.scoring.snapshot()
        remaining = self.remaining_seconds
        clock = remaining if remaining is not None else score.elapsed_seconds
        return {
            "stream_id": self.stream_id,
            "active": self.is_active,
            "level": self.display_level,
            "raw_level": round(self.estimator.level, 2),
            "state": self.traffic.state.value,
            "points": score.points,
            "goal": self.settings.goal,
            "goal_reached": score.goal_reached,
            "elapsed_seconds": score.elapsed_seconds,
            "remaining_seconds": remaining,
            "clock": format_duration(clock),
            "thresholds": {
                "yellow": self.traffic.yellow_threshold,
                "red": self.traffic.red_threshold,
            },
            "calibrating": self.calibration.is_active,
            "calibration_remaining": round(self.calibration.remaining_seconds, 1),
            "calibration_progress": round(self.calibration.progress, 1),
            "last_calibration": (
                self.last_calibration.summary.to_dict() if self.last_calibration else None
            ),
        }
