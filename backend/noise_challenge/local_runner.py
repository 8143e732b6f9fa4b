"""
Run a noise challenge on the local microphone and log what happens.

Usage:
    python -m noise_challenge.local_runner [preset]

With a preset (whisper, partner or group) the room is calibrated first
and the derived thresholds are used for the game.
"""
import asyncio
import sys
from typing import Optional

from noise_challenge.audio.models import LevelSample
from noise_challenge.core.config import settings
from noise_challenge.core.errors import AudioAcquisitionError, CalibrationError, NoiseChallengeError
from noise_challenge.core.logging import logger, setup_logging
from noise_challenge.game.models import CalibrationResult, ScoreState, TrafficState, Transition
from noise_challenge.game.presets import get_preset
from noise_challenge.game.session import NoiseSession, SessionListener
from noise_challenge.utils.formatting import format_duration, rules_summary

LEVEL_LOG_EVERY = 60  # frames between level log lines


class LoggingListener(SessionListener):
    """Writes session events to the log."""

    def __init__(self):
        self.calibration_done = asyncio.Event()
        self.stopped = asyncio.Event()
        self.calibration_result: Optional[CalibrationResult] = None

    def on_level(self, session: NoiseSession, sample: LevelSample) -> None:
        if sample.sequence % LEVEL_LOG_EVERY == 0:
            logger.debug(f"Level {session.display_level} ({session.traffic.state.value})")

    def on_transition(self, session: NoiseSession, transition: Transition) -> None:
        logger.info(f"Light {transition.previous.value} -> {transition.current.value} at level {transition.level:.1f}")

    def on_tick(self, session: NoiseSession, score: ScoreState) -> None:
        if score.elapsed_seconds % 10 == 0:
            snapshot = session.snapshot()
            logger.info(f"{snapshot['clock']}  score {score.points}/{session.settings.goal}  level {snapshot['level']}")

    def on_alert(self, session: NoiseSession, color: TrafficState) -> None:
        logger.warning("Shh!" if color is TrafficState.YELLOW else "Be quiet!")

    def on_calibrated(self, session: NoiseSession, result: CalibrationResult) -> None:
        self.calibration_result = result
        self.calibration_done.set()

    def on_calibration_failed(self, session: NoiseSession, error: CalibrationError) -> None:
        logger.error(f"Calibration failed: {error}")
        self.calibration_done.set()

    def on_stopped(self, session: NoiseSession, reason: str) -> None:
        self.stopped.set()


async def run(preset: Optional[str] = None) -> None:
    # sounddevice needs PortAudio at import time; only load it when capturing
    from noise_challenge.audio.microphone import MicrophoneSource

    listener = LoggingListener()
    source = MicrophoneSource(
        sample_rate=settings.sample_rate,
        block_size=int(settings.sample_rate * settings.frame_size_ms / 1000),
        device=settings.input_device,
    )
    session = NoiseSession("local-mic", source, settings.game_settings(), listener=listener)

    if preset:
        await session.calibrate(preset)
        await listener.calibration_done.wait()
        result = listener.calibration_result
        if result is not None:
            summary = result.summary
            logger.info(f"Using thresholds yellow {summary.yellow}, red {summary.red} (baseline {summary.baseline})")

    logger.info(rules_summary(session.settings))
    await session.start(timer_mode=session.settings.timer > 0)
    try:
        await listener.stopped.wait()
    finally:
        session.stop()
        score = session.scoring.snapshot()
        logger.info(
            f"Final score {score.points} in {format_duration(score.elapsed_seconds)}"
            f"{' - goal reached!' if score.goal_reached else ''}"
        )


def main() -> None:
    setup_logging()
    preset = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        if preset:
            get_preset(preset)
        asyncio.run(run(preset))
    except AudioAcquisitionError as e:
        logger.error(f"Could not use the microphone: {e}")
        sys.exit(1)
    except NoiseChallengeError as e:
        logger.error(f"Could not run the challenge: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Stopped by user")


if __name__ == "__main__":
    main()
