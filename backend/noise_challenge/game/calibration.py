"""Room calibration: sample ambient noise, then derive thresholds."""
import asyncio
from typing import Callable, Optional

from noise_challenge.audio.dsp.stats import filter_outliers, median, median_absolute_deviation, percentile
from noise_challenge.audio.level import LevelEstimator
from noise_challenge.core.errors import AlreadyCalibrating, CalibrationError, EmptyCapture, NoiseChallengeError
from noise_challenge.core.logging import logger
from noise_challenge.game.models import CalibrationResult, CalibrationSession
from noise_challenge.game.presets import get_preset
from noise_challenge.game.thresholds import derive
from noise_challenge.utils.numeric import clamp, round_half_up
from noise_challenge.utils.timers import resolve_loop

CALIBRATION_DURATION = 10.0  # seconds
CALIBRATION_PERCENTILE = 80

CompleteCallback = Callable[[CalibrationResult], None]
ErrorCallback = Callable[[CalibrationError], None]


def summarize_samples(samples: list, preset: str) -> CalibrationResult:
    """
    Turn raw calibration samples into thresholds for a preset.

    Raises:
        EmptyCapture: no samples were collected
    """
    if not samples:
        raise EmptyCapture("No audio was captured during calibration")

    usable = filter_outliers(samples)
    baseline = median(usable)
    p80 = percentile(usable, CALIBRATION_PERCENTILE)
    summary, should_warn = derive(baseline, p80, preset)

    logger.info(
        f"Calibration '{preset}': {len(samples)} samples ({len(samples) - len(usable)} outliers, "
        f"MAD {median_absolute_deviation(samples):.1f}), baseline {summary.baseline}, "
        f"p80 {summary.p80} -> yellow {summary.yellow}, red {summary.red}"
    )
    if should_warn:
        logger.warning(f"Calibration '{preset}': room is already loud, thresholds were capped")

    return CalibrationResult(summary=summary, should_warn=should_warn, sample_count=len(samples))


class CalibrationSampler:
    """
    Collects level readings for a fixed window and summarizes them.

    The sampler reuses the estimator if it is already running, and only
    stops it afterwards if the calibration was the one that started it.
    """

    def __init__(
        self,
        estimator: LevelEstimator,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        duration: float = CALIBRATION_DURATION,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.estimator = estimator
        self.duration = duration
        self._on_complete = on_complete
        self._on_error = on_error
        self._loop = loop
        self._session: Optional[CalibrationSession] = None
        self._timeout: Optional[asyncio.TimerHandle] = None
        self._starting = False
        estimator.add_device_lost_listener(self._on_device_lost)

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[CalibrationSession]:
        return self._session

    @property
    def remaining_seconds(self) -> float:
        if self._session is None:
            return self.duration
        elapsed = self._loop.time() - self._session.started_at
        return max(0.0, self.duration - elapsed)

    @property
    def progress(self) -> float:
        """Percent of the calibration window that has elapsed."""
        if self._session is None:
            return 0.0
        return (self.duration - self.remaining_seconds) / self.duration * 100

    async def begin(self, preset: str) -> None:
        """
        Start a calibration session for a preset.

        Raises:
            AlreadyCalibrating: a session is already running
            UnknownPreset: the preset key is not known
            PermissionDenied, DeviceUnavailable: audio could not be acquired
        """
        if self._session is not None or self._starting:
            raise AlreadyCalibrating("A calibration is already in progress")
        get_preset(preset)

        opened_audio = False
        if not self.estimator.is_active:
            self._starting = True
            try:
                await self.estimator.start()
            finally:
                self._starting = False
            opened_audio = True

        self._loop = resolve_loop(self._loop)
        self._session = CalibrationSession(
            preset=preset,
            started_at=self._loop.time(),
            duration=self.duration,
            opened_audio=opened_audio,
        )
        self._timeout = self._loop.call_later(self.duration, self._on_timeout)
        logger.info(f"Calibration '{preset}' started ({self.duration:.0f}s)")

    def add_sample(self, level: float) -> None:
        """Record one reading, rounded and clamped to [0, 100]."""
        if self._session is None:
            return
        self._session.samples.append(int(clamp(round_half_up(level), 0, 100)))

    def finish(self) -> CalibrationResult:
        """
        End the session now and summarize what was collected.

        Raises:
            EmptyCapture: no samples were collected
        """
        session = self._end_session()
        return summarize_samples(session.samples, session.preset)

    def cancel(self) -> None:
        """Discard the session without producing a summary."""
        if self._session is None:
            return
        session = self._end_session()
        logger.info(f"Calibration '{session.preset}' cancelled after {len(session.samples)} samples")

    def _end_session(self) -> CalibrationSession:
        if self._session is None:
            raise CalibrationError("No calibration in progress")
        session = self._session
        self._session = None
        if self._timeout is not None:
            self._timeout.cancel()
            self._timeout = None
        if session.opened_audio:
            self.estimator.stop()
        return session

    def _on_timeout(self) -> None:
        self._timeout = None
        self._complete()

    def _on_device_lost(self, error: NoiseChallengeError) -> None:
        if self._session is None:
            return
        logger.warning(f"Audio lost during calibration ({error}), finishing with partial samples")
        self._complete()

    def _complete(self) -> None:
        try:
            result = self.finish()
        except CalibrationError as e:
            logger.warning(f"Calibration failed: {e}")
            if self._on_error is not None:
                self._on_error(e)
            return
        if self._on_complete is not None:
            self._on_complete(result)
