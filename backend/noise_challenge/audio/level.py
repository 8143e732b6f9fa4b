"""Smoothed loudness level from a live audio source."""
from collections import deque
from typing import Callable, List

import numpy as np

from noise_challenge.audio.dsp.loudness import LEVEL_METHODS
from noise_challenge.audio.models import AudioFrame, LevelSample
from noise_challenge.audio.sources import AudioSource
from noise_challenge.core.errors import NoiseChallengeError
from noise_challenge.core.logging import logger

EMA_ALPHA = 0.1  # Smoothing factor for the exponential moving average
DEFAULT_WINDOW_SIZE = 100

LevelListener = Callable[[LevelSample], None]
DeviceLostListener = Callable[[NoiseChallengeError], None]
StopListener = Callable[[], None]


class LevelEstimator:
    """
    Turns amplitude frames into a stable, UI-consumable level.

    Two damping stages are stacked: an EMA over the instantaneous loudness,
    then a fixed-size sliding-window mean over the EMA output. The exposed
    value is floored at 0 and never clamped above.

    There is no internal timer. The source's frame callback drives every
    update, and each new reading is handed synchronously to the listeners.
    """

    def __init__(
        self,
        source: AudioSource,
        window_size: int = DEFAULT_WINDOW_SIZE,
        method: str = "power",
        alpha: float = EMA_ALPHA
    ):
        if method not in LEVEL_METHODS:
            raise ValueError(f"Unknown level method: {method}")
        self.source = source
        self.alpha = alpha
        self._measure = LEVEL_METHODS[method]
        self._window: deque = deque(maxlen=max(1, window_size))
        self._ema = 0.0
        self._level = 0.0
        self._sequence = 0
        self._active = False
        self._listeners: List[LevelListener] = []
        self._device_lost_listeners: List[DeviceLostListener] = []
        self._stop_listeners: List[StopListener] = []

    # Listeners

    def add_listener(self, listener: LevelListener) -> None:
        self._listeners.append(listener)

    def add_device_lost_listener(self, listener: DeviceLostListener) -> None:
        self._device_lost_listeners.append(listener)

    def add_stop_listener(self, listener: StopListener) -> None:
        """Called after an active estimator stops and its level drops to 0."""
        self._stop_listeners.append(listener)

    # Lifecycle

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def level(self) -> float:
        """Current smoothed level (0 while stopped)."""
        return self._level

    async def start(self) -> None:
        """
        Acquire the audio source and begin producing levels.

        Raises:
            PermissionDenied: the input could not be acquired
            DeviceUnavailable: there is no input to acquire
        """
        if self._active:
            return
        await self.source.open(self._on_frame, self._on_source_error)
        self._reset_smoothing()
        self._active = True
        logger.info("Level estimator started")

    def stop(self) -> None:
        """Release the source and zero the level. Safe to call repeatedly."""
        was_active = self._active
        self._active = False
        self.source.close()
        self._level = 0.0
        self._reset_smoothing()
        if was_active:
            logger.info("Level estimator stopped")
            for listener in list(self._stop_listeners):
                listener()

    def set_window_size(self, window_size: int) -> None:
        """Resize the sliding window, keeping the most recent readings."""
        window_size = max(1, window_size)
        if window_size != self._window.maxlen:
            self._window = deque(self._window, maxlen=window_size)

    def set_method(self, method: str) -> None:
        if method not in LEVEL_METHODS:
            raise ValueError(f"Unknown level method: {method}")
        self._measure = LEVEL_METHODS[method]

    def _reset_smoothing(self) -> None:
        self._ema = 0.0
        self._window.clear()

    # Processing

    def process(self, frame: AudioFrame) -> float:
        """
        Fold one frame into the smoothed level.

        Args:
            frame: Audio frame to measure

        Returns:
            The new exposed level (unchanged for empty frames)
        """
        if frame.is_empty:
            logger.warning(f"Skipping empty frame from stream {frame.stream_id}")
            return self._level

        instant = self._measure(frame)
        self._ema = self.alpha * instant + (1.0 - self.alpha) * self._ema
        self._window.append(self._ema)
        self._level = max(float(np.mean(self._window)), 0.0)
        self._sequence += 1
        return self._level

    def _on_frame(self, frame: AudioFrame) -> None:
        if not self._active:
            return
        level = self.process(frame)
        sample = LevelSample(level=level, sequence=self._sequence)
        for listener in list(self._listeners):
            listener(sample)

    def _on_source_error(self, error: NoiseChallengeError) -> None:
        logger.warning(f"Audio source failed: {error}")
        if not self._active:
            return
        self.stop()
        for listener in list(self._device_lost_listeners):
            listener(error)
