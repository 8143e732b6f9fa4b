"""
Audio sources that deliver frames to the level estimator.

A source owns the physical (or remote) input. Frames are always handed to
the consumer on the asyncio event loop thread, so the processing pipeline
never runs concurrently with itself.
"""
from typing import Callable, Optional

from noise_challenge.audio.models import AudioFrame
from noise_challenge.core.errors import DeviceUnavailable, NoiseChallengeError

FrameCallback = Callable[[AudioFrame], None]
ErrorCallback = Callable[[NoiseChallengeError], None]


class AudioSource:
    """Start/stop capability yielding periodic frame callbacks."""

    async def open(self, on_frame: FrameCallback, on_error: Optional[ErrorCallback] = None) -> None:
        """Acquire the input and begin delivering frames. May wait for permission."""
        raise NotImplementedError

    def close(self) -> None:
        """Release the input. Must be idempotent."""
        raise NotImplementedError

    @property
    def is_open(self) -> bool:
        raise NotImplementedError

class PushSource(AudioSource):
    """
    Source fed by a remote client, e.g. PCM frames arriving over a WebSocket.

    The client has already dealt with microphone permission; a client that
    reports a failure marks the source unavailable until it is cleared.
    """

    def __init__(self, stream_id: str):
        self.stream_id = stream_id
        self._on_frame: Optional[FrameCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._failure: Optional[NoiseChallengeError] = None
        self._closed = False

    async def open(self, on_frame: FrameCallback, on_error: Optional[ErrorCallback] = None) -> None:
        if self._closed:
            raise DeviceUnavailable(f"Stream {self.stream_id} is closed")
        if self._failure is not None:
            raise self._failure
        self._on_frame = on_frame
        self._on_error = on_error

    def close(self) -> None:
        self._on_frame = None
        self._on_error = None

    def shutdown(self) -> None:
        """The remote end went away; no further opens are possible."""
        on_error = self._on_error
        self.close()
        self._closed = True
        if on_error is not None:
            on_error(DeviceUnavailable(f"Stream {self.stream_id} disconnected"))

    def report_failure(self, error: Optional[NoiseChallengeError]) -> None:
        """Record a client-side microphone failure (None clears it)."""
        self._failure = error
        if error is not None and self._on_error is not None:
            on_error = self._on_error
            self.close()
            on_error(error)

    @property
    def is_open(self) -> bool:
        return self._on_frame is not None

    def push(self, frame: AudioFrame) -> bool:
        """Deliver a frame to the consumer. Returns False if nobody is listening."""
        if self._on_frame is None:
            return False
        self._on_frame(frame)
        return True

