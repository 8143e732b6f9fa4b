"""
Local microphone source backed by sounddevice.

PortAudio invokes the stream callback on its own thread; frames are
moved onto the event loop with call_soon_threadsafe.
"""
import asyncio
from typing import Optional

import numpy as np
import sounddevice as sd

from noise_challenge.audio.ingestion import array_to_audio_frame
from noise_challenge.audio.models import AudioFrame
from noise_challenge.audio.sources import AudioSource, ErrorCallback, FrameCallback
from noise_challenge.core.errors import DeviceUnavailable, PermissionDenied
from noise_challenge.core.logging import logger


class MicrophoneSource(AudioSource):
    """Capture from a local input device in fixed-size blocks."""

    def __init__(
        self,
        sample_rate: int = 16000,
        block_size: int = 256,
        device: Optional[int] = None,
        stream_id: str = "local-mic"
    ):
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.device = device
        self.stream_id = stream_id
        self._stream: Optional[sd.InputStream] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._on_frame: Optional[FrameCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._generation = 0

    @staticmethod
    def find_input_device() -> int:
        """Return the index of the first available input device."""
        try:
            devices = sd.query_devices()
        except sd.PortAudioError as e:
            raise DeviceUnavailable(f"Could not query audio devices: {e}") from e
        for i, dev in enumerate(devices):
            if dev["max_input_channels"] > 0:
                logger.info(f"Using mic: {dev['name']} (index={i})")
                return i
        raise DeviceUnavailable("No microphone detected")

    def _callback(self, indata: np.ndarray, frames: int, time_info, status: sd.CallbackFlags) -> None:
        if status:
            logger.warning(f"Audio stream status: {status}")
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        frame = array_to_audio_frame(indata.copy(), self.stream_id, self.sample_rate)
        loop.call_soon_threadsafe(self._deliver, frame)

    def _deliver(self, frame: AudioFrame) -> None:
        # Runs on the loop; close() may have happened after the block was queued
        if self._on_frame is not None:
            self._on_frame(frame)

    def _finished(self, generation: int) -> None:
        # PortAudio thread: the stream ended, either from close() or device loss
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._device_lost, generation)

    def _device_lost(self, generation: int) -> None:
        # A stream closed earlier may report after a new one was opened
        if self._on_error is None or generation != self._generation:
            return
        on_error = self._on_error
        logger.warning("Microphone stream ended unexpectedly")
        self.close()
        on_error(DeviceUnavailable("Microphone disconnected"))

    async def open(self, on_frame: FrameCallback, on_error: Optional[ErrorCallback] = None) -> None:
        if self._stream is not None:
            return
        device = self.device if self.device is not None else self.find_input_device()
        self._loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        try:
            stream = sd.InputStream(
                device=device,
                channels=1,
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                dtype="float32",
                callback=self._callback,
                finished_callback=lambda: self._finished(generation),
            )
            stream.start()
        except sd.PortAudioError as e:
            if "permission" in str(e).lower() or "denied" in str(e).lower():
                raise PermissionDenied(f"Microphone access denied: {e}") from e
            raise DeviceUnavailable(f"Could not open microphone: {e}") from e
        self._on_frame = on_frame
        self._on_error = on_error
        self._stream = stream
        logger.info(f"Microphone stream started (sr={self.sample_rate}, block={self.block_size})")

    def close(self) -> None:
        self._on_frame = None
        self._on_error = None
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except sd.PortAudioError as e:
            logger.warning(f"Error stopping audio stream: {e}")
        self._stream = None
        logger.info("Microphone stream stopped")

    @property
    def is_open(self) -> bool:
        return self._stream is not None
