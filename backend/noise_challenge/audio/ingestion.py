"""Helper functions for ingesting and converting incoming audio data."""
import numpy as np
import time
from typing import Optional
from noise_challenge.audio.models import AudioFrame
from noise_challenge.core.config import settings
from noise_challenge.core.logging import logger


def bytes_to_audio_frame(
    data: bytes,
    stream_id: str,
    sample_rate: Optional[int] = None
) -> AudioFrame:
    """
    Convert raw PCM bytes to an AudioFrame.

    Args:
        data: Raw PCM int16 bytes
        stream_id: Unique identifier for the stream
        sample_rate: Sample rate (defaults to config value)

    Returns:
        AudioFrame object
    """
    if sample_rate is None:
        sample_rate = settings.sample_rate

    pcm_array = np.frombuffer(data, dtype=np.int16)

    return AudioFrame(
        pcm_data=pcm_array,
        sample_rate=sample_rate,
        timestamp=time.time(),
        stream_id=stream_id
    )


def array_to_audio_frame(
    samples: np.ndarray,
    stream_id: str,
    sample_rate: int
) -> AudioFrame:
    """Wrap a sounddevice input block (frames x channels) as a mono frame."""
    mono = samples[:, 0] if samples.ndim > 1 else samples
    return AudioFrame(
        pcm_data=np.ascontiguousarray(mono, dtype=np.float32),
        sample_rate=sample_rate,
        timestamp=time.time(),
        stream_id=stream_id
    )


def validate_audio_data(data: bytes, expected_size: Optional[int] = None) -> bool:
    """
    Validate incoming audio data.

    Args:
        data: Raw audio bytes
        expected_size: Expected size in bytes (optional)

    Returns:
        True if valid, False otherwise
    """
    if len(data) == 0:
        logger.warning("Received empty audio data")
        return False

    # int16 = 2 bytes
    if len(data) % 2 != 0:
        logger.warning(f"Audio data size {len(data)} is not multiple of 2 bytes")
        return False

    if expected_size and len(data) != expected_size:
        logger.warning(f"Audio data size {len(data)} != expected {expected_size}")
        return False

    return True
