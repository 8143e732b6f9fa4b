"""Audio data models and structures."""
from dataclasses import dataclass
import numpy as np


_SUPPORTED_DTYPES = (np.int16, np.float32, np.float64)


@dataclass
class AudioFrame:
    """Represents a single batch of microphone samples with metadata."""
    pcm_data: np.ndarray  # int16 PCM, or float samples in [-1, 1]
    sample_rate: int
    timestamp: float  # Unix timestamp when frame was received
    stream_id: str

    def __post_init__(self):
        """Validate frame data."""
        if self.pcm_data.dtype not in _SUPPORTED_DTYPES:
            raise ValueError(f"Expected int16 or float PCM, got {self.pcm_data.dtype}")
        if len(self.pcm_data.shape) != 1:
            raise ValueError(f"Expected mono (1D array), got shape {self.pcm_data.shape}")

    @property
    def is_empty(self) -> bool:
        return self.pcm_data.size == 0

    def as_float(self) -> np.ndarray:
        """Return the samples as float64 in [-1.0, 1.0]."""
        if np.issubdtype(self.pcm_data.dtype, np.integer):
            return self.pcm_data.astype(np.float64) / 32768.0
        return np.clip(self.pcm_data.astype(np.float64), -1.0, 1.0)


@dataclass
class LevelSample:
    """One smoothed loudness reading."""
    level: float
    sequence: int


@dataclass
class StreamState:
    """Tracks state for an active audio stream."""
    stream_id: str
    created_at: float
    last_frame_time: float
    frame_count: int
