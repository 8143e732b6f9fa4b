"""Configuration settings for the Classroom Noise Challenge backend."""
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LevelMethod = Literal["power", "spectrum"]


class GameSettings(BaseModel):
    """
    Per-session game settings supplied by the caller.

    Components receive an instance explicitly and read from it on every
    operation; nothing in the core reaches for a global.
    """

    yellow_min_dec: float = Field(50, ge=0, le=100)  # level where the light turns yellow
    red_min_dec: float = Field(65, ge=0, le=100)  # level where the light turns red
    add_points: int = Field(1, ge=0)
    lose_points: int = Field(1, ge=0)
    time_in_green: float = Field(1.0, ge=0)  # minutes of green needed per award
    goal: int = Field(10, ge=0)
    cooldown_period: float = Field(1.0, ge=0)  # minutes between alerts of one color
    sound_delay: float = Field(2.0, ge=0)  # seconds before an alert fires
    average_window_size: int = Field(100, ge=1, le=200)
    timer: float = Field(0.0, ge=0)  # minutes, 0 = stopwatch mode
    level_method: LevelMethod = "power"

    @model_validator(mode="after")
    def _check_thresholds(self) -> "GameSettings":
        if self.red_min_dec <= self.yellow_min_dec:
            raise ValueError("red_min_dec must be greater than yellow_min_dec")
        return self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NOISE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Audio settings
    sample_rate: int = 16000  # Hz, default 16 kHz
    frame_size_ms: int = 16  # roughly one display frame per chunk
    input_device: Optional[int] = None  # sounddevice index for the local runner

    # Streaming settings
    update_interval_ms: int = 100  # how often level updates are pushed to clients
    max_concurrent_streams: int = 10

    # Default game settings
    yellow_min_dec: float = 50
    red_min_dec: float = 65
    add_points: int = 1
    lose_points: int = 1
    time_in_green: float = 1.0
    goal: int = 10
    cooldown_period: float = 1.0
    sound_delay: float = 2.0
    average_window_size: int = 100
    timer: float = 0.0
    level_method: LevelMethod = "power"

    # Logging
    log_level: str = "INFO"

    def game_settings(self, **overrides) -> GameSettings:
        """Build validated game settings from the configured defaults."""
        values = {name: getattr(self, name) for name in GameSettings.model_fields}
        values.update(overrides)
        return GameSettings(**values)


settings = Settings()
