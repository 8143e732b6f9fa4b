"""Registry of live noise sessions, one per connected stream."""
import asyncio
import time
from dataclasses import dataclass
from typing import Dict, Optional

from noise_challenge.audio.models import AudioFrame, StreamState
from noise_challenge.audio.sources import PushSource
from noise_challenge.core.config import GameSettings, settings
from noise_challenge.core.logging import logger
from noise_challenge.game.session import NoiseSession, SessionListener


class TooManyStreams(Exception):
    """The configured stream limit has been reached."""


@dataclass
class StreamEntry:
    """A session together with the source feeding it."""
    session: NoiseSession
    source: PushSource
    state: StreamState

    def push_frame(self, frame: AudioFrame) -> bool:
        """Hand a frame to the session and update stream bookkeeping."""
        self.state.frame_count += 1
        self.state.last_frame_time = frame.timestamp
        return self.source.push(frame)


class SessionManager:
    """Manages sessions for all active streams."""

    def __init__(self, max_streams: int = 10):
        """Initialize the session manager."""
        self.max_streams = max_streams
        self._entries: Dict[str, StreamEntry] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        stream_id: str,
        game_settings: GameSettings,
        listener: Optional[SessionListener] = None
    ) -> StreamEntry:
        """
        Create a session fed by a push source.

        Raises:
            TooManyStreams: max_streams sessions are already live
        """
        async with self._lock:
            if stream_id in self._entries:
                return self._entries[stream_id]
            if len(self._entries) >= self.max_streams:
                raise TooManyStreams(f"Limit of {self.max_streams} streams reached")

            loop = asyncio.get_running_loop()
            source = PushSource(stream_id)
            session = NoiseSession(stream_id, source, game_settings, listener=listener, loop=loop)
            entry = StreamEntry(
                session=session,
                source=source,
                state=StreamState(
                    stream_id=stream_id,
                    created_at=time.time(),
                    last_frame_time=0.0,
                    frame_count=0
                )
            )
            self._entries[stream_id] = entry
            logger.info(f"Created session for stream {stream_id}")
            return entry

    async def remove(self, stream_id: str) -> None:
        """Stop and forget a session (on disconnect)."""
        async with self._lock:
            entry = self._entries.pop(stream_id, None)
        if entry is not None:
            entry.session.stop(reason="disconnected")
            entry.source.shutdown()
            logger.info(f"Removed session for stream {stream_id}")

    async def get(self, stream_id: str) -> Optional[StreamEntry]:
        """Get the entry for a stream if it exists."""
        async with self._lock:
            return self._entries.get(stream_id)

    async def list_stream_ids(self) -> list[str]:
        """Get list of all active stream IDs."""
        async with self._lock:
            return list(self._entries.keys())

    async def get_stream_count(self) -> int:
        """Get number of active streams."""
        async with self._lock:
            return len(self._entries)


# Global session manager instance
session_manager = SessionManager(max_streams=settings.max_concurrent_streams)
