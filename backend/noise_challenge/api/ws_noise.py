"""WebSocket endpoint for audio ingestion, game control and live updates."""
import asyncio
import json
import uuid
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from noise_challenge.audio.ingestion import bytes_to_audio_frame, validate_audio_data
from noise_challenge.audio.models import LevelSample
from noise_challenge.core.config import GameSettings, settings
from noise_challenge.core.errors import (
    CalibrationError,
    DeviceUnavailable,
    NoiseChallengeError,
    PermissionDenied,
)
from noise_challenge.core.logging import logger
from noise_challenge.game.models import CalibrationResult, ScoreState, TrafficState, Transition
from noise_challenge.game.session import NoiseSession, SessionListener
from noise_challenge.services.session_manager import StreamEntry, TooManyStreams, session_manager

_MIC_ERRORS = {
    PermissionDenied.code: PermissionDenied,
    DeviceUnavailable.code: DeviceUnavailable,
}


class WebSocketListener(SessionListener):
    """Turns session events into JSON messages on an outgoing queue."""

    def __init__(self, outbox: asyncio.Queue, update_interval: float):
        self.outbox = outbox
        self.update_interval = update_interval
        self._last_level_update = float("-inf")

    def send(self, message: Dict[str, Any]) -> None:
        try:
            self.outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Outgoing queue full, dropping {message.get('type')} message")

    def on_level(self, session: NoiseSession, sample: LevelSample) -> None:
        now = asyncio.get_running_loop().time()
        if now - self._last_level_update < self.update_interval:
            return
        self._last_level_update = now
        self.send({"type": "level", "level": session.display_level, "raw_level": round(sample.level, 2)})

    def on_transition(self, session: NoiseSession, transition: Transition) -> None:
        self.send({
            "type": "state",
            "previous": transition.previous.value,
            "current": transition.current.value,
            "level": round(transition.level, 2),
        })

    def on_tick(self, session: NoiseSession, score: ScoreState) -> None:
        self.send({"type": "score", **session.snapshot()})

    def on_alert(self, session: NoiseSession, color: TrafficState) -> None:
        self.send({"type": "alert", "color": color.value})

    def on_calibrated(self, session: NoiseSession, result: CalibrationResult) -> None:
        self.send({
            "type": "calibration",
            "summary": result.summary.to_dict(),
            "should_warn": result.should_warn,
            "sample_count": result.sample_count,
        })

    def on_calibration_failed(self, session: NoiseSession, error: CalibrationError) -> None:
        self.send({"type": "calibration_failed", "code": error.code, "message": str(error)})

    def on_stopped(self, session: NoiseSession, reason: str) -> None:
        self.send({"type": "stopped", "reason": reason, **session.snapshot()})


async def send_messages(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    """Drain the outgoing queue onto the socket."""
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


async def stop_sender(sender: asyncio.Task, stream_id: str) -> None:
    """Cancel the sender task and collect any error it died with."""
    sender.cancel()
    try:
        await sender
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.warning(f"Sender for stream {stream_id} failed: {e}")


async def handle_command(entry: StreamEntry, command: Dict[str, Any], listener: WebSocketListener) -> None:
    """
    Apply one JSON control message to the session.

    Errors from the session are reported back to the client rather than
    closing the connection.
    """
    session = entry.session
    kind = command.get("type")

    try:
        if kind == "start":
            await session.start(timer_mode=command.get("timer_mode") is True)
            listener.send({"type": "started", **session.snapshot()})
        elif kind == "stop":
            session.stop()
        elif kind == "reset":
            session.reset()
            listener.send({"type": "score", **session.snapshot()})
        elif kind == "calibrate":
            await session.calibrate(str(command.get("preset", "")))
            listener.send({"type": "calibrating", "preset": command.get("preset"),
                           "duration": session.calibration.duration})
        elif kind == "cancel_calibration":
            session.cancel_calibration()
            listener.send({"type": "calibration_cancelled"})
        elif kind == "settings":
            game_settings = GameSettings.model_validate(command.get("settings") or {})
            session.update_settings(game_settings)
            listener.send({"type": "settings", "settings": game_settings.model_dump()})
        elif kind == "mic_error":
            error_cls = _MIC_ERRORS.get(command.get("reason"), DeviceUnavailable)
            entry.source.report_failure(error_cls(command.get("message", "Microphone unavailable")))
        elif kind == "mic_ok":
            entry.source.report_failure(None)
        elif kind == "status":
            listener.send({"type": "status", **session.snapshot()})
        else:
            listener.send({"type": "error", "code": "unknown_command", "message": f"Unknown command: {kind}"})
    except NoiseChallengeError as e:
        logger.warning(f"Command '{kind}' failed for stream {session.stream_id}: {e}")
        listener.send({"type": "error", "code": e.code, "message": str(e)})
    except ValidationError as e:
        listener.send({"type": "error", "code": "invalid_settings", "message": str(e)})


async def process_stream(stream_id: str, websocket: WebSocket) -> None:
    """
    Receive frames and commands until the client disconnects.

    Args:
        stream_id: Unique identifier for this stream
        websocket: WebSocket connection
    """
    outbox: asyncio.Queue = asyncio.Queue(maxsize=500)
    listener = WebSocketListener(outbox, settings.update_interval_ms / 1000.0)
    entry = await session_manager.create(stream_id, settings.game_settings(), listener=listener)
    sender = asyncio.create_task(send_messages(websocket, outbox))
    listener.send({"type": "connected", "stream_id": stream_id, **entry.session.snapshot()})

    try:
        while True:
            if sender.done():
                break
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            data: Optional[bytes] = message.get("bytes")
            if data is not None:
                if not validate_audio_data(data):
                    logger.warning(f"Invalid audio data from stream {stream_id}")
                    continue
                entry.push_frame(bytes_to_audio_frame(data, stream_id))
                continue

            text = message.get("text")
            if text is None:
                continue
            try:
                command = json.loads(text)
            except json.JSONDecodeError:
                listener.send({"type": "error", "code": "invalid_json", "message": "Commands must be JSON"})
                continue
            if not isinstance(command, dict):
                listener.send({"type": "error", "code": "invalid_json", "message": "Commands must be objects"})
                continue
            await handle_command(entry, command, listener)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for stream {stream_id}")
    finally:
        await stop_sender(sender, stream_id)
        await session_manager.remove(stream_id)
        logger.info(f"Cleaned up stream {stream_id}")


async def websocket_noise_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint handler for /ws/noise.

    Accepts binary int16 PCM frames and JSON commands, and sends JSON
    level, state, score, alert and calibration messages.
    """
    await websocket.accept()

    stream_id = f"ws-{uuid.uuid4().hex[:8]}"
    logger.info(f"New WebSocket connection: {stream_id}")

    try:
        await process_stream(stream_id, websocket)
    except TooManyStreams as e:
        logger.warning(f"Rejected stream {stream_id}: {e}")
        await websocket.send_json({"type": "error", "code": "too_many_streams", "message": str(e)})
        await websocket.close(code=1013)
