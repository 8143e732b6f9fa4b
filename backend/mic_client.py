#!/usr/bin/env python3
"""
Test client for the Classroom Noise Challenge backend.

Captures audio from the microphone, streams it to the WebSocket endpoint
and prints the traffic light, score and alerts as they arrive.

Usage:
    python mic_client.py [preset]

Passing a preset (whisper, partner, group) calibrates the room before the
game starts.
"""
import asyncio
import websockets
import sounddevice as sd
import numpy as np
import json
import sys
import logging
from typing import Optional

# Setup basic logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


# Audio configuration (must match server settings)
SAMPLE_RATE = 16000  # Hz
CHANNELS = 1  # Mono
CHUNK_DURATION_MS = 16  # milliseconds per chunk
CHUNK_SIZE = int(SAMPLE_RATE * CHUNK_DURATION_MS / 1000)  # samples per chunk

# Server configuration
SERVER_URL = "ws://localhost:8000/ws/noise"

LIGHTS = {"green": "🟢", "yellow": "🟡", "red": "🔴"}

# Global audio queue (initialized in main)
audio_queue: Optional[asyncio.Queue] = None
event_loop: Optional[asyncio.AbstractEventLoop] = None


def audio_callback(indata, frames, time_info, status):
    """Callback function for audio input stream (PortAudio thread)."""
    if status:
        print(f"Audio status: {status}", file=sys.stderr)

    if audio_queue is None or event_loop is None:
        return

    # Convert float32 to int16
    audio_int16 = (indata[:, 0] * np.iinfo(np.int16).max).astype(np.int16)
    event_loop.call_soon_threadsafe(_enqueue, audio_int16.tobytes())


def _enqueue(data: bytes) -> None:
    try:
        audio_queue.put_nowait(data)
    except asyncio.QueueFull:
        pass  # Drop frame if queue is full


async def send_audio(websocket):
    """Send audio frames to the server."""
    while True:
        audio_data = await audio_queue.get()
        await websocket.send(audio_data)


async def receive_messages(websocket):
    """Print server messages as they arrive."""
    state = "green"
    level = 0
    points = 0
    clock = "00:00"

    async for message in websocket:
        if not isinstance(message, str):
            continue
        data = json.loads(message)
        kind = data.get("type")

        if kind == "level":
            level = data["level"]
        elif kind == "state":
            state = data["current"]
        elif kind == "score":
            points = data["points"]
            clock = data["clock"]
            if data.get("goal_reached"):
                print("\n🎉 Goal reached!")
        elif kind == "alert":
            print(f"\n🔔 {'Shh!' if data['color'] == 'yellow' else 'Be quiet!'}")
        elif kind == "calibration":
            summary = data["summary"]
            print(f"\nCalibrated: baseline {summary['baseline']}, p80 {summary['p80']}, "
                  f"yellow {summary['yellow']}, red {summary['red']}")
            if data["should_warn"]:
                print("High baseline detected: thresholds were capped for safety.")
            await websocket.send(json.dumps({"type": "start"}))
        elif kind in ("error", "calibration_failed"):
            print(f"\nError ({data['code']}): {data['message']}")
        elif kind == "stopped":
            print(f"\nStopped: {data['reason']}")
            return

        sys.stdout.write(f"\r{LIGHTS.get(state, state)}  level {level:3d}  score {points:3d}  {clock}   ")
        sys.stdout.flush()


async def main():
    """Main function to run the test client."""
    global audio_queue, event_loop

    preset = sys.argv[1] if len(sys.argv) > 1 else None
    audio_queue = asyncio.Queue(maxsize=100)
    event_loop = asyncio.get_running_loop()

    print("=" * 70)
    print("Classroom Noise Challenge - Microphone Client")
    print("=" * 70)
    print(f"Sample Rate: {SAMPLE_RATE} Hz")
    print(f"Chunk Size: {CHUNK_SIZE} samples ({CHUNK_DURATION_MS} ms)")
    print(f"Server: {SERVER_URL}")
    print("=" * 70)
    print("Press Ctrl+C to stop\n")

    input_stream = sd.InputStream(
        samplerate=SAMPLE_RATE,
        channels=CHANNELS,
        dtype=np.float32,
        blocksize=CHUNK_SIZE,
        callback=audio_callback
    )

    try:
        input_stream.start()

        async with websockets.connect(SERVER_URL, ping_interval=None) as websocket:
            if preset:
                print(f"Calibrating '{preset}' for 10 seconds, keep the room as it normally is...")
                await websocket.send(json.dumps({"type": "calibrate", "preset": preset}))
            else:
                await websocket.send(json.dumps({"type": "start"}))

            send_task = asyncio.create_task(send_audio(websocket))
            try:
                await receive_messages(websocket)
            finally:
                send_task.cancel()
                await asyncio.gather(send_task, return_exceptions=True)
    except sd.PortAudioError as e:
        print(f"\nMicrophone error: {e}")
    finally:
        input_stream.stop()
        input_stream.close()
        print("\nAudio stream stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n\nExiting...")
