#!/usr/bin/env python3
"""
Synthetic Client - exercises the backend without a microphone.

Checks the REST endpoints, then streams generated audio (a quiet room, a
loud burst, quiet again) over the WebSocket and prints each traffic light
change, alert and the final session snapshot.
"""
import asyncio
import json
import sys

import numpy as np
import requests
import websockets

# Audio configuration (must match server settings)
SAMPLE_RATE = 16000  # Hz
CHUNK_DURATION_MS = 16  # milliseconds per chunk
CHUNK_SIZE = int(SAMPLE_RATE * CHUNK_DURATION_MS / 1000)  # samples per chunk

# Server configuration
HTTP_URL = "http://localhost:8000"
WS_URL = "ws://localhost:8000/ws/noise"

# Test parameters: (label, amplitude, frames)
PHASES = [
    ("quiet", 200, 150),
    ("loud", 20000, 150),
    ("quiet", 200, 300),
]
PAUSE_MS = 16  # ms between frames


def generate_noise_frame(chunk_size, amplitude):
    """Generate a frame of white noise."""
    if amplitude <= 0:
        return np.zeros(chunk_size, dtype=np.int16)
    return np.random.randint(-amplitude, amplitude, chunk_size, dtype=np.int16)


def check_rest():
    """Hit the REST endpoints and print what they return."""
    health = requests.get(f"{HTTP_URL}/health", timeout=5)
    health.raise_for_status()
    print(f"✓ Health: {health.json()}")

    presets = requests.get(f"{HTTP_URL}/presets", timeout=5).json()
    print(f"✓ Presets: {', '.join(presets)}")

    defaults = requests.get(f"{HTTP_URL}/settings/defaults", timeout=5).json()
    print(f"✓ Rules: {defaults['rules']}")


async def drain(websocket, stream_id):
    """Print interesting messages without blocking the sender."""
    while True:
        try:
            message = await asyncio.wait_for(websocket.recv(), timeout=0.001)
        except asyncio.TimeoutError:
            return
        data = json.loads(message)
        kind = data.get("type")
        if kind == "state":
            print(f"  light {data['previous']} -> {data['current']} at level {data['level']}")
        elif kind == "alert":
            print(f"  🔔 {data['color']} alert")
        elif kind == "error":
            print(f"  ✗ {data['code']}: {data['message']}")


async def run_session():
    async with websockets.connect(WS_URL, ping_interval=None) as websocket:
        connected = json.loads(await websocket.recv())
        stream_id = connected["stream_id"]
        print(f"✓ Connected as {stream_id}\n")

        await websocket.send(json.dumps({"type": "start"}))

        for label, amplitude, frames in PHASES:
            print(f"Sending {frames} {label} frames")
            for _ in range(frames):
                await websocket.send(generate_noise_frame(CHUNK_SIZE, amplitude).tobytes())
                await drain(websocket, stream_id)
                await asyncio.sleep(PAUSE_MS / 1000.0)

        snapshot = requests.get(f"{HTTP_URL}/sessions/{stream_id}", timeout=5).json()
        print("\n" + "=" * 70)
        print("SESSION SNAPSHOT")
        print("=" * 70)
        print(f"Frames received: {snapshot['frame_count']}")
        print(f"Level: {snapshot['level']}  State: {snapshot['state']}")
        print(f"Points: {snapshot['points']}/{snapshot['goal']}  Clock: {snapshot['clock']}")
        print("=" * 70)


def main():
    print("=" * 70)
    print("Classroom Noise Challenge - Synthetic Client")
    print("=" * 70)
    try:
        check_rest()
        asyncio.run(run_session())
    except (requests.ConnectionError, ConnectionRefusedError):
        print("\n✗ ERROR: Could not connect to server at", HTTP_URL)
        print("  Make sure the backend is running:")
        print("    cd backend && python -m uvicorn noise_challenge.main:app --reload")
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nExiting...")
