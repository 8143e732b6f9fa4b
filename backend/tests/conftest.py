"""Shared fixtures: a hand-driven event-loop clock and audio frame helpers."""
import asyncio
import heapq
import itertools

import numpy as np
import pytest

from noise_challenge.audio.models import AudioFrame
from noise_challenge.audio.sources import PushSource
from noise_challenge.core.config import GameSettings


class ManualTimer:
    """Timer handle returned by ManualLoop.call_later."""

    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualLoop:
    """
    Stand-in for the parts of the asyncio loop the game components use.

    Time only moves when advance() is called, which runs every due timer
    in order, including timers scheduled by the callbacks themselves.
    """

    def __init__(self):
        self.now = 0.0
        self._timers = []
        self._counter = itertools.count()

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        timer = ManualTimer(self.now + delay, callback, args)
        heapq.heappush(self._timers, (timer.when, next(self._counter), timer))
        return timer

    def call_soon_threadsafe(self, callback, *args):
        return self.call_later(0, callback, *args)

    def is_closed(self):
        return False

    def advance(self, seconds):
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target + 1e-9:
            when, _, timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self.now = when
            timer.callback(*timer.args)
        self.now = target

    @property
    def pending(self):
        return [timer for _, _, timer in self._timers if not timer.cancelled]


@pytest.fixture
def loop():
    return ManualLoop()


@pytest.fixture
def source():
    return PushSource("test-stream")


@pytest.fixture
def game_settings():
    return GameSettings(
        yellow_min_dec=50,
        red_min_dec=65,
        add_points=1,
        lose_points=1,
        time_in_green=0.1,
        goal=3,
        cooldown_period=1.0,
        sound_delay=2.0,
        average_window_size=1,
    )


def make_frame(amplitude: float, size: int = 256, stream_id: str = "test-stream") -> AudioFrame:
    """A float frame whose samples alternate between +amplitude and -amplitude."""
    samples = np.full(size, amplitude, dtype=np.float32)
    samples[1::2] *= -1
    return AudioFrame(pcm_data=samples, sample_rate=16000, timestamp=0.0, stream_id=stream_id)


def run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)
