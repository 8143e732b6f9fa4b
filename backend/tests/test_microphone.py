"""Tests for the sounddevice-backed microphone source, with the stream faked out."""
import asyncio

import pytest

try:
    from noise_challenge.audio import microphone
except OSError:
    pytest.skip("PortAudio library not available", allow_module_level=True)

from noise_challenge.core.errors import DeviceUnavailable


class FakeInputStream:
    """Records the callbacks sounddevice would be given."""

    created = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.started = False
        FakeInputStream.created.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        pass


@pytest.fixture
def fake_stream(monkeypatch):
    FakeInputStream.created = []
    monkeypatch.setattr(microphone.sd, "InputStream", FakeInputStream)
    return FakeInputStream


def test_old_stream_finishing_does_not_close_new_one(fake_stream):
    """A late finished callback from a closed stream leaves the reopened one alone."""
    source = microphone.MicrophoneSource(device=0)
    errors = []

    async def scenario():
        await source.open(lambda frame: None, errors.append)
        old_finished = fake_stream.created[0].kwargs["finished_callback"]
        source.close()
        await source.open(lambda frame: None, errors.append)

        old_finished()
        await asyncio.sleep(0)
        still_open = source.is_open

        fake_stream.created[1].kwargs["finished_callback"]()
        await asyncio.sleep(0)
        return still_open

    still_open = asyncio.run(scenario())

    assert still_open
    assert not source.is_open
    assert len(errors) == 1
    assert isinstance(errors[0], DeviceUnavailable)


def test_finishing_after_close_is_silent(fake_stream):
    source = microphone.MicrophoneSource(device=0)
    errors = []

    async def scenario():
        await source.open(lambda frame: None, errors.append)
        source.close()
        fake_stream.created[0].kwargs["finished_callback"]()
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert errors == []
