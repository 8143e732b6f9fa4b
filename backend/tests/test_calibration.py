"""Unit tests for room calibration."""
import pytest
from noise_challenge.audio.level import LevelEstimator
from noise_challenge.core.errors import AlreadyCalibrating, EmptyCapture, PermissionDenied, UnknownPreset
from noise_challenge.game.calibration import CalibrationSampler, summarize_samples
from conftest import make_frame, run


@pytest.fixture
def estimator(source):
    return LevelEstimator(source, window_size=1)


def _sampler(estimator, loop, results, errors):
    return CalibrationSampler(estimator, on_complete=results.append, on_error=errors.append, loop=loop)


def test_summarize_samples():
    """Filtered median and p80 feed the threshold derivation."""
    result = summarize_samples([30, 31, 29, 32, 28, 30, 90], "whisper")

    assert result.sample_count == 7
    assert result.summary.baseline == 30
    assert result.summary.yellow == 38  # spread < 6 widens to baseline + 8
    assert result.summary.red == 46
    assert not result.should_warn


def test_summarize_empty_raises():
    with pytest.raises(EmptyCapture):
        summarize_samples([], "group")


def test_completes_after_ten_seconds(estimator, source, loop):
    """The session ends on its own after the fixed window."""
    results, errors = [], []
    sampler = _sampler(estimator, loop, results, errors)

    run(sampler.begin("partner"))
    for level in (40, 41, 39, 40):
        sampler.add_sample(level)
    loop.advance(9.9)
    assert sampler.is_active
    assert sampler.remaining_seconds == pytest.approx(0.1)
    assert sampler.progress == pytest.approx(99.0)

    loop.advance(0.1)

    assert not sampler.is_active
    assert errors == []
    assert results[0].summary.baseline == 40
    assert results[0].summary.preset == "partner"


def test_samples_rounded_and_clamped(estimator, loop):
    """Readings are stored as integers in [0, 100]."""
    sampler = _sampler(estimator, loop, [], [])
    run(sampler.begin("whisper"))

    for level in (-3.0, 41.5, 42.4, 130.0):
        sampler.add_sample(level)

    assert sampler.session.samples == [0, 42, 42, 100]


def test_empty_capture_reported(estimator, loop):
    """No samples in the window ends with EmptyCapture."""
    results, errors = [], []
    sampler = _sampler(estimator, loop, results, errors)
    run(sampler.begin("group"))

    loop.advance(10)

    assert results == []
    assert isinstance(errors[0], EmptyCapture)
    assert not estimator.is_active


def test_begin_twice_rejected(estimator, loop):
    sampler = _sampler(estimator, loop, [], [])
    run(sampler.begin("whisper"))

    with pytest.raises(AlreadyCalibrating):
        run(sampler.begin("group"))
    assert sampler.session.preset == "whisper"


def test_unknown_preset_rejected(estimator, loop):
    sampler = _sampler(estimator, loop, [], [])
    with pytest.raises(UnknownPreset):
        run(sampler.begin("library"))
    assert not estimator.is_active


def test_releases_audio_it_opened(estimator, source, loop):
    """Calibration starts a stopped estimator and stops it again afterwards."""
    sampler = _sampler(estimator, loop, [], [])

    run(sampler.begin("whisper"))
    assert estimator.is_active
    source.push(make_frame(0.01))

    loop.advance(10)
    assert not estimator.is_active


def test_reuses_running_audio(estimator, loop):
    """An already running estimator is left running."""
    sampler = _sampler(estimator, loop, [], [])
    run(estimator.start())

    run(sampler.begin("whisper"))
    sampler.cancel()

    assert not sampler.is_active
    assert estimator.is_active


def test_cancel_discards_session(estimator, loop):
    """cancel() produces no summary and stops the timer."""
    results, errors = [], []
    sampler = _sampler(estimator, loop, results, errors)
    run(sampler.begin("whisper"))
    sampler.add_sample(40)

    sampler.cancel()
    loop.advance(20)

    assert results == [] and errors == []
    assert not estimator.is_active


def test_permission_denied_creates_no_session(estimator, source, loop):
    """Acquisition failures propagate and leave no session behind."""
    source.report_failure(PermissionDenied("denied"))
    sampler = _sampler(estimator, loop, [], [])

    with pytest.raises(PermissionDenied):
        run(sampler.begin("whisper"))

    assert not sampler.is_active
    assert loop.pending == []


def test_device_loss_finishes_with_partial_samples(estimator, source, loop):
    """Losing the microphone mid-session summarizes what was collected."""
    results, errors = [], []
    sampler = _sampler(estimator, loop, results, errors)
    run(sampler.begin("whisper"))
    for level in (30, 31, 32):
        sampler.add_sample(level)

    source.shutdown()

    assert not sampler.is_active
    assert results[0].sample_count == 3
    assert loop.pending == []
