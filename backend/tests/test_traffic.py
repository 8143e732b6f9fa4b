"""Unit tests for the traffic light state machine."""
import pytest
from noise_challenge.game.models import CalibrationSummary, TrafficState
from noise_challenge.game.traffic import TrafficStateMachine


def test_starts_green():
    machine = TrafficStateMachine(50, 65)
    assert machine.state is TrafficState.GREEN


def test_threshold_boundaries():
    """Yellow and red thresholds are inclusive lower bounds."""
    machine = TrafficStateMachine(50, 65)
    assert machine.classify(49.9) is TrafficState.GREEN
    assert machine.classify(50) is TrafficState.YELLOW
    assert machine.classify(64.9) is TrafficState.YELLOW
    assert machine.classify(65) is TrafficState.RED
    assert machine.classify(120) is TrafficState.RED


def test_transitions_reported_only_on_change():
    """evaluate() returns a Transition only when the state moves."""
    machine = TrafficStateMachine(50, 65)

    assert machine.evaluate(10) is None
    transition = machine.evaluate(70)
    assert transition.previous is TrafficState.GREEN
    assert transition.current is TrafficState.RED
    assert transition.level == 70
    assert machine.evaluate(80) is None


def test_no_hysteresis():
    """Readings oscillating around a threshold flip the state each time."""
    machine = TrafficStateMachine(50, 65)
    transitions = [machine.evaluate(level) for level in (49.9, 50.0, 49.9, 50.0)]
    assert [t.current if t else None for t in transitions] == [
        None, TrafficState.YELLOW, TrafficState.GREEN, TrafficState.YELLOW
    ]


def test_apply_calibration():
    """Calibrated thresholds replace the manual ones."""
    machine = TrafficStateMachine(50, 65)
    machine.apply_calibration(CalibrationSummary(preset="whisper", baseline=30, p80=33, yellow=38, red=46))

    assert machine.classify(40) is TrafficState.YELLOW
    assert machine.classify(46) is TrafficState.RED


def test_rejects_inverted_thresholds():
    with pytest.raises(ValueError):
        TrafficStateMachine(65, 50)


def test_reset_returns_to_green():
    machine = TrafficStateMachine(50, 65)
    machine.evaluate(90)

    machine.reset()

    assert machine.state is TrafficState.GREEN
    assert machine.evaluate(10) is None
