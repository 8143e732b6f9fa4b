"""Error taxonomy shared by the audio, calibration and API layers."""


class NoiseChallengeError(Exception):
    """Base class for errors surfaced to callers."""

    code = "error"


class AudioAcquisitionError(NoiseChallengeError):
    """The audio input could not be acquired."""


class PermissionDenied(AudioAcquisitionError):
    """The user or the OS refused access to the microphone."""

    code = "permission_denied"


class DeviceUnavailable(AudioAcquisitionError):
    """No usable input device exists, or it went away."""

    code = "device_unavailable"


class CalibrationError(NoiseChallengeError):
    """Base class for calibration failures."""


class AlreadyCalibrating(CalibrationError):
    """A calibration session is already running."""

    code = "already_calibrating"


class EmptyCapture(CalibrationError):
    """Calibration finished without collecting a single sample."""

    code = "empty_capture"


class UnknownPreset(NoiseChallengeError, ValueError):
    """The requested noise preset does not exist."""

    code = "unknown_preset"
