"""Custom exceptions for SpeechGate."""


class SpeechGateError(Exception):
    """Base class for all SpeechGate errors."""


class ConfigurationError(SpeechGateError, ValueError):
    """Raised for invalid sample rate, frame size, threshold or durations."""


class FrameSizeError(SpeechGateError, ValueError):
    """Raised when a frame does not match the configured frame size."""


class InferenceError(SpeechGateError, RuntimeError):
    """Raised when the inference backend fails or returns malformed output."""


class SessionNotInitializedError(SpeechGateError, RuntimeError):
    """Raised when a session is used before initialize() or after dispose()."""
