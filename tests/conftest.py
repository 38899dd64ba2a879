"""Shared test fixtures for SpeechGate test suite."""

import numpy as np
import pytest

from speechgate.audio.vad import CallableBackend


@pytest.fixture
def sample_audio() -> np.ndarray:
    """2-second float32 audio at 16kHz with audible signal (440Hz tone)."""
    t = np.arange(32000, dtype=np.float32) / 16000
    return (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


@pytest.fixture
def silent_audio() -> np.ndarray:
    """2-second silent audio at 16kHz."""
    return np.zeros(32000, dtype=np.float32)


@pytest.fixture
def two_burst_audio() -> np.ndarray:
    """3 seconds at 8kHz: tone in [0,1s) and [2s,3s), near-silence in between."""
    sr = 8000
    t = np.arange(3 * sr, dtype=np.float32) / sr
    audio = (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
    rng = np.random.default_rng(7)
    audio[sr : 2 * sr] = (rng.uniform(-0.005, 0.005, sr)).astype(np.float32)
    return audio


def _make_backend(probabilities, frame_size=None, fail_on=()):
    """
    Build a scripted CallableBackend.

    Args:
        probabilities: Values returned on successive calls (last one repeats).
        frame_size: Frame size the backend reports as required.
        fail_on: 1-based call numbers that raise RuntimeError instead.

    Returns:
        Tuple of (backend, calls) where calls records every invocation.
    """
    values = list(probabilities)
    calls = []

    def infer(samples, state, sample_rate):
        calls.append((samples, state.copy(), sample_rate))
        if len(calls) in fail_on:
            raise RuntimeError("backend exploded")
        value = values[min(len(calls) - 1, len(values) - 1)]
        return value, state + 1

    return CallableBackend(infer, state_shape=(2, 1, 4), frame_size=frame_size), calls


@pytest.fixture
def scripted_backend():
    """Factory for scripted inference backends (see _make_backend)."""
    return _make_backend
