"""Numeric audio preprocessing: resampling, filtering, normalization, framing."""

from collections.abc import Iterator

import numpy as np
from scipy.signal import lfilter

# Full-scale divisors for fixed-point PCM
_PCM_SCALE = {
    np.dtype(np.int16): 32768.0,
    np.dtype(np.int32): 2147483648.0,
}


def pcm_to_float(data: np.ndarray) -> np.ndarray:
    """
    Convert fixed-point PCM samples to float32 in [-1, 1].

    Args:
        data: int16 or int32 PCM samples, or floating samples (passed through).

    Returns:
        float32 numpy array.

    Raises:
        ValueError: If the sample dtype is not supported.
    """
    data = np.asarray(data)
    if data.dtype in _PCM_SCALE:
        return (data / _PCM_SCALE[data.dtype]).astype(np.float32)
    if np.issubdtype(data.dtype, np.floating):
        return data.astype(np.float32, copy=False)
    raise ValueError(f"Unsupported sample format: {data.dtype}")


def to_mono(samples: np.ndarray, channels: int) -> np.ndarray:
    """
    Average interleaved multi-channel samples down to one channel.

    Args:
        samples: Interleaved samples (L, R, L, R, ... for stereo).
        channels: Number of interleaved channels.

    Returns:
        Mono float32 samples.
    """
    if channels < 1:
        raise ValueError(f"channels must be >= 1, got {channels}")
    if channels == 1:
        return samples
    if len(samples) % channels:
        raise ValueError(f"{len(samples)} samples cannot be split into {channels} channels")
    return samples.reshape(-1, channels).mean(axis=1).astype(np.float32)


def resample(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """
    Resample audio using linear interpolation.

    Args:
        samples: Input samples.
        source_rate: Sample rate of the input in Hz.
        target_rate: Desired sample rate in Hz.

    Returns:
        The input itself when the rates match, otherwise a new float32 array
        of floor(len(samples) * target_rate / source_rate) samples.
    """
    if source_rate == target_rate:
        return samples

    ratio = source_rate / target_rate
    output_length = int(np.floor(len(samples) / ratio))
    if output_length == 0:
        return np.zeros(0, dtype=np.float32)

    positions = np.arange(output_length) * ratio
    # np.interp clamps past the last sample, which is the nearest-sample fallback
    output = np.interp(positions, np.arange(len(samples)), samples)
    return output.astype(np.float32)


def high_pass_filter(
    samples: np.ndarray, cutoff_hz: float = 80.0, sample_rate: int = 16000
) -> np.ndarray:
    """
    Remove DC offset and low-frequency rumble with a single-pole IIR filter.

    y[i] = alpha * (y[i-1] + x[i] - x[i-1]), starting from zero state.

    Args:
        samples: Input samples.
        cutoff_hz: Cutoff frequency in Hz.
        sample_rate: Sample rate in Hz.

    Returns:
        Filtered float32 samples, same length as the input.
    """
    if len(samples) == 0:
        return np.zeros(0, dtype=np.float32)

    rc = 1.0 / (2 * np.pi * cutoff_hz)
    dt = 1.0 / sample_rate
    alpha = rc / (rc + dt)
    filtered = lfilter([alpha, -alpha], [1.0, -alpha], samples)
    return filtered.astype(np.float32)


def normalize(samples: np.ndarray, target_peak: float = 0.95) -> np.ndarray:
    """
    Scale audio so its absolute peak equals target_peak.

    Args:
        samples: Input samples.
        target_peak: Desired absolute peak value.

    Returns:
        Scaled float32 samples, or the input unchanged if it is silent.
    """
    if len(samples) == 0:
        return samples
    peak = float(np.max(np.abs(samples)))
    if peak == 0.0:
        return samples
    return (samples * (target_peak / peak)).astype(np.float32)


def pad_frame(chunk: np.ndarray, frame_size: int) -> np.ndarray:
    """Zero-pad a short chunk at the end up to frame_size samples."""
    if len(chunk) >= frame_size:
        return chunk
    padded = np.zeros(frame_size, dtype=np.float32)
    padded[: len(chunk)] = chunk
    return padded


class FrameSequence:
    """Re-iterable view of fixed-size frames over a sample buffer.

    Frames are cut lazily on iteration. A trailing partial frame is dropped.
    """

    def __init__(self, samples: np.ndarray, frame_size: int, hop_size: int | None = None):
        hop = frame_size if hop_size is None else hop_size
        if frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {frame_size}")
        if hop <= 0:
            raise ValueError(f"hop_size must be positive, got {hop}")
        self._samples = samples
        self.frame_size = frame_size
        self.hop_size = hop

    def __len__(self) -> int:
        if len(self._samples) < self.frame_size:
            return 0
        return (len(self._samples) - self.frame_size) // self.hop_size + 1

    def __getitem__(self, index: int) -> np.ndarray:
        count = len(self)
        if index < 0:
            index += count
        if not 0 <= index < count:
            raise IndexError("frame index out of range")
        start = index * self.hop_size
        return self._samples[start : start + self.frame_size].copy()

    def __iter__(self) -> Iterator[np.ndarray]:
        for index in range(len(self)):
            yield self[index]


def create_frames(
    samples: np.ndarray, frame_size: int, hop_size: int | None = None
) -> FrameSequence:
    """
    Split audio into (optionally overlapping) fixed-size frames.

    Args:
        samples: Input samples.
        frame_size: Samples per frame.
        hop_size: Step between frame starts. Defaults to frame_size.

    Returns:
        FrameSequence; samples left over after the last full frame are dropped.
    """
    return FrameSequence(samples, frame_size, hop_size)
