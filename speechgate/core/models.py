"""Data types shared by the activity state machine, segmenter and session."""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class FrameDecision:
    """Speech/silence decision for a single frame."""

    frame_index: int
    probability: float
    is_speech: bool
    timestamp_ms: float


@dataclass
class ActivityState:
    """Mutable activity bookkeeping owned by one ActivityStateMachine."""

    current_frame: int = 0
    speech_active: bool = False
    speech_start_ms: float | None = None
    silence_duration_ms: float = 0.0
    speech_duration_ms: float = 0.0


@dataclass(frozen=True, eq=False)
class Segment:
    """A contiguous span of speech with its own copy of the audio."""

    start_ms: float
    end_ms: float
    samples: np.ndarray
    confidence: float

    @property
    def duration_ms(self) -> float:
        """Length of the segment in milliseconds."""
        return self.end_ms - self.start_ms
