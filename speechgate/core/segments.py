"""Grouping of per-frame decisions into speech segments."""

from collections.abc import Iterable

import numpy as np

from speechgate.core.models import FrameDecision, Segment


class SegmentExtractor:
    """Turns runs of consecutive speech decisions into Segments."""

    def __init__(self, min_speech_duration_ms: float, sample_rate: int):
        self.min_speech_duration_ms = min_speech_duration_ms
        self.sample_rate = sample_rate

    def _to_sample(self, timestamp_ms: float) -> int:
        return int(np.floor(timestamp_ms * self.sample_rate / 1000))

    def extract(self, decisions: Iterable[FrameDecision], samples: np.ndarray) -> list[Segment]:
        """
        Extract speech segments from ordered frame decisions.

        A segment opens on the first speech decision and closes at the
        timestamp of the next non-speech decision. Segments shorter than
        min_speech_duration_ms are dropped. A segment still open when the
        decisions run out is not emitted; append a non-speech decision to
        close it.

        Args:
            decisions: Decisions ordered by frame_index.
            samples: Audio the decisions were computed from.

        Returns:
            Segments in chronological order.
        """
        segments: list[Segment] = []
        segment_start: float | None = None
        probabilities: list[float] = []

        for decision in decisions:
            if decision.is_speech:
                if segment_start is None:
                    segment_start = decision.timestamp_ms
                probabilities.append(decision.probability)
                continue

            if segment_start is None:
                continue

            segment_end = decision.timestamp_ms
            if segment_end - segment_start >= self.min_speech_duration_ms:
                start_sample = self._to_sample(segment_start)
                end_sample = self._to_sample(segment_end)
                segments.append(
                    Segment(
                        start_ms=segment_start,
                        end_ms=segment_end,
                        samples=np.array(samples[start_sample:end_sample], dtype=np.float32),
                        confidence=float(np.mean(probabilities)),
                    )
                )

            segment_start = None
            probabilities = []

        return segments
