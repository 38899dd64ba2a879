"""Per-frame speech/silence decisions with a silence hangover window."""

from dataclasses import replace

from speechgate.core.models import ActivityState


class ActivityStateMachine:
    """Threshold + duration hysteresis over a stream of frame probabilities.

    Speech starts on the first frame whose probability reaches the
    threshold. It only ends once the accumulated silence since the last
    speech frame reaches max_silence_duration_ms, so short pauses inside
    an utterance keep it open.
    """

    def __init__(self, threshold: float, max_silence_duration_ms: float, frame_duration_ms: float):
        """
        Args:
            threshold: Probability at or above which a frame counts as speech.
            max_silence_duration_ms: Silence needed to end an active utterance.
            frame_duration_ms: Duration of one frame in milliseconds.
        """
        self.threshold = threshold
        self.max_silence_duration_ms = max_silence_duration_ms
        self.frame_duration_ms = frame_duration_ms
        self._state = ActivityState()

    @property
    def state(self) -> ActivityState:
        """Snapshot of the current state."""
        return replace(self._state)

    @property
    def current_frame(self) -> int:
        return self._state.current_frame

    def update(self, probability: float, timestamp_ms: float) -> bool:
        """
        Apply one frame's probability to the activity state.

        Args:
            probability: Speech probability for the frame.
            timestamp_ms: Start time of the frame.

        Returns:
            True if the frame is classified as speech.
        """
        state = self._state
        is_speech = probability >= self.threshold

        if is_speech:
            if not state.speech_active:
                state.speech_active = True
                state.speech_start_ms = timestamp_ms
                state.speech_duration_ms = 0.0
            state.speech_duration_ms += self.frame_duration_ms
            state.silence_duration_ms = 0.0
        elif state.speech_active:
            state.silence_duration_ms += self.frame_duration_ms
            if state.silence_duration_ms >= self.max_silence_duration_ms:
                state.speech_active = False
                state.speech_start_ms = None

        return is_speech

    def advance(self) -> None:
        """Move on to the next frame."""
        self._state.current_frame += 1

    def reset(self) -> None:
        """Return to the initial inactive state at frame 0."""
        self._state = ActivityState()
