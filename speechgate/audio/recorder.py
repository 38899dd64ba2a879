"""Live microphone capture feeding a StreamingSession."""

from __future__ import annotations

import threading
from collections.abc import Generator
from queue import Empty, Queue

import numpy as np
import sounddevice as sd
from rich.console import Console

from speechgate.audio.preprocess import to_mono
from speechgate.core.models import Segment
from speechgate.core.session import StreamingSession

console = Console()


class AudioRecorder:
    """Captures mono audio from the microphone in fixed-size frames."""

    def __init__(self, sample_rate: int = 16000, channels: int = 1):
        """
        Initialize the audio recorder.

        Args:
            sample_rate: Audio sample rate in Hz.
            channels: Number of input channels, averaged down to mono.
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self._chunks: Queue[np.ndarray] = Queue()

    def _audio_callback(
        self, indata: np.ndarray, _frames: int, _time_info: object, status: sd.CallbackFlags
    ) -> None:
        """Callback for audio stream, receives float32 numpy arrays."""
        if status:
            console.print(f"[yellow]Audio status: {status}[/yellow]")
        self._chunks.put(np.array(to_mono(indata.reshape(-1), self.channels), dtype=np.float32))

    def _rechunk(self, pending: np.ndarray, frame_size: int) -> tuple[list[np.ndarray], np.ndarray]:
        """Split buffered audio into whole frames plus a remainder."""
        count = len(pending) // frame_size
        frames = [pending[i * frame_size : (i + 1) * frame_size] for i in range(count)]
        return frames, pending[count * frame_size :]

    def frames(
        self, frame_size: int, stop: threading.Event | None = None
    ) -> Generator[np.ndarray, None, None]:
        """
        Yield microphone audio as float32 frames of exactly frame_size samples.

        Args:
            frame_size: Samples per frame.
            stop: Optional event to signal clean shutdown.

        Yields:
            Mono float32 frames.
        """
        self._chunks = Queue()
        pending = np.zeros(0, dtype=np.float32)

        with sd.InputStream(
            samplerate=self.sample_rate,
            dtype="float32",
            channels=self.channels,
            blocksize=frame_size,
            callback=self._audio_callback,
        ):
            while stop is None or not stop.is_set():
                try:
                    chunk = self._chunks.get(timeout=0.1)
                except Empty:
                    continue

                pending = np.concatenate([pending, chunk.astype(np.float32)])
                ready, pending = self._rechunk(pending, frame_size)
                yield from ready

    def listen(
        self, session: StreamingSession, stop: threading.Event | None = None
    ) -> Generator[Segment, None, None]:
        """
        Continuously listen, yielding an utterance each time speech ends.

        An utterance ends when the session's silence hangover expires. Audio
        from the first speech frame through the closing silent frame is
        returned; utterances with less than min_speech_duration_ms of
        speech are discarded.

        Args:
            session: Initialized session running at this recorder's sample rate.
            stop: Optional event to signal clean shutdown.

        Yields:
            Completed utterances.
        """
        config = session.config
        utterance: list[np.ndarray] = []
        probabilities: list[float] = []
        start_ms: float | None = None

        for frame in self.frames(config.frame_size, stop):
            decision = session.process_frame(frame)
            state = session.get_state()

            if state.speech_active:
                if start_ms is None:
                    start_ms = state.speech_start_ms
                utterance.append(frame)
                if decision.is_speech:
                    probabilities.append(decision.probability)
                continue

            if start_ms is None:
                continue

            # Hangover expired on this frame
            utterance.append(frame)
            if state.speech_duration_ms >= config.min_speech_duration_ms:
                yield Segment(
                    start_ms=start_ms,
                    end_ms=decision.timestamp_ms + session.frame_duration_ms,
                    samples=np.concatenate(utterance),
                    confidence=float(np.mean(probabilities)) if probabilities else 0.0,
                )
            utterance = []
            probabilities = []
            start_ms = None
