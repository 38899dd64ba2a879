"""Streaming VAD session: preprocessing, probability source and activity state."""

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import replace

import numpy as np

from speechgate.audio.preprocess import (
    high_pass_filter,
    normalize,
    pad_frame,
    pcm_to_float,
    resample,
)
from speechgate.audio.sources import (
    EnergyProbabilitySource,
    FallbackProbabilitySource,
    ModelProbabilitySource,
    ProbabilitySource,
)
from speechgate.audio.vad import InferenceBackend, SileroBackend
from speechgate.core.config import PreprocessConfig, SpeechGateConfig, VADConfig
from speechgate.core.errors import (
    ConfigurationError,
    FrameSizeError,
    SessionNotInitializedError,
)
from speechgate.core.models import ActivityState, FrameDecision, Segment
from speechgate.core.segments import SegmentExtractor
from speechgate.core.state_machine import ActivityStateMachine

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], InferenceBackend]


def _warm_up(source: ModelProbabilitySource, frame_size: int) -> None:
    """Run one silent frame through the model, then clear its state."""
    source.infer(np.zeros(frame_size, dtype=np.float32))
    source.reset()


def create_probability_source(
    config: VADConfig, backend_factory: BackendFactory | None = None
) -> ProbabilitySource:
    """
    Factory function to create the probability source for a session.

    Args:
        config: VAD configuration.
        backend_factory: Callable returning an inference backend. Defaults
            to loading Silero VAD through torch.hub.

    Returns:
        Probability source instance. With fallback_to_energy enabled, a
        model that fails to load or warm up yields the energy source and a
        model that loads is wrapped so later failures degrade to energy.

    Raises:
        ConfigurationError: If the backend requires a different frame size.
    """
    energy = EnergyProbabilitySource(config.energy_min, config.energy_max)
    if config.source == "energy":
        return energy

    factory = backend_factory or SileroBackend
    try:
        backend = factory()
    except Exception as exc:
        if not config.fallback_to_energy:
            raise
        logger.warning("Failed to load VAD model: %s", exc)
        logger.warning("Falling back to energy-based VAD...")
        return energy

    expected = backend.expected_frame_size(config.sample_rate)
    if expected is not None and expected != config.frame_size:
        backend.release()
        raise ConfigurationError(
            f"Model expects {expected}-sample frames at {config.sample_rate} Hz, "
            f"configured frame_size is {config.frame_size}"
        )

    try:
        model = ModelProbabilitySource(backend, config.sample_rate)
        _warm_up(model, config.frame_size)
    except Exception as exc:
        backend.release()
        if not config.fallback_to_energy:
            raise
        logger.warning("VAD model test failed: %s", exc)
        logger.warning("Falling back to energy-based VAD...")
        return energy

    logger.info("VAD model loaded successfully")
    if config.fallback_to_energy:
        return FallbackProbabilitySource(model, energy)
    return model


class StreamingSession:
    """Frame-by-frame voice activity detection for one audio stream.

    Construction validates configuration only; initialize() acquires the
    probability source and dispose() releases it. Use as a context manager
    to guarantee release:

        with StreamingSession(VADConfig(source="energy")) as session:
            decisions = session.process_audio(samples)
            segments = session.extract_speech_segments(decisions, samples)

    Frames must be submitted one at a time in arrival order.
    """

    def __init__(
        self,
        config: VADConfig | None = None,
        preprocess: PreprocessConfig | None = None,
        backend_factory: BackendFactory | None = None,
    ):
        """
        Args:
            config: VAD configuration.
            preprocess: Preprocessing applied by prepare_audio().
            backend_factory: Optional inference backend factory for source="model".
        """
        self.config = config or VADConfig()
        self.preprocess = preprocess or PreprocessConfig()
        self._backend_factory = backend_factory
        self._source: ProbabilitySource | None = None
        self._machine = ActivityStateMachine(
            threshold=self.config.threshold,
            max_silence_duration_ms=self.config.max_silence_duration_ms,
            frame_duration_ms=self.config.frame_duration_ms,
        )
        self._extractor = SegmentExtractor(
            min_speech_duration_ms=self.config.min_speech_duration_ms,
            sample_rate=self.config.sample_rate,
        )

    @classmethod
    def from_config(
        cls, config: SpeechGateConfig, backend_factory: BackendFactory | None = None
    ) -> "StreamingSession":
        """Build a session from a loaded SpeechGateConfig."""
        return cls(config.vad, config.preprocess, backend_factory)

    def __enter__(self) -> "StreamingSession":
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    @property
    def initialized(self) -> bool:
        return self._source is not None

    @property
    def degraded(self) -> bool:
        """True when speech probabilities come from the energy fallback."""
        if isinstance(self._source, FallbackProbabilitySource):
            return self._source.degraded
        return self.config.source == "model" and isinstance(
            self._source, EnergyProbabilitySource
        )

    @property
    def frame_duration_ms(self) -> float:
        return self.config.frame_duration_ms

    def initialize(self) -> None:
        """Acquire the probability source. No-op if already initialized."""
        if self._source is None:
            self._source = create_probability_source(self.config, self._backend_factory)

    def process_frame(self, frame: np.ndarray) -> FrameDecision:
        """
        Classify one frame and advance the activity state.

        Args:
            frame: float32 samples, exactly config.frame_size long.

        Returns:
            Decision for this frame.

        Raises:
            SessionNotInitializedError: If initialize() has not been called.
            FrameSizeError: If the frame has the wrong length.
            InferenceError: If the model fails and fallback is disabled.
        """
        if self._source is None:
            raise SessionNotInitializedError("Call initialize() before processing frames")

        frame = np.asarray(frame, dtype=np.float32)
        if frame.ndim != 1 or frame.shape[0] != self.config.frame_size:
            raise FrameSizeError(
                f"Audio frame size must be {self.config.frame_size}, got {frame.size}"
            )

        probability = self._source.infer(frame)

        frame_index = self._machine.current_frame
        timestamp_ms = frame_index * self.frame_duration_ms
        is_speech = self._machine.update(probability, timestamp_ms)
        self._machine.advance()

        return FrameDecision(
            frame_index=frame_index,
            probability=probability,
            is_speech=is_speech,
            timestamp_ms=timestamp_ms,
        )

    def process_audio(self, samples: np.ndarray) -> list[FrameDecision]:
        """
        Run a whole buffer through the session.

        The buffer is cut into consecutive frame_size chunks; a short final
        chunk is zero-padded rather than dropped so trailing audio is scored.

        Args:
            samples: float32 audio at config.sample_rate.

        Returns:
            One decision per chunk.
        """
        samples = np.asarray(samples, dtype=np.float32)
        frame_size = self.config.frame_size
        return [
            self.process_frame(pad_frame(samples[start : start + frame_size], frame_size))
            for start in range(0, len(samples), frame_size)
        ]

    def stream(self, frames: Iterable[np.ndarray]) -> Iterator[FrameDecision]:
        """Lazily classify frames from a live source, in arrival order."""
        for frame in frames:
            yield self.process_frame(frame)

    def extract_speech_segments(
        self, decisions: Iterable[FrameDecision], samples: np.ndarray
    ) -> list[Segment]:
        """Group decisions into speech segments cut from samples."""
        return self._extractor.extract(decisions, samples)

    def prepare_audio(self, samples: np.ndarray, source_rate: int) -> np.ndarray:
        """
        Convert raw audio into the session's working format.

        Converts PCM to float, resamples to config.sample_rate, then applies
        the configured high-pass filter and peak normalization.

        Args:
            samples: Mono PCM (int16/int32) or float samples.
            source_rate: Sample rate of the input in Hz.

        Returns:
            float32 samples ready for process_audio().
        """
        audio = resample(pcm_to_float(samples), source_rate, self.config.sample_rate)
        if self.preprocess.high_pass:
            audio = high_pass_filter(
                audio, self.preprocess.high_pass_cutoff_hz, self.config.sample_rate
            )
        if self.preprocess.normalize:
            audio = normalize(audio, self.preprocess.target_peak)
        return audio

    def reset(self) -> None:
        """Return activity state and recurrent state to their initial values."""
        self._machine.reset()
        if self._source is not None:
            self._source.reset()

    def get_state(self) -> ActivityState:
        """Snapshot of the current activity state."""
        return self._machine.state

    def get_config(self) -> VADConfig:
        """Copy of the session configuration."""
        return replace(self.config)

    def dispose(self) -> None:
        """Release the probability source. Safe to call more than once."""
        if self._source is None:
            return
        source, self._source = self._source, None
        source.release()
        logger.debug("VAD session disposed")
