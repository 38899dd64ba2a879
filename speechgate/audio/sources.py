"""Speech probability sources: model-backed, energy heuristic and fallback."""

import logging
import math
from typing import Protocol

import numpy as np

from speechgate.audio.vad import InferenceBackend
from speechgate.core.errors import InferenceError

logger = logging.getLogger(__name__)


class ProbabilitySource(Protocol):
    """Produces one speech probability per fixed-size frame."""

    def infer(self, frame: np.ndarray) -> float:
        """Return a probability in [0, 1]. Raises InferenceError on failure."""
        ...

    def reset(self) -> None:
        """Clear any recurrent state."""
        ...

    def release(self) -> None:
        """Free underlying resources."""
        ...


class EnergyProbabilitySource:
    """RMS energy mapped linearly onto [0, 1]."""

    def __init__(self, min_energy: float = 0.001, max_energy: float = 0.1):
        """
        Args:
            min_energy: RMS at or below this is treated as silence.
            max_energy: RMS at or above this is treated as certain speech.
        """
        self.min_energy = min_energy
        self.max_energy = max_energy

    def infer(self, frame: np.ndarray) -> float:
        if len(frame) == 0:
            return 0.0
        rms = float(np.sqrt(np.mean(np.square(frame, dtype=np.float64))))
        scaled = (rms - self.min_energy) / (self.max_energy - self.min_energy)
        return min(1.0, max(0.0, scaled))

    def reset(self) -> None:
        pass

    def release(self) -> None:
        pass


class ModelProbabilitySource:
    """Wraps an inference backend and owns its recurrent state."""

    def __init__(self, backend: InferenceBackend, sample_rate: int):
        self.backend = backend
        self.sample_rate = sample_rate
        self._state = backend.initial_state()

    @property
    def state(self) -> np.ndarray:
        """Recurrent state fed into the next inference call."""
        return self._state

    def infer(self, frame: np.ndarray) -> float:
        """
        Run the backend on one frame.

        The recurrent state is only replaced once the backend has returned
        a well-formed result.

        Raises:
            InferenceError: On any backend exception or malformed output.
        """
        try:
            probability, new_state = self.backend.infer(frame, self._state, self.sample_rate)
            probability = float(probability)
        except Exception as exc:
            raise InferenceError(f"Model inference failed: {exc}") from exc

        if not math.isfinite(probability) or not 0.0 <= probability <= 1.0:
            raise InferenceError(f"Model returned invalid probability: {probability}")

        self._state = new_state
        return probability

    def reset(self) -> None:
        self._state = self.backend.initial_state()

    def release(self) -> None:
        self.backend.release()


class FallbackProbabilitySource:
    """Primary source that degrades permanently to a fallback on first failure."""

    def __init__(self, primary: ProbabilitySource, fallback: ProbabilitySource):
        self.primary = primary
        self.fallback = fallback
        self._degraded = False

    @property
    def degraded(self) -> bool:
        """True once the primary source has failed."""
        return self._degraded

    def infer(self, frame: np.ndarray) -> float:
        if self._degraded:
            return self.fallback.infer(frame)
        try:
            return self.primary.infer(frame)
        except InferenceError as exc:
            logger.warning("%s; falling back to energy-based VAD for the rest of the session", exc)
            self._degraded = True
            return self.fallback.infer(frame)

    def reset(self) -> None:
        # A failed primary is never consulted again
        if not self._degraded:
            self.primary.reset()
        self.fallback.reset()

    def release(self) -> None:
        self.primary.release()
        self.fallback.release()
