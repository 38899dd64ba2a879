"""Inference backends that turn an audio frame into a speech probability."""

from collections.abc import Callable
from typing import Protocol

import numpy as np
import torch

InferFn = Callable[[np.ndarray, np.ndarray, int], tuple[float, np.ndarray]]


class InferenceBackend(Protocol):
    """Frame + recurrent state -> speech probability + updated state."""

    def initial_state(self) -> np.ndarray:
        """Return a fresh recurrent state and clear any memory kept internally."""
        ...

    def infer(
        self, samples: np.ndarray, state: np.ndarray, sample_rate: int
    ) -> tuple[float, np.ndarray]:
        """Score one frame. May raise on backend failure."""
        ...

    def expected_frame_size(self, sample_rate: int) -> int | None:
        """Frame size the model requires at this rate, or None if any size works."""
        ...

    def release(self) -> None:
        """Free model resources."""
        ...


class SileroBackend:
    """Silero VAD model loaded through torch.hub.

    The scripted model carries its LSTM memory internally, so the explicit
    state passed through infer() is an empty placeholder and
    initial_state() resets the model's own memory instead.
    """

    # Streaming chunk sizes accepted by the current Silero release
    FRAME_SIZES = {16000: 512, 8000: 256}

    def __init__(self, repo_or_dir: str = "snakers4/silero-vad"):
        """
        Load the Silero VAD model.

        Args:
            repo_or_dir: torch.hub repository or local checkout holding the model.
        """
        self._model, _ = torch.hub.load(
            repo_or_dir=repo_or_dir,
            model="silero_vad",
            trust_repo=True,
        )

    def initial_state(self) -> np.ndarray:
        self._model.reset_states()
        return np.zeros(0, dtype=np.float32)

    def infer(
        self, samples: np.ndarray, state: np.ndarray, sample_rate: int
    ) -> tuple[float, np.ndarray]:
        """
        Score an audio frame for speech probability.

        Args:
            samples: float32 frame (512 samples = 32ms @ 16kHz).
            state: Placeholder state, returned unchanged.
            sample_rate: 8000 or 16000.

        Returns:
            Tuple of (probability, state).
        """
        tensor = torch.from_numpy(np.ascontiguousarray(samples, dtype=np.float32)).float()
        score: float = self._model(tensor, sample_rate).item()
        return score, state

    def expected_frame_size(self, sample_rate: int) -> int | None:
        return self.FRAME_SIZES.get(sample_rate)

    def release(self) -> None:
        self._model = None


class CallableBackend:
    """Adapts a plain function (e.g. an ONNX session wrapper) to InferenceBackend."""

    def __init__(
        self,
        fn: InferFn,
        state_shape: tuple[int, ...] = (2, 1, 128),
        frame_size: int | None = None,
        on_release: Callable[[], None] | None = None,
    ):
        """
        Args:
            fn: Called as fn(samples, state, sample_rate) -> (probability, new_state).
            state_shape: Shape of the zero-initialised recurrent state.
            frame_size: Frame size the function requires, if any.
            on_release: Optional hook run once when the backend is released.
        """
        self._fn = fn
        self._state_shape = state_shape
        self._frame_size = frame_size
        self._on_release = on_release

    def initial_state(self) -> np.ndarray:
        return np.zeros(self._state_shape, dtype=np.float32)

    def infer(
        self, samples: np.ndarray, state: np.ndarray, sample_rate: int
    ) -> tuple[float, np.ndarray]:
        return self._fn(samples, state, sample_rate)

    def expected_frame_size(self, sample_rate: int) -> int | None:
        return self._frame_size

    def release(self) -> None:
        if self._on_release is not None:
            self._on_release()
            self._on_release = None
