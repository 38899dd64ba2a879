"""Unit tests for speechgate.audio.vad."""

import numpy as np
from unittest.mock import MagicMock, patch

from speechgate.audio.vad import CallableBackend, SileroBackend


class TestSileroBackend:
    def _make_backend(self) -> SileroBackend:
        """Create a SileroBackend with mocked torch.hub.load."""
        mock_model = MagicMock()
        with patch("speechgate.audio.vad.torch") as mock_torch:
            mock_torch.hub.load.return_value = (mock_model, MagicMock())
            backend = SileroBackend()
        backend._model = mock_model
        return backend

    def test_loads_model_from_torch_hub(self):
        with patch("speechgate.audio.vad.torch") as mock_torch:
            mock_torch.hub.load.return_value = (MagicMock(), MagicMock())

            SileroBackend()

            mock_torch.hub.load.assert_called_once_with(
                repo_or_dir="snakers4/silero-vad",
                model="silero_vad",
                trust_repo=True,
            )

    def test_keeps_only_the_model(self):
        backend = self._make_backend()
        assert vars(backend).keys() == {"_model"}

    def test_infer_returns_probability_and_state(self):
        backend = self._make_backend()
        mock_result = MagicMock()
        mock_result.item.return_value = 0.75
        backend._model.return_value = mock_result
        state = np.zeros(0, dtype=np.float32)

        with patch("speechgate.audio.vad.torch") as mock_torch:
            mock_tensor = MagicMock()
            mock_tensor.float.return_value = mock_tensor
            mock_torch.from_numpy.return_value = mock_tensor

            probability, new_state = backend.infer(np.zeros(512, dtype=np.float32), state, 16000)

        assert probability == 0.75
        assert new_state is state
        backend._model.assert_called_once_with(mock_tensor, 16000)

    def test_initial_state_resets_model(self):
        backend = self._make_backend()
        state = backend.initial_state()
        backend._model.reset_states.assert_called_once()
        assert state.size == 0

    def test_expected_frame_size(self):
        backend = self._make_backend()
        assert backend.expected_frame_size(16000) == 512
        assert backend.expected_frame_size(8000) == 256

    def test_release_drops_model(self):
        backend = self._make_backend()
        backend.release()
        assert backend._model is None


class TestCallableBackend:
    def test_delegates_to_function(self):
        fn = MagicMock(return_value=(0.3, np.ones((2, 1, 128), dtype=np.float32)))
        backend = CallableBackend(fn)
        state = backend.initial_state()
        frame = np.zeros(512, dtype=np.float32)

        probability, new_state = backend.infer(frame, state, 8000)

        fn.assert_called_once_with(frame, state, 8000)
        assert probability == 0.3
        assert np.all(new_state == 1)

    def test_initial_state_is_zeroed(self):
        state = CallableBackend(MagicMock(), state_shape=(2, 1, 128)).initial_state()
        assert state.shape == (2, 1, 128)
        assert not state.any()

    def test_expected_frame_size(self):
        assert CallableBackend(MagicMock()).expected_frame_size(16000) is None
        assert CallableBackend(MagicMock(), frame_size=1536).expected_frame_size(8000) == 1536

    def test_release_hook_runs_once(self):
        hook = MagicMock()
        backend = CallableBackend(MagicMock(), on_release=hook)
        backend.release()
        backend.release()
        hook.assert_called_once()
