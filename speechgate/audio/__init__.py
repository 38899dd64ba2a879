"""Audio module - Preprocessing, probability sources and capture."""

# Lazy imports to avoid loading torch/sounddevice on module load
# Use: from speechgate.audio.preprocess import resample, create_frames
# Use: from speechgate.audio.sources import EnergyProbabilitySource
# Use: from speechgate.audio.vad import SileroBackend
# Use: from speechgate.audio.recorder import AudioRecorder
