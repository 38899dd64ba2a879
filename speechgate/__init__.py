"""SpeechGate - streaming voice activity detection and speech segmentation."""

# Lazy imports to avoid loading torch/sounddevice on package import
# Use: from speechgate.core.session import StreamingSession
# Use: from speechgate.core.config import VADConfig, load_config
