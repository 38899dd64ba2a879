"""Configuration loading and dataclasses for SpeechGate."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from speechgate.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_SAMPLE_RATES = (8000, 16000)
SUPPORTED_FRAME_SIZES = (256, 512, 768, 1024, 1536)
PROBABILITY_SOURCES = ("model", "energy")


@dataclass
class VADConfig:
    """Voice activity detection settings."""

    sample_rate: int = 16000
    frame_size: int = 512  # 32ms @ 16kHz, the Silero streaming chunk
    threshold: float = 0.5
    min_speech_duration_ms: float = 250.0
    max_silence_duration_ms: float = 2000.0
    source: str = "model"  # model|energy
    fallback_to_energy: bool = True
    energy_min: float = 0.001  # RMS at or below this maps to probability 0
    energy_max: float = 0.1  # RMS at or above this maps to probability 1

    def __post_init__(self) -> None:
        if self.sample_rate not in SUPPORTED_SAMPLE_RATES:
            raise ConfigurationError(
                f"Sample rate must be one of {SUPPORTED_SAMPLE_RATES} Hz, got {self.sample_rate}"
            )
        if self.frame_size not in SUPPORTED_FRAME_SIZES:
            raise ConfigurationError(
                f"Frame size must be one of {SUPPORTED_FRAME_SIZES}, got {self.frame_size}"
            )
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigurationError(f"Threshold must be between 0 and 1, got {self.threshold}")
        if self.min_speech_duration_ms < 0:
            raise ConfigurationError("min_speech_duration_ms must be >= 0")
        if self.max_silence_duration_ms < 0:
            raise ConfigurationError("max_silence_duration_ms must be >= 0")
        if self.source not in PROBABILITY_SOURCES:
            raise ConfigurationError(
                f"Unknown probability source: {self.source} (expected one of {PROBABILITY_SOURCES})"
            )
        if not 0.0 <= self.energy_min < self.energy_max:
            raise ConfigurationError("energy_min must be >= 0 and below energy_max")

    @property
    def frame_duration_ms(self) -> float:
        """Duration of one frame in milliseconds."""
        return self.frame_size / self.sample_rate * 1000


@dataclass
class PreprocessConfig:
    """Optional clean-up applied by StreamingSession.prepare_audio."""

    high_pass: bool = True
    high_pass_cutoff_hz: float = 80.0
    normalize: bool = False
    target_peak: float = 0.95

    def __post_init__(self) -> None:
        if self.high_pass_cutoff_hz <= 0:
            raise ConfigurationError("high_pass_cutoff_hz must be > 0")
        if not 0.0 < self.target_peak <= 1.0:
            raise ConfigurationError("target_peak must be in (0, 1]")


@dataclass
class LoggingConfig:
    """Logging output settings."""

    level: str = "INFO"
    show_path: bool = False

    def __post_init__(self) -> None:
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise ConfigurationError(f"Unknown log level: {self.level}")
        self.level = self.level.upper()


@dataclass
class SpeechGateConfig:
    """Top-level configuration for SpeechGate."""

    vad: VADConfig = field(default_factory=VADConfig)
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _build(cls: type, data: Any, section: str):
    """Instantiate a config dataclass from a YAML mapping."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{section}' must be a mapping")
    try:
        return cls(**data)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid key in section '{section}': {exc}") from exc


def load_config(config_path: str = "config/default.yaml") -> SpeechGateConfig:
    """
    Load SpeechGate configuration from YAML file.

    Args:
        config_path: Path to the main configuration file.

    Returns:
        SpeechGateConfig with all settings loaded.

    Raises:
        ConfigurationError: If a section is malformed or a value is invalid.
    """
    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning("Config file not found: %s, using defaults", config_path)
        return SpeechGateConfig()

    data = _load_yaml(config_file)

    return SpeechGateConfig(
        vad=_build(VADConfig, data.get("vad", {}), "vad"),
        preprocess=_build(PreprocessConfig, data.get("preprocess", {}), "preprocess"),
        logging=_build(LoggingConfig, data.get("logging", {}), "logging"),
    )
