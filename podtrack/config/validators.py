"""Configuration validation schemas using Pydantic."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from podtrack.utils.exceptions import ConfigurationError


class RecordingConfig(BaseModel):
    """Track capture configuration validation."""

    sample_rate: int = Field(default=48000, description="Capture sample rate")
    channels: int = Field(default=1, description="Host microphone channel count")
    chunk_seconds: float = Field(
        default=1.0, description="Encoder delivery cadence in seconds of audio"
    )
    mono: bool = Field(default=False, description="Downmix every track to mono")
    flush_timeout_seconds: float = Field(
        default=10.0, description="Maximum wait for a track to finish flushing"
    )
    device: Optional[int] = Field(default=None, description="Host input device index")

    @field_validator("sample_rate")
    @classmethod
    def validate_sample_rate(cls, v: int) -> int:
        valid_rates = (8000, 16000, 22050, 32000, 44100, 48000, 96000)
        if v not in valid_rates:
            raise ValueError(f"Sample rate must be one of: {valid_rates}")
        return v

    @field_validator("channels")
    @classmethod
    def validate_channels(cls, v: int) -> int:
        if v not in (1, 2):
            raise ValueError("Channels must be 1 (mono) or 2 (stereo)")
        return v

    @field_validator("chunk_seconds", "flush_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class SilenceConfig(BaseModel):
    """Silence detection configuration validation."""

    threshold: float = Field(default=0.01, description="RMS threshold (0-1)")
    min_silence_duration: float = Field(
        default=1.5, description="Shortest quiet run counted as silence, in seconds"
    )
    padding: float = Field(
        default=0.3, description="Natural silence kept on each side of a cut"
    )
    window_seconds: float = Field(default=0.05, description="RMS window length")

    @field_validator("threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if v < 0 or v > 1:
            raise ValueError("Silence threshold must be between 0 and 1")
        return v

    @field_validator("min_silence_duration", "padding")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Duration cannot be negative")
        return v

    @field_validator("window_seconds")
    @classmethod
    def validate_window(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Window length must be positive")
        return v


class DeadAirConfig(BaseModel):
    """Dead air aggregation configuration validation."""

    missing_report_policy: str = Field(
        default="no_silence",
        description="How a track that failed to decode is treated",
    )
    max_workers: int = Field(default=4, description="Parallel analysis workers")
    edited_suffix: str = Field(default="_edited", description="Edited file suffix")

    @field_validator("missing_report_policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        valid_policies = ("no_silence", "skip")
        if v not in valid_policies:
            raise ValueError(f"Missing report policy must be one of: {valid_policies}")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("At least one analysis worker is required")
        return v


class ExportConfig(BaseModel):
    """Mixdown export configuration validation."""

    ffmpeg_binary: str = Field(default="ffmpeg", description="Transcoder executable")
    default_format: str = Field(default="mp3", description="Fallback export format")

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        valid_formats = ("mp3", "m4a", "wav")
        if v not in valid_formats:
            raise ValueError(f"Export format must be one of: {valid_formats}")
        return v


class StorageConfig(BaseModel):
    """Track storage configuration validation."""

    save_folder: str = Field(default="recordings", description="Track output folder")
    track_extensions: List[str] = Field(
        default=["wav"], description="Extensions listed as session tracks"
    )


class LoggingConfig(BaseModel):
    """Logging configuration validation."""

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log record format",
    )
    directory: str = Field(default="logs", description="Log directory")
    to_file: bool = Field(default=True, description="Also write daily log files")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


class PodTrackConfig(BaseModel):
    """Main PodTrack configuration validation."""

    app: Dict[str, Any] = Field(default_factory=dict)
    recording: RecordingConfig = Field(default_factory=RecordingConfig)
    silence: SilenceConfig = Field(default_factory=SilenceConfig)
    dead_air: DeadAirConfig = Field(default_factory=DeadAirConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "extra": "allow",
        "validate_assignment": True,
    }

    @model_validator(mode="before")
    @classmethod
    def handle_legacy_silence_keys(cls, data: Any) -> Any:
        """Accept the older flat ``silence_threshold`` key."""
        if isinstance(data, dict):
            silence = data.get("silence")
            if isinstance(silence, dict) and "silence_threshold" in silence:
                silence = dict(silence)
                silence.setdefault("threshold", silence.pop("silence_threshold"))
                data = {**data, "silence": silence}
        return data


def validate_config(config_dict: Dict[str, Any]) -> PodTrackConfig:
    """Validate configuration dictionary using Pydantic schemas.

    Args:
        config_dict: Configuration dictionary to validate

    Returns:
        Validated PodTrackConfig instance

    Raises:
        ConfigurationError: If configuration validation fails
    """
    try:
        return PodTrackConfig(**config_dict)
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e
