"""Application settings using pydantic-settings."""

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from box_calibration.enums import ModeOverride, ScaleOverride


class APIServerSettings(BaseModel):
    """API server configuration."""

    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    workers: int = Field(default=1, ge=1, le=32, description="Number of uvicorn workers")
    cors_allow_origins: list[str] = Field(
        default_factory=list, description="CORS allowed origins (empty = no CORS)"
    )
    max_upload_size: int = Field(
        default=20 * 1024 * 1024, description="Max upload size in bytes (default 20MB)"
    )
    rate_limit: str = Field(default="30/minute", description="Rate limit for upload endpoints")
    api_key: str | None = Field(
        default=None, description="API key for changing preferences (None = auth disabled)"
    )


class CalibrationSettings(BaseModel):
    """Calibration configuration."""

    scale_override: ScaleOverride = Field(
        default=ScaleOverride.AUTO,
        description="Scale override used when no preference has been persisted",
    )
    mode_override: ModeOverride = Field(
        default=ModeOverride.AUTO,
        description="Mode override used when no preference has been persisted",
    )
    preferences_file: str = Field(
        default=".box_calibration/preferences.json",
        description="File holding the persisted operator overrides",
    )
    max_sessions: int = Field(
        default=64, ge=1, le=4096, description="Number of image sessions kept in memory"
    )
    hit_slop: float = Field(
        default=4.0, ge=0.0, le=64.0, description="Pointer tolerance in screen pixels"
    )
    diagnostic_sample_size: int = Field(
        default=5, ge=0, le=100, description="Raw rectangles included in diagnostic snapshots"
    )

    @field_validator("preferences_file")
    @classmethod
    def validate_preferences_file(cls, v: str) -> str:
        """Validate preferences path is not empty."""
        if not v or not v.strip():
            raise ValueError("Preferences file path cannot be empty")
        return v.strip()


class LoggingSettings(BaseModel):
    """Logging configuration."""

    loggers: dict[str, str] = Field(default={}, description="Loggers and their levels")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(
        default="[%(asctime)s] %(levelname)s [%(name)s] %(message)s",
        description="Log format",
    )
    date_format: str = Field(default="%Y-%m-%d %H:%M:%S", description="Log date format")
    rotate_logs: bool = Field(default=False, description="Rotate logs daily")
    log_file: str | None = Field(default=None, description="Log file to write to")


class AppSettings(BaseSettings):
    """Root application settings."""

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="BOXCAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_server: APIServerSettings = Field(default_factory=APIServerSettings)
    calibration: CalibrationSettings = Field(default_factory=CalibrationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
