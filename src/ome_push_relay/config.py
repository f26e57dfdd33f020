"""Configuration settings for the OME push relay."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Configuration for the admission webhook and the OME REST API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application that receives the streams to relay
    incoming_app: str = Field(
        default="rtmprelay",
        description="OME application name expected on incoming admission URLs",
    )

    # FastAPI server settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host address",
    )
    api_port: int = Field(
        default=9595,
        description="API server port",
    )

    # OME REST API settings
    ome_api_base_url: str = Field(
        default="http://127.0.0.1:8081/v1/vhosts/default/apps",
        description="Base URL of the OME REST API, up to and including the vhost apps path",
    )
    ome_api_access_token: str = Field(
        default="",
        description="OME API access token, sent as HTTP Basic credentials",
    )
    ome_api_timeout: float = Field(
        default=5.0,
        description="Timeout for OME API calls in seconds",
    )

    # Reconciliation timing
    push_settle_delay: float = Field(
        default=5.0,
        description="Seconds to wait between stopping and restarting a push on target change",
    )
    cleanup_delay: float = Field(
        default=60.0,
        description="Debounce delay in seconds before sweeping stale pushes after a closing event",
    )

    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )

    @field_validator("ome_api_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so endpoints can be joined with a single '/'."""
        return v.rstrip("/")

    @field_validator("log_level", mode="after")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the level name for the logging module."""
        return v.strip().upper()


config = Config()
