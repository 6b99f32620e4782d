"""Session layer configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class SessionSettings(BaseSettings):
    model_config = {"env_prefix": "SESSION_"}

    # Seconds without a state-advancing event before an active session is abandoned.
    idle_timeout_seconds: float = Field(default=60, gt=0)
    log_dir: str = Field(default="backend/logs/session", min_length=1)

    # Seconds a RESOLVED/ABANDONED session stays inspectable before the reaper releases it.
    retention_seconds: float = Field(default=300, gt=0)
    reap_interval_seconds: float = Field(default=30, gt=0)
