"""Score ledger configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

from shared.retry import RetryPolicy


class LedgerSettings(BaseSettings):
    model_config = {"env_prefix": "LEDGER_"}

    max_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=1.0, ge=0)

    # Display name written on records the ledger creates itself.
    default_display_name: str = Field(default="Player", min_length=1)

    # SQLite database file path for the bundled document store
    database_path: str = Field(default="backend/storage.db", min_length=1)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, delay_seconds=self.retry_delay_seconds)
