from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "http://localhost:5000/api"
DEFAULT_SOCKET_URL = "http://localhost:5000"

HISTORY_MODE_MERGE = "merge"
HISTORY_MODE_REPLACE = "replace"

# Project root (parent of agriassist/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "agriassist-realtime"
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        validation_alias=AliasChoices("AGRIASSIST_API_URL", "API_BASE_URL"),
    )
    socket_url: str = Field(
        default=DEFAULT_SOCKET_URL,
        validation_alias=AliasChoices("AGRIASSIST_SOCKET_URL", "SOCKET_URL"),
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, json_schema_extra={"env": "REQUEST_TIMEOUT_SECONDS"}
    )

    # Push channel
    push_queue_size: int = Field(
        default=1000, ge=1, json_schema_extra={"env": "PUSH_QUEUE_SIZE"}
    )
    resync_on_reconnect: bool = Field(
        default=True, json_schema_extra={"env": "RESYNC_ON_RECONNECT"}
    )
    socket_reconnection_attempts: int = Field(
        default=0, ge=0, json_schema_extra={"env": "SOCKET_RECONNECTION_ATTEMPTS"}
    )  # 0 = retry forever
    socket_reconnection_delay: float = Field(
        default=1.0, gt=0, json_schema_extra={"env": "SOCKET_RECONNECTION_DELAY"}
    )
    socket_reconnection_delay_max: float = Field(
        default=5.0, gt=0, json_schema_extra={"env": "SOCKET_RECONNECTION_DELAY_MAX"}
    )
    socket_wait_timeout: float = Field(
        default=5.0, gt=0, json_schema_extra={"env": "SOCKET_WAIT_TIMEOUT"}
    )  # seconds to wait for the Socket.IO handshake per attempt

    # Notifications
    notification_history_mode: str = Field(
        default=HISTORY_MODE_MERGE,
        json_schema_extra={"env": "NOTIFICATION_HISTORY_MODE"},
    )

    @field_validator("notification_history_mode")
    @classmethod
    def check_history_mode(cls, value: str) -> str:
        """Only merge-by-id and full replace are supported."""
        mode = value.lower()
        if mode not in (HISTORY_MODE_MERGE, HISTORY_MODE_REPLACE):
            raise ValueError(
                f"notification_history_mode must be '{HISTORY_MODE_MERGE}' "
                f"or '{HISTORY_MODE_REPLACE}', got {value!r}"
            )
        return mode

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production."""
        return self.environment.lower() == "production"

    @property
    def is_test(self) -> bool:
        """Check if the current environment is test."""
        return self.environment.lower() == "test"

    @property
    def merges_notification_history(self) -> bool:
        return self.notification_history_mode == HISTORY_MODE_MERGE

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="allow",  # Allow extra environment variables
        populate_by_name=True,
    )


def get_settings() -> Settings:
    """Get client settings from the environment."""
    return Settings()
