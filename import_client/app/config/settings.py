"""Settings for the import client."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    api_base_url: str = Field(..., validation_alias="IMPORT_API_BASE_URL")
    upload_path: str = Field("/import", validation_alias="IMPORT_UPLOAD_PATH")
    status_path: str = Field("/import/progress", validation_alias="IMPORT_STATUS_PATH")
    pending_path: str = Field("/import/progress", validation_alias="IMPORT_PENDING_PATH")
    api_token: str = Field("", validation_alias="IMPORT_API_TOKEN")

    connect_timeout_seconds: float = Field(5.0, validation_alias="CONNECT_TIMEOUT_SECONDS")
    upload_timeout_seconds: float = Field(300.0, validation_alias="UPLOAD_TIMEOUT_SECONDS")
    status_timeout_seconds: float = Field(15.0, validation_alias="STATUS_TIMEOUT_SECONDS")

    transport_backend: str = Field("httpx", validation_alias="TRANSPORT_BACKEND")
    notifier_backend: str = Field("loguru", validation_alias="NOTIFIER_BACKEND")

    initial_backoff_seconds: float = Field(0.5, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(8.0, validation_alias="MAX_BACKOFF_SECONDS")
    max_connection_attempts: int = Field(3, validation_alias="MAX_CONNECTION_ATTEMPTS")
    backoff_multiplier: float = Field(2.0, validation_alias="BACKOFF_MULTIPLIER")
