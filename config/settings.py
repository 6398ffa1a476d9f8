from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Core
    ENVIRONMENT: str = Field(default="production")
    LOG_LEVEL: str = Field(default="INFO")

    # Record store
    RECORD_STORE_BACKEND: str = Field(default="firebase")  # firebase | memory
    FIREBASE_DATABASE_URL: str = Field(default="")  # https://<project>-default-rtdb.firebaseio.com
    FIREBASE_PROJECT_ID: str = Field(default="")
    FIREBASE_CREDENTIALS_FILE: str = Field(default="")  # empty -> application default credentials
    RECORD_STORE_TIMEOUT_S: float = Field(default=10.0)

    # Bootstrap
    BOOTSTRAP_ON_STARTUP: bool = Field(default=True)
    SPECIALTY_BATCH_SIZE: int = Field(default=5)
    ALLOW_SAMPLE_DATA: bool = Field(default=False)

    # Operator/admin auth (Google OIDC ID token)
    OPERATOR_AUTH_AUDIENCE: str = Field(default="")
    OPERATOR_INVOKER_SUBS: str = Field(default="")  # comma-separated
    OPERATOR_INVOKER_EMAILS: str = Field(default="")  # comma-separated


settings = Settings()
