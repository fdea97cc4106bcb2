"""Application configuration."""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 4000
    client_origin: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Message log
    data_file: str = "./data/messages.json"
    max_messages: int = Field(200, ge=1)
    max_text_length: int = Field(2000, ge=1)

    # Fanout
    subscriber_queue_size: int = Field(256, ge=1)

    # Login allow-list
    allowed_usernames: str = "lexsa,naqieya,novita,salsabila"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins as list."""
        return [origin.strip() for origin in self.client_origin.split(",") if origin.strip()]

    @property
    def allowed_usernames_list(self) -> List[str]:
        """Parse the login allow-list, normalized to lower case."""
        return [name.strip().lower() for name in self.allowed_usernames.split(",") if name.strip()]


# Global settings instance
settings = Settings()
