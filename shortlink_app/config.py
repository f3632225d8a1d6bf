from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Application
    app_name: str = "Shortlink"
    app_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Database (connection string for SQLAlchemy)
    database_url: str = "sqlite:///./shortlink.db"

    # Public base URL used to build short URLs
    base_url: str = "http://localhost:8080"

    # Short code generation
    short_code_strategy: str = "urlsafe"  # Options: "urlsafe", "alphanumeric"
    short_code_length: int = 8

    # Click queue settings
    queue_backend: str = "memory"  # Options: "redis_streams", "memory"
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "link_clicks"
    queue_consumer_group: str = "click_workers"
    queue_batch_size: int = 100
    queue_block_ms: int = 1000  # How long a consume call waits for messages

    # Run the click worker inside the web process (needed for the memory queue)
    click_worker_in_process: bool = True

    # CORS
    cors_origins: List[str] = ["*"]

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
