"""Application configuration management."""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from project-level .env if available
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = os.getenv("APP_NAME", "Subway Admin")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False") == "True"

    # Server
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))
    reload: bool = os.getenv("RELOAD", "True") == "True"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./subway.db")

    # CORS
    cors_origins: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ALLOW_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000",
        ).split(",")
        if origin.strip()
    ]
    cors_allow_credentials: bool = True

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")
    centralized_logging_enabled: bool = os.getenv("CENTRALIZED_LOGGING_ENABLED", "False") == "True"
    centralized_log_level: str = os.getenv("CENTRALIZED_LOG_LEVEL", "WARNING")
    centralized_log_queue_size: int = int(os.getenv("CENTRALIZED_LOG_QUEUE_SIZE", "1000"))


# Global settings instance
settings = Settings()
