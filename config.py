"""
Application settings.

Values are read from environment variables once, when this module is
imported. The database connection string is either taken whole from
``DATABASE_URL`` or assembled from the individual ``DB_*`` fields
(prefix, user, password, host, query parameters).
"""

import os
from dataclasses import dataclass
from typing import List
from urllib.parse import quote_plus


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Lesson Booking API")
    port: int = int(os.getenv("PORT", "3000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Either a full connection string, or the pieces to build one.
    database_url: str = os.getenv("DATABASE_URL", "")
    database_name: str = os.getenv("DATABASE_NAME", "Webstore")
    db_prefix: str = os.getenv("DB_PREFIX", "mongodb://")
    db_user: str = os.getenv("DB_USER", "")
    db_password: str = os.getenv("DB_PASSWORD", "")
    db_host: str = os.getenv("DB_HOST", "localhost:27017/")
    db_params: str = os.getenv("DB_PARAMS", "")
    db_timeout_ms: int = int(os.getenv("DB_TIMEOUT_MS", "5000"))

    cors_origins: str = os.getenv("CORS_ORIGINS", "https://errolee.github.io")
    images_dir: str = os.getenv("IMAGES_DIR", "images")

    @property
    def database_uri(self) -> str:
        if self.database_url:
            return self.database_url
        if not self.db_user:
            return f"{self.db_prefix}{self.db_host}{self.db_params}"
        # db_host carries the leading "@" when credentials are used
        host = self.db_host if self.db_host.startswith("@") else f"@{self.db_host}"
        return f"{self.db_prefix}{quote_plus(self.db_user)}:{quote_plus(self.db_password)}{host}{self.db_params}"

    @property
    def allowed_origins(self) -> List[str]:
        return _split_csv(self.cors_origins)


settings = Settings()
