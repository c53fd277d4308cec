"""Application configuration via pydantic-settings."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root: the directory holding cloud/ and _site/ (backend/bujo/config.py -> ../../)
_PROJECT_DIR = Path(__file__).resolve().parent.parent.parent

# Local SQLite database named after the original "dev" database
_DEFAULT_DB = f"sqlite+aiosqlite:///{_PROJECT_DIR / 'dev.db'}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Document store
    DATABASE_URI: str = _DEFAULT_DB
    CLOUD: str = "./cloud/main.py"
    APP_ID: str = "bujo"
    MASTER_KEY: str = "bujo"
    SERVER_URL: str = "http://localhost:1337/parse"
    API_PREFIX: str = "/parse"

    # HTTP listener
    HOST: str = "0.0.0.0"
    PORT: int = 1337
    LOG_LEVEL: str = "info"

    # Static site
    SITE_DIR: str = "./_site"
    FONTS_SUBDIR: str = "fonts/roboto"
    INDEX_DOCUMENT: str = "index.html"

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.DATABASE_URI


def _absolute(path: str) -> str:
    if os.path.isabs(path):
        return path
    return str((_PROJECT_DIR / path).resolve())


def _build_settings() -> Settings:
    """Build settings, fixing relative paths to be absolute from the project root."""
    s = Settings(
        _env_file=str(_PROJECT_DIR / ".env"),
        _env_file_encoding="utf-8",
    )
    if s.is_sqlite and ":///" in s.DATABASE_URI:
        prefix, db_path = s.DATABASE_URI.split(":///", 1)
        if db_path and db_path != ":memory:" and not os.path.isabs(db_path):
            s.DATABASE_URI = f"{prefix}:///{_absolute(db_path)}"
    s.CLOUD = _absolute(s.CLOUD)
    s.SITE_DIR = _absolute(s.SITE_DIR)
    return s


settings = _build_settings()
