# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # Token decoding (sessions are issued by the login front-end)
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ACCESS_TOKEN_COOKIE: str = "access_token"

    # Used when a stock item has no minimum threshold of its own
    LOW_STOCK_FALLBACK_THRESHOLD: int = 5

    # Seconds a SQLite writer waits for the write lock
    SQLITE_BUSY_TIMEOUT: int = 30

    LOG_LEVEL: str = "INFO"
    # Extra CORS origin (deployed front-end)
    FRONTEND_URL: Optional[str] = None
    REPORT_TITLE_PREFIX: str = "Inventario TI"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
