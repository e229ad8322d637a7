# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Literal, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./database_inventory.db"
    # "sql" keeps rows in DATABASE_URL, "memory" keeps them in the process
    STORAGE_BACKEND: Literal["sql", "memory"] = "sql"

    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # Reject inbound/move destinations that are not part of the warehouse layout
    STRICT_LOCATIONS: bool = False
    SEED_DEFAULT_LAYOUT: bool = True

    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin"
    DEFAULT_VIEWER_USERNAME: str = "viewer"
    DEFAULT_VIEWER_PASSWORD: str = "viewer"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
