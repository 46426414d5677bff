import os
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # REQUIRED
    DATABASE_URL: str
    SECRET_KEY: str
    ADMIN_PASSWORD: str

    # App
    APP_NAME: str = "boetepot"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    MIGRATE_ON_START: bool = False

    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Auth
    ADMIN_PASSWORD_HASH: Optional[str] = None  # argon2 hash, takes precedence over ADMIN_PASSWORD
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ALGORITHM: str = "HS256"
    AUTH_COOKIE_NAME: str = "boetepot_admin"

    # Public pages
    RECENT_FINES_LIMIT: int = 5

    class Config:
        case_sensitive = True
        # Load .env ONLY when not production
        env_file = ".env" if os.getenv("ENVIRONMENT") != "production" else None


settings = Settings()
