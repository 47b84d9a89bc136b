from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV ONLY: refused at startup when ENVIRONMENT=production
DEV_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    PROJECT_NAME: str = "Virtual Classroom"
    ENVIRONMENT: str = "development"

    DATABASE_URL: str = f"sqlite:///{BASE_DIR}/classroom.db"

    JWT_SECRET_KEY: str = DEV_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Feed pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


def check_settings(cfg: Settings) -> Settings:
    if cfg.ENVIRONMENT == "production" and cfg.JWT_SECRET_KEY == DEV_SECRET_KEY:
        raise RuntimeError("JWT_SECRET_KEY must be set in production")
    return cfg


settings = check_settings(Settings())

ACCESS_TOKEN_EXPIRE = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
