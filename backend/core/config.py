from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    APP_NAME: str = "DYOR Hub Referral API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Auth
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Postgres in production; any SQLAlchemy async URL works
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300
    DB_POOL_TIMEOUT: int = 10
    DB_PRE_PING: bool = True
    DB_CONNECT_TIMEOUT: int = 10

    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "https://dyorhub.xyz",
        "https://www.dyorhub.xyz",
    ]

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TTL_DAYS: int = 7
    # Calls slower than this are logged at WARNING by utils.timing
    SLOW_CALL_MS: int = 500

    class Config:
        env_file = ".env"
        case_sensitive = True

    @field_validator("SECRET_KEY", "DATABASE_URL")
    @classmethod
    def _not_blank(cls, value: str, info):
        if not value or not value.strip():
            raise ValueError(f"{info.field_name} environment variable is required")
        return value

    @property
    def async_database_url(self) -> str:
        """DATABASE_URL rewritten to use the asyncpg driver for Postgres."""
        url = self.DATABASE_URL
        for prefix in ("postgres://", "postgresql://", "postgresql+psycopg2://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url


settings = Settings()
