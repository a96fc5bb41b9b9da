from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./school_results.db"
    SECRET_KEY: str = "secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    TIMEZONE: str = "Africa/Lagos"
    LOG_LEVEL: str = "INFO"

    # store failures are retried this many times before surfacing as Unavailable
    STORE_RETRY_ATTEMPTS: int = 1
    TOKEN_BATCH_LIMIT: int = 500
    AUDIT_PAGE_SIZE_MAX: int = 200
    CREATE_TABLES_ON_STARTUP: bool = True

    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

settings = Settings()
