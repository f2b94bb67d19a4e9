from pydantic_settings import BaseSettings
from typing import Optional
import os


class Settings(BaseSettings):
    # App Configuration
    APP_NAME: str = "Tutor Match API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Tutor directory service
    TUTOR_API_BASE_URL: str = os.getenv("TUTOR_API_BASE_URL", "http://localhost:8080")
    TUTOR_API_TOKEN: Optional[str] = None
    REQUEST_TIMEOUT_SECONDS: float = 12.0

    # Listing
    TUTOR_PAGE_SIZE: int = 20
    SCHEDULE_FETCH_CONCURRENCY: int = 8

    # Week boundaries are computed in this zone
    LOCAL_TIMEZONE: str = "Asia/Ho_Chi_Minh"

    # Unconstrained price bounds (VND per lesson)
    PRICE_FLOOR: float = 0
    PRICE_CEILING: float = 1_000_000

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create settings instance
settings = Settings()
