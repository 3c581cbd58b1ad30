from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache
from typing import List

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Learning Platform Admin Console"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Backing admin REST API - durable entity state lives there
    ADMIN_API_URL: str = "http://localhost:5000/api"
    ADMIN_API_TOKEN: str = ""
    ADMIN_API_TIMEOUT_SECONDS: float = 30.0  # transport timeout of the HTTP client

    # Undoable delete window
    UNDO_WINDOW_SECONDS: int = Field(30, ge=1)
    UNDO_TICK_SECONDS: float = Field(1.0, gt=0)

    # Bulk operations
    BULK_BATCH_SIZE: int = Field(5, ge=1)

    # Entity kinds managed from the console
    ENTITY_KINDS: List[str] = ["user", "video", "institute", "zone"]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

@lru_cache()
def get_settings() -> Settings:
    return Settings()
