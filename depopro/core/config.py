from pydantic_settings import BaseSettings
from functools import lru_cache
import os

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "DepoPro"
    APP_PORT: int = 9210
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATA_PATH: str = os.path.join(os.getcwd(), "data")
    DATABASE_URL: str = ""

    # Catalog defaults
    DEFAULT_UNIT: str = "Adet"
    DEFAULT_CATEGORY: str = "Yedek Parça"
    DEFAULT_MIN_STOCK_LEVEL: int = 10

    # Bulk import
    BULK_CREATED_BY_SUFFIX: str = " (Excel)"
    BULK_DEFAULT_DESCRIPTION: str = "Bulk spreadsheet import"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Guided picking / cycle count
    PICK_CONFIRM_DELAY_MS: int = 800
    CYCLE_COUNT_INTERVAL_DAYS: int = 30

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{os.path.join(self.DATA_PATH, 'depopro.db')}"

    class Config:
        env_file = ".env"
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
