from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "BoardPass PNR Extractor"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Reference data: optional file overriding the built-in airport codes
    AIRPORT_CODES_FILE: Optional[str] = None

    # Extraction diagnostics
    PNR_TRACE: bool = False  # Log one trace record per call at INFO

    # Batch reprocessing
    BATCH_MAX_WORKERS: int = 4

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
