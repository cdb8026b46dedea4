"""
Application Configuration
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database (customer registry)
    database_url: Optional[str] = None

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # Duplicate Detection
    duplicate_default_threshold: int = 65  # Minimum combined score returned
    duplicate_min_name_length: int = 3  # Shorter names are not queried
    duplicate_min_phone_digits: int = 5  # Shorter phones are not queried
    duplicate_tax_id_length: int = 8  # Only complete AFM values are queried

    # Retrieval
    duplicate_query_workers: int = 3  # 1 = run branches sequentially
    duplicate_query_timeout_seconds: float = 10.0  # Branch is skipped after this
    duplicate_restrict_to_tax_id: bool = False  # Drop candidates with a different complete AFM

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
