"""Application settings and configuration management."""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""
    
    # Application
    app_name: str = Field(default="Catalog Search")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    
    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    workers: int = Field(default=1)
    
    # Search pipeline
    page_size: int = Field(default=24, ge=1)  # 4x6 product grid
    candidate_limit: int = Field(default=1000, ge=1)
    max_query_length: int = Field(default=100)
    fuzzy_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    fuzzy_distance: int = Field(default=100, ge=0)
    fuzzy_min_query_length: int = Field(default=2, ge=0)
    fuzzy_max_results: int = Field(default=50, ge=1)
    fuzzy_fallback_min_results: int = Field(default=3, ge=0)
    max_suggestions: int = Field(default=3, ge=0)
    strict_pagination: bool = Field(default=False)
    
    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    
    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173", "http://localhost:8000"]
    )
    
    # Catalog backend: "memory" (JSON file) or "postgres"
    catalog_backend: str = Field(default="memory")
    catalog_file: Optional[str] = Field(default=None)
    
    # Database Configuration
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432)
    db_name: str = Field(default="catalog")
    db_user: str = Field(default="catalog")
    db_password: str = Field(default="")
    db_use_unaccent: bool = Field(default=True)
    
    # Fetch retries
    fetch_max_retries: int = Field(default=3, ge=1)
    fetch_retry_backoff: float = Field(default=1.0, ge=0.0)
    
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    @property
    def db_config(self) -> dict:
        """Connection keyword arguments for psycopg2."""
        return {
            "host": self.db_host,
            "port": self.db_port,
            "dbname": self.db_name,
            "user": self.db_user,
            "password": self.db_password,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
