"""
Configuration settings for the FastAPI application
"""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Joyex Studio API"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./joyex.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    # FAL (Seedream edit)
    fal_key: Optional[str] = None
    fal_endpoint: str = "https://fal.run/fal-ai/bytedance/seedream/v4/edit"
    fal_timeout: float = 300.0
    # Simulated generation is only allowed when this is switched on explicitly
    fal_demo_mode: bool = False
    fal_mock_delay_min: float = 2.0
    fal_mock_delay_max: float = 5.0

    # Accuracy presets
    accuracy_preset: str = "standard"
    enforce_accuracy_policy: bool = False

    # Job history
    history_limit: int = 50

    # File upload
    upload_path: str = "./data/uploads"
    upload_url_prefix: str = "/uploads"
    max_file_size: int = 8 * 1024 * 1024  # 8MB
    allowed_image_types: List[str] = ["image/jpeg", "image/png", "image/webp", "image/gif"]

    # Quality metrics
    quality_max_metrics: int = 1000

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env


# Global settings instance
settings = Settings()
