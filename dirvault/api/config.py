"""Configuration for FastAPI application."""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List, Optional, Union
import json


class Settings(BaseSettings):
    # API Configuration
    api_prefix: str = "/api/v1"
    api_title: str = "dirvault API"
    api_version: str = "1.0.0"
    allowed_origins: Union[str, List[str]] = ["*"]

    @field_validator('allowed_origins', mode='before')
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse allowed_origins from string or list."""
        if isinstance(v, str):
            if v.startswith('['):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v]
            return [v]
        return v

    # Storage layout overrides; unset values fall back to DIRVAULT_* variables
    working_dir: Optional[str] = None
    data_dir_name: Optional[str] = None
    backup_folder_name: Optional[str] = None

    # Seconds to wait for a running scheduled backup on shutdown
    shutdown_timeout: float = 30.0

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
