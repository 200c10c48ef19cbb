"""Application configuration management."""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


IDENTIFIER_SOURCES = ("clock", "counter")


@dataclass
class Settings:
    """Settings loaded from environment."""
    
    # App
    app_name: str = "Nested Fields"
    environment: str = "development"  # development, staging, production
    debug: bool = False
    
    # Controller contract
    controller_identifier: str = "nested-rondo"
    destroy_field: str = "_destroy"
    destroy_value: str = "1"
    identifier_source: str = "clock"  # clock or counter
    strict: Optional[bool] = None  # None -> strict unless production
    
    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    
    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.controller_identifier:
            raise ValueError("controller_identifier must not be empty")
        if not self.destroy_field:
            raise ValueError("destroy_field must not be empty")
        if self.identifier_source not in IDENTIFIER_SOURCES:
            raise ValueError(
                f"identifier_source must be one of {IDENTIFIER_SOURCES}, "
                f"got '{self.identifier_source}'"
            )
        if self.strict is None:
            self.strict = not self.is_production
    
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"
    
    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"


def load_settings_from_env() -> Settings:
    """Load settings from environment variables."""
    
    def get_bool(key: str, default: bool = False) -> bool:
        value = os.getenv(key, str(default)).lower()
        return value in ("true", "1", "yes")
    
    def get_optional_bool(key: str) -> Optional[bool]:
        if os.getenv(key) is None:
            return None
        return get_bool(key)
    
    return Settings(
        # App
        app_name=os.getenv("APP_NAME", "Nested Fields"),
        environment=os.getenv("ENVIRONMENT", "development"),
        debug=get_bool("DEBUG", False),
        
        # Controller contract
        controller_identifier=os.getenv("NESTED_FIELDS_CONTROLLER", "nested-rondo"),
        destroy_field=os.getenv("NESTED_FIELDS_DESTROY_FIELD", "_destroy"),
        destroy_value=os.getenv("NESTED_FIELDS_DESTROY_VALUE", "1"),
        identifier_source=os.getenv("NESTED_FIELDS_ID_SOURCE", "clock"),
        strict=get_optional_bool("NESTED_FIELDS_STRICT"),
        
        # Logging
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "text"),
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    load_dotenv()
    return load_settings_from_env()


def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    get_settings.cache_clear()
