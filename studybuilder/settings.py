"""Application configuration management."""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


LOG_FORMATS = ("text", "json")


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "Study Builder"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    # Catalog
    catalog_dir: str = "seed/catalog"
    templates_dir: str = "seed/templates"

    # Validation
    duration_warning_minutes: int = 60

    # Drafts
    autosave_delay_seconds: float = 1.5
    draft_state_dir: str = ".drafts"
    use_memory_persistence: bool = False

    # Study creation service
    study_api_url: Optional[str] = None
    study_api_timeout_seconds: float = 10.0

    # CORS
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.duration_warning_minutes <= 0:
            raise ValueError("DURATION_WARNING_MINUTES must be positive")
        if self.autosave_delay_seconds <= 0:
            raise ValueError("AUTOSAVE_DELAY_SECONDS must be positive")
        if self.study_api_timeout_seconds <= 0:
            raise ValueError("STUDY_API_TIMEOUT_SECONDS must be positive")
        if self.log_format.lower() not in LOG_FORMATS:
            raise ValueError(f"LOG_FORMAT must be one of: {', '.join(LOG_FORMATS)}")

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"


def load_settings_from_env() -> Settings:
    """Load settings from environment variables (and a .env file, if present)."""
    load_dotenv()

    def get_bool(key: str, default: bool = False) -> bool:
        value = os.getenv(key, str(default)).lower()
        return value in ("true", "1", "yes")

    def get_int(key: str, default: int) -> int:
        return int(os.getenv(key, str(default)))

    def get_float(key: str, default: float) -> float:
        return float(os.getenv(key, str(default)))

    def get_list(key: str, default: List[str]) -> List[str]:
        value = os.getenv(key)
        if value:
            return [item.strip() for item in value.split(",")]
        return default

    return Settings(
        # App
        app_name=os.getenv("APP_NAME", "Study Builder"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        debug=get_bool("DEBUG", False),
        environment=os.getenv("ENVIRONMENT", "development"),

        # Logging
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "text"),

        # Catalog
        catalog_dir=os.getenv("CATALOG_DIR", "seed/catalog"),
        templates_dir=os.getenv("TEMPLATES_DIR", "seed/templates"),

        # Validation
        duration_warning_minutes=get_int("DURATION_WARNING_MINUTES", 60),

        # Drafts
        autosave_delay_seconds=get_float("AUTOSAVE_DELAY_SECONDS", 1.5),
        draft_state_dir=os.getenv("DRAFT_STATE_DIR", ".drafts"),
        use_memory_persistence=get_bool("USE_MEMORY_PERSISTENCE", False),

        # Study creation service
        study_api_url=os.getenv("STUDY_API_URL"),
        study_api_timeout_seconds=get_float("STUDY_API_TIMEOUT_SECONDS", 10.0),

        # CORS
        allowed_origins=get_list("ALLOWED_ORIGINS", ["http://localhost:3000"]),
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings_from_env()


def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    get_settings.cache_clear()
