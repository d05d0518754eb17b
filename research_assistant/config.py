"""Configuration management for the research assistant."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv


# Load environment variables from .env file
def _find_env_file() -> Path | None:
    """Find the .env file, searching up the directory tree."""
    current = Path(__file__).parent
    for _ in range(5):  # Search up to 5 levels
        env_path = current / ".env"
        if env_path.exists():
            return env_path
        current = current.parent
    return None


_env_file = _find_env_file()
if _env_file:
    load_dotenv(_env_file)


SECURE_STORAGE_MODES = ("auto", "off")


class Config:
    """Application configuration from environment variables."""

    # Settings document location
    SETTINGS_PATH: str = os.getenv("SETTINGS_PATH", "settings.json")

    # Secure storage for the API key: "auto" encrypts when possible, "off" stores plaintext
    SECURE_STORAGE: str = os.getenv("SECURE_STORAGE", "auto").lower()
    SECURE_STORAGE_SECRET: str = os.getenv("SECURE_STORAGE_SECRET", "")

    # Logging / debug
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration, return list of issues."""
        issues = []

        if cls.SECURE_STORAGE not in SECURE_STORAGE_MODES:
            issues.append(
                f"Unknown SECURE_STORAGE mode '{cls.SECURE_STORAGE}'. "
                f"Use one of: {', '.join(SECURE_STORAGE_MODES)}"
            )

        if not isinstance(logging.getLevelName(cls.LOG_LEVEL.upper()), int):
            issues.append(f"Unknown LOG_LEVEL '{cls.LOG_LEVEL}'")

        return issues

    @classmethod
    def get_settings_path(cls) -> Path:
        """Get the settings document path."""
        return Path(cls.SETTINGS_PATH)

    @classmethod
    def secure_storage_enabled(cls) -> bool:
        """Check whether API key encryption should be attempted."""
        return cls.SECURE_STORAGE != "off"

    @classmethod
    def is_debug(cls) -> bool:
        """Check if debug mode is enabled."""
        return cls.DEBUG


# Singleton config instance
config = Config()
