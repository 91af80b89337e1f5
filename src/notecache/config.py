"""Configuration module for notecache."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from notecache.exceptions import ConfigurationError, ErrorCode

# User-level config lives next to the default cache in the home directory.
# expanduser never raises, it leaves "~" in place when there is no home.
_USER_ENV = Path(os.path.expanduser("~")) / ".notes" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)

DEFAULT_CACHE_NAME = ".notes-cache"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class NotesConfig(BaseModel):
    """Configuration for the notes CLI."""

    # Values coming from the environment go through the validators too
    model_config = {"validate_default": True}

    # Cache location; None means ~/.notes-cache, resolved on demand
    cache_path: Optional[Path] = Field(
        default_factory=lambda: (
            Path(os.getenv("NOTES_CACHE_PATH"))
            if os.getenv("NOTES_CACHE_PATH")
            else None
        )
    )
    # Logging configuration
    log_level: str = Field(
        default_factory=lambda: os.getenv("NOTES_LOG_LEVEL", "WARNING").upper()
    )
    # When set, logs are also written to a rotating file in this directory
    log_dir: Optional[Path] = Field(
        default_factory=lambda: (
            Path(os.getenv("NOTES_LOG_DIR"))
            if os.getenv("NOTES_LOG_DIR")
            else None
        )
    )
    # Number of notes shown by list/open when --lines is not given
    default_lines: int = Field(
        default_factory=lambda: int(os.getenv("NOTES_DEFAULT_LINES", "10"))
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is one logging understands."""
        if v not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return v

    @field_validator("default_lines")
    @classmethod
    def validate_default_lines(cls, v: int) -> int:
        if v < 0:
            raise ValueError("default_lines must be >= 0")
        return v

    def get_cache_path(self) -> Path:
        """Get the absolute path of the notes cache.

        Raises:
            ConfigurationError: If no cache path is configured and the home
                directory cannot be determined.
        """
        if self.cache_path is not None:
            return Path(os.path.expanduser(self.cache_path)).absolute()
        try:
            home = Path.home()
        except (RuntimeError, KeyError) as e:
            logger.debug(f"Home directory lookup failed: {e}")
            raise ConfigurationError(
                "failed to find your home directory",
                config_key="cache_path",
                code=ErrorCode.HOME_DIR_NOT_FOUND,
            ) from e
        return home / DEFAULT_CACHE_NAME


# Create a global config instance
config = NotesConfig()
