"""Configuration utilities for loading environment variables."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv


DEFAULT_PIPELINES_DB = "toolflow_pipelines.db"
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_HTTP_TIMEOUT = 30.0


def load_env(env_file: Optional[str] = None) -> None:
    """Load environment variables from .env file.

    Args:
        env_file: Optional path to .env file. If not specified, searches
                 for .env in current and parent directories.

    Example:
        >>> from toolflow.utils.config import load_env
        >>> load_env()
        >>> get_pipelines_db()
        'toolflow_pipelines.db'
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()


def get_config(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get configuration value from environment.

    Args:
        key: Configuration key
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    return os.getenv(key, default)


def get_pipelines_db() -> str:
    """Path of the SQLite database used by the saved-pipeline store."""
    return get_config("TOOLFLOW_PIPELINES_DB", DEFAULT_PIPELINES_DB)


def get_output_dir() -> str:
    """Base directory for files written by the save-file tool."""
    return get_config("TOOLFLOW_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a basic stderr handler for applications embedding Toolflow.

    The library itself never configures handlers.

    Args:
        level: Log level name; defaults to TOOLFLOW_LOG_LEVEL or INFO
    """
    level = level or get_config("TOOLFLOW_LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
