"""Global configuration for phpintel.

This module provides centralized configuration management with support for
environment variables and sensible defaults.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class ConfigurationError(ValueError):
    """Raised when a configuration value is rejected."""


class MatchType(str, Enum):
    """Policy used to filter candidate names against a typed pattern."""

    HEAD = "match_head"
    SUBSEQUENCE = "match_subsequence"


class StartMethod(str, Enum):
    """multiprocessing start method used for indexing workers."""

    FORK = "fork"
    SPAWN = "spawn"
    FORKSERVER = "forkserver"


class PhpIntelConfig(BaseSettings):
    """phpintel configuration settings.

    Values can be overridden via environment variables with PHPINTEL_ prefix.
    Example: PHPINTEL_MATCH_TYPE=match_subsequence enables fuzzy matching.
    """

    # Completion
    match_type: MatchType = Field(
        default=MatchType.HEAD,
        description="Name filtering policy (match_head or match_subsequence)",
    )

    # Hierarchy index
    index_dir_name: str = Field(
        default=".phpcd",
        min_length=1,
        description="Index directory, relative to the project root",
    )
    worker_start_method: StartMethod = Field(
        default=StartMethod.FORK,
        description="How indexing worker processes are started",
    )

    # External tools
    composer_command: str = Field(
        default="composer",
        description="Composer executable used to regenerate the class map",
    )
    composer_timeout: int = Field(
        default=300,
        ge=1,
        le=3600,
        description="Timeout in seconds for composer dump-autoload",
    )
    php_binary: str = Field(
        default="php",
        description="PHP executable used to list builtin functions and constants",
    )
    load_builtins: bool = Field(
        default=True,
        description="Query the PHP binary for builtin functions and constants",
    )

    root: str = Field(
        default=".",
        description="Project root served by the HTTP API",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI and server",
    )

    model_config = {
        "env_prefix": "PHPINTEL_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_config() -> PhpIntelConfig:
    """Get cached configuration instance.

    Returns:
        PhpIntelConfig singleton instance.
    """
    return PhpIntelConfig()


def reload_config() -> PhpIntelConfig:
    """Reload configuration (clears cache).

    Returns:
        Fresh PhpIntelConfig instance.
    """
    get_config.cache_clear()
    return get_config()
