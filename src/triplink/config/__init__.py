"""Application configuration helpers."""

from __future__ import annotations

from .env import positive_int_env
from .errors import ConfigurationError
from .linking import (
    DEFAULT_ORPHAN_DELETE_BATCH_SIZE,
    DEFAULT_SUMMARY_SAFETY_LIMIT,
    LinkGraphConfig,
    get_link_graph_config,
)
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_ORPHAN_DELETE_BATCH_SIZE",
    "DEFAULT_SUMMARY_SAFETY_LIMIT",
    "ConfigurationError",
    "DatabaseConfig",
    "LinkGraphConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_link_graph_config",
    "get_storage_config",
    "positive_int_env",
]
