"""Configuration module for docsync."""

from .loader import ConfigLoader, load_config
from .models import (
    DocSyncConfig,
    DocSyncSettings,
    LayoutSettings,
    RateLimitSettings,
    RepositorySettings,
    WriterSettings,
)

__all__ = [
    "ConfigLoader",
    "DocSyncConfig",
    "DocSyncSettings",
    "LayoutSettings",
    "RateLimitSettings",
    "RepositorySettings",
    "WriterSettings",
    "load_config",
]
