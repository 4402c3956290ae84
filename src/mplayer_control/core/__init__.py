"""Core infrastructure layer - no playback logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging setup (Loguru)
- Exception hierarchy
"""

# Configuration
from .config import (
    Config,
    LoggingConfig,
    PlayerConfig,
    create_default_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
    write_default_config,
)

# Exceptions
from .exceptions import (
    BusyError,
    InvalidStateError,
    OperationTimeoutError,
    PlaybackError,
    PlayerError,
    PrematureEndError,
    ProcessFaultError,
)

__all__ = [
    # Config
    "Config",
    "LoggingConfig",
    "PlayerConfig",
    "create_default_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    "write_default_config",
    # Exceptions
    "BusyError",
    "InvalidStateError",
    "OperationTimeoutError",
    "PlaybackError",
    "PlayerError",
    "PrematureEndError",
    "ProcessFaultError",
]
