"""
Configuration management for mplayer-control
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class PlayerConfig:
    """Configuration for the mplayer process and operation timeouts."""

    binary: str = "mplayer"
    extra_args: List[str] = field(default_factory=list)
    startup_timeout: float = 10.0  # Seconds to wait for the startup banner
    open_timeout: float = 10.0  # loadfile may need to buffer network streams
    command_timeout: float = 2.0
    shutdown_timeout: float = 3.0  # Grace period before SIGKILL
    volume: Optional[int] = None  # Applied by the CLI after opening a file

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not self.binary:
            raise ValueError("player.binary must not be empty")

        for name in (
            "startup_timeout",
            "open_timeout",
            "command_timeout",
            "shutdown_timeout",
        ):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"player.{name} must not be negative (got {value})")

        if self.volume is not None and not 0 <= self.volume <= 100:
            raise ValueError(f"player.volume must be within 0-100 (got {self.volume})")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/mplayer-control/mplayer-control.log)
    )
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "mplayer-control"
    return Path.home() / ".config" / "mplayer-control"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "mplayer-control"
    return Path.home() / ".local" / "share" / "mplayer-control"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Current working directory
    2. XDG_CONFIG_HOME/mplayer-control (or ~/.config/mplayer-control)
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# mplayer-control configuration

[player]
# mplayer executable (name on PATH or absolute path)
binary = "mplayer"

# Extra arguments appended after the slave-mode flags
extra_args = []

# Seconds to wait for mplayer to print its startup banner
startup_timeout = 10.0

# Seconds to wait for "Starting playback" after loadfile
open_timeout = 10.0

# Seconds to wait for the reply to any other command
command_timeout = 2.0

# Seconds to wait after SIGTERM before killing mplayer
shutdown_timeout = 3.0

# Initial volume (0-100) applied by the CLI
# volume = 50

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/mplayer-control/mplayer-control.log)
# log_file = "/path/to/mplayer-control.log"

# Also output logs to stderr
console_output = false
""".strip()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, falling back to defaults.

    Environment variables override TOML values:
    - MPLAYER_BINARY

    Raises:
        ValueError: If the file contains invalid player settings
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = get_config_path()

    config = Config()

    if config_path.exists():
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        if "player" in toml_data:
            player_data = toml_data["player"]
            config.player = PlayerConfig(
                binary=player_data.get("binary", config.player.binary),
                extra_args=list(
                    player_data.get("extra_args", config.player.extra_args)
                ),
                startup_timeout=player_data.get(
                    "startup_timeout", config.player.startup_timeout
                ),
                open_timeout=player_data.get(
                    "open_timeout", config.player.open_timeout
                ),
                command_timeout=player_data.get(
                    "command_timeout", config.player.command_timeout
                ),
                shutdown_timeout=player_data.get(
                    "shutdown_timeout", config.player.shutdown_timeout
                ),
                volume=player_data.get("volume", config.player.volume),
            )

        if "logging" in toml_data:
            logging_data = toml_data["logging"]
            log_file = logging_data.get("log_file")
            if log_file:
                log_file = str(Path(log_file).expanduser())
            config.logging = LoggingConfig(
                level=logging_data.get("level", config.logging.level).upper(),
                log_file=log_file,
                console_output=logging_data.get(
                    "console_output", config.logging.console_output
                ),
            )

    binary_override = os.environ.get("MPLAYER_BINARY")
    if binary_override:
        config.player.binary = binary_override

    config.player.validate()
    return config


def write_default_config(config_path: Optional[Path] = None) -> Path:
    """Write the default configuration template if no config file exists yet.

    Returns:
        Path of the configuration file
    """
    if config_path is None:
        config_path = get_config_dir() / "config.toml"

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())

    return config_path
