"""
PySH Configuration Loader

Configuration management for the shell:
- JSON configuration file loading
- Default value handling
- Runtime configuration updates
- Dot-notation access to configuration values

Author: YSNRFD
Version: 1.0.0
"""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, List


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or a key is invalid."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


@dataclass
class SessionConfig:
    """Session identity and initial environment."""
    user: str = "guest"
    group: str = "guest"
    home: str = "/home/guest"
    shell: str = "/bin/pysh"
    path: str = "/bin:/usr/bin"
    hostname: str = "pysh"


@dataclass
class FilesystemConfig:
    """Virtual filesystem settings."""
    default_file_mode: str = "rw-r--r--"
    default_dir_mode: str = "rwxr-xr-x"
    null_device: str = "/dev/null"
    proc_root: str = "/proc"


@dataclass
class ShellConfig:
    """Shell configuration settings."""
    prompt: str = "{user}@{hostname}:{cwd}$ "
    history_size: int = 1000
    substitution_dir: str = "/tmp"
    max_follow_polls: int = 600
    bin_dirs: List[str] = field(default_factory=lambda: ["/bin", "/usr/bin"])


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    log_file: Optional[str] = None
    console_output: bool = False


@dataclass
class Config:
    """
    Main configuration container.

    Holds all configuration settings for a shell session.
    """
    session: SessionConfig = field(default_factory=SessionConfig)
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader:
    """
    Configuration loader and manager.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load('config.json')
        >>> print(config.session.user)
        guest
    """

    _instance: Optional['ConfigLoader'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ConfigLoader':
        """Singleton pattern for configuration access."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._config = Config()
                cls._instance._loaded = False
            return cls._instance

    def load(self, config_path: str) -> Config:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            ConfigError: If the file cannot be loaded or parsed
        """
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}", config_path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file: {e}", config_path)
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file: {e}", config_path)

        self._config = self._parse_config(data)
        self._loaded = True
        return self._config

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration data into Config object."""
        config = Config()

        if 'session' in data:
            session_data = data['session']
            config.session = SessionConfig(
                user=session_data.get('user', config.session.user),
                group=session_data.get('group', config.session.group),
                home=session_data.get('home', config.session.home),
                shell=session_data.get('shell', config.session.shell),
                path=session_data.get('path', config.session.path),
                hostname=session_data.get('hostname', config.session.hostname),
            )

        if 'filesystem' in data:
            fs_data = data['filesystem']
            config.filesystem = FilesystemConfig(
                default_file_mode=fs_data.get('default_file_mode', config.filesystem.default_file_mode),
                default_dir_mode=fs_data.get('default_dir_mode', config.filesystem.default_dir_mode),
                null_device=fs_data.get('null_device', config.filesystem.null_device),
                proc_root=fs_data.get('proc_root', config.filesystem.proc_root),
            )

        if 'shell' in data:
            shell_data = data['shell']
            config.shell = ShellConfig(
                prompt=shell_data.get('prompt', config.shell.prompt),
                history_size=shell_data.get('history_size', config.shell.history_size),
                substitution_dir=shell_data.get('substitution_dir', config.shell.substitution_dir),
                max_follow_polls=shell_data.get('max_follow_polls', config.shell.max_follow_polls),
                bin_dirs=shell_data.get('bin_dirs', config.shell.bin_dirs),
            )

        if 'logging' in data:
            log_data = data['logging']
            config.logging = LoggingConfig(
                level=log_data.get('level', config.logging.level),
                log_file=log_data.get('log_file', config.logging.log_file),
                console_output=log_data.get('console_output', config.logging.console_output),
            )

        return config

    @property
    def config(self) -> Config:
        """Get the current configuration."""
        if not self._loaded:
            return Config()
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., 'shell.history_size')
            default: Default value if key not found
        """
        obj: Any = self.config

        for part in key.split('.'):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Changes are not persisted to disk.
        """
        if not self._loaded:
            self._config = Config()
            self._loaded = True

        parts = key.split('.')
        obj: Any = self._config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise ConfigError(f"Invalid configuration key: {key}")

        final_key = parts[-1]
        if hasattr(obj, final_key):
            setattr(obj, final_key, value)
        else:
            raise ConfigError(f"Invalid configuration key: {key}")

    def reset(self) -> None:
        """Drop any loaded configuration and go back to defaults."""
        self._config = Config()
        self._loaded = False

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        def dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, '__dataclass_fields__'):
                return {
                    k: dataclass_to_dict(v)
                    for k, v in obj.__dict__.items()
                }
            elif isinstance(obj, list):
                return [dataclass_to_dict(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: dataclass_to_dict(v) for k, v in obj.items()}
            else:
                return obj

        return dataclass_to_dict(self.config)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object with current settings
    """
    loader = ConfigLoader()
    return loader.config
