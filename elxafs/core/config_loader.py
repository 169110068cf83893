"""
ElxaFS Configuration Loader

Configuration management for the file system:
- JSON configuration file loading
- Default value handling
- Runtime configuration updates through dot-notation keys
- Type-safe access to configuration values

Author: Elxa Corporation
Version: 2.0.0
"""

import json
import threading
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from elxafs.exceptions import BootFailureError, ConfigValidationError


@dataclass
class SystemConfig:
    """System identification settings."""
    name: str = "ElxaOS"
    version: str = "2.0.0"
    codename: str = "Vanilla"

    def full_version(self) -> str:
        return f"{self.version} {self.codename}"


@dataclass
class FilesystemConfig:
    """Namespace layout and visibility settings."""
    root_name: str = "Root"
    system_folder: str = "System"
    users_folder: str = "Users"
    recycle_bin_folder: str = "Recycle Bin"
    default_user: str = "default"
    show_hidden: bool = False
    enforce_parent_exists: bool = True


@dataclass
class StorageConfig:
    """Record store and content tier settings."""
    backend: str = "memory"  # memory | json
    data_dir: str = "~/.elxaos"
    key_prefix: str = ""
    external_dir: Optional[str] = None
    external_threshold_bytes: int = 102400  # 100 KB
    backend_timeout: float = 5.0
    delete_external_blobs: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    log_file: Optional[str] = None
    console_output: bool = True
    use_colors: bool = True


@dataclass
class BootConfig:
    """Boot configuration settings."""
    seed_programs: bool = True
    repair_on_boot: bool = True


@dataclass
class Config:
    """
    Main configuration container.

    Holds all configuration settings for the file system.
    """
    system: SystemConfig = field(default_factory=SystemConfig)
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    boot: BootConfig = field(default_factory=BootConfig)

    @property
    def root_path(self) -> str:
        return '/' + self.filesystem.root_name

    @property
    def users_root(self) -> str:
        return f"{self.root_path}/{self.filesystem.users_folder}"

    @property
    def system_path(self) -> str:
        return f"{self.root_path}/{self.filesystem.system_folder}"

    @property
    def recycle_bin_path(self) -> str:
        return f"{self.root_path}/{self.filesystem.recycle_bin_folder}"


class ConfigLoader:
    """
    Configuration loader and manager.

    Handles loading configuration from JSON files and providing
    runtime configuration access.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load('elxafs.json')
        >>> print(config.filesystem.root_name)
        Root
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
            BootFailureError: If the file cannot be loaded or parsed
        """
        path = Path(config_path)

        if not path.exists():
            raise BootFailureError(
                f"Configuration file not found: {config_path}",
                subsystem="config"
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise BootFailureError(
                f"Invalid JSON in configuration file: {e}",
                subsystem="config"
            )
        except OSError as e:
            raise BootFailureError(
                f"Cannot read configuration file: {e}",
                subsystem="config"
            )

        if not isinstance(data, dict):
            raise BootFailureError(
                "Configuration root must be a JSON object",
                subsystem="config"
            )

        self._config = self._parse_config(data)
        self._loaded = True
        return self._config

    def load_dict(self, data: dict[str, Any]) -> Config:
        """Load configuration from an already decoded mapping."""
        self._config = self._parse_config(data)
        self._loaded = True
        return self._config

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration data into Config object."""
        config = Config()

        if 'system' in data:
            sys_data = data['system']
            config.system = SystemConfig(
                name=sys_data.get('name', config.system.name),
                version=sys_data.get('version', config.system.version),
                codename=sys_data.get('codename', config.system.codename),
            )

        if 'filesystem' in data:
            fs_data = data['filesystem']
            config.filesystem = FilesystemConfig(
                root_name=fs_data.get('root_name', config.filesystem.root_name),
                system_folder=fs_data.get('system_folder', config.filesystem.system_folder),
                users_folder=fs_data.get('users_folder', config.filesystem.users_folder),
                recycle_bin_folder=fs_data.get('recycle_bin_folder', config.filesystem.recycle_bin_folder),
                default_user=fs_data.get('default_user', config.filesystem.default_user),
                show_hidden=fs_data.get('show_hidden', config.filesystem.show_hidden),
                enforce_parent_exists=fs_data.get('enforce_parent_exists', config.filesystem.enforce_parent_exists),
            )

        if 'storage' in data:
            st_data = data['storage']
            config.storage = StorageConfig(
                backend=st_data.get('backend', config.storage.backend),
                data_dir=st_data.get('data_dir', config.storage.data_dir),
                key_prefix=st_data.get('key_prefix', config.storage.key_prefix),
                external_dir=st_data.get('external_dir', config.storage.external_dir),
                external_threshold_bytes=st_data.get('external_threshold_bytes', config.storage.external_threshold_bytes),
                backend_timeout=st_data.get('backend_timeout', config.storage.backend_timeout),
                delete_external_blobs=st_data.get('delete_external_blobs', config.storage.delete_external_blobs),
            )

        if 'logging' in data:
            log_data = data['logging']
            config.logging = LoggingConfig(
                level=log_data.get('level', config.logging.level),
                log_file=log_data.get('log_file', config.logging.log_file),
                console_output=log_data.get('console_output', config.logging.console_output),
                use_colors=log_data.get('use_colors', config.logging.use_colors),
            )

        if 'boot' in data:
            boot_data = data['boot']
            config.boot = BootConfig(
                seed_programs=boot_data.get('seed_programs', config.boot.seed_programs),
                repair_on_boot=boot_data.get('repair_on_boot', config.boot.repair_on_boot),
            )

        self._validate(config)
        return config

    @staticmethod
    def _validate(config: Config) -> None:
        if config.storage.backend not in ('memory', 'json'):
            raise ConfigValidationError(
                f"Unknown storage backend: {config.storage.backend}",
                key='storage.backend'
            )
        for key in ('root_name', 'system_folder', 'users_folder', 'recycle_bin_folder', 'default_user'):
            value = getattr(config.filesystem, key)
            if not value or '/' in value:
                raise ConfigValidationError(
                    f"Invalid folder name for filesystem.{key}: {value!r}",
                    key=f'filesystem.{key}'
                )
        if config.storage.backend_timeout <= 0:
            raise ConfigValidationError(
                "storage.backend_timeout must be positive",
                key='storage.backend_timeout'
            )

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
            key: Dot-notation key (e.g., 'filesystem.root_name')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        obj: Any = self._config

        for part in key.split('.'):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Note:
            This modifies configuration at runtime but does not
            persist changes to disk.
        """
        parts = key.split('.')
        obj: Any = self._config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise ConfigValidationError(f"Invalid configuration key: {key}", key=key)

        final_key = parts[-1]
        if final_key in {f.name for f in fields(obj)}:
            setattr(obj, final_key, value)
            self._loaded = True
        else:
            raise ConfigValidationError(f"Invalid configuration key: {key}", key=key)

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
            return obj

        return dataclass_to_dict(self._config)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object with current settings
    """
    return ConfigLoader().config
