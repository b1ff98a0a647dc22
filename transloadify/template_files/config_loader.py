"""YAML configuration loading and validation.

This module handles loading and saving sync options from the optional
``.transloadify.yaml`` file. A missing file means defaults.
"""

import os
from typing import Any, Dict

import yaml

from .errors import ConfigError, FilesystemError
from .models import SyncConfig

DEFAULT_CONFIG_PATH = ".transloadify.yaml"


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        reserved_key: transloadit_template_id
        file_extension: .json
        max_workers: 10
        page_size: 50
    """

    KNOWN_FIELDS = {'reserved_key', 'file_extension', 'max_workers', 'page_size'}

    DEFAULTS: Dict[str, Any] = {
        'reserved_key': SyncConfig.reserved_key,
        'file_extension': SyncConfig.file_extension,
        'max_workers': SyncConfig.max_workers,
        'page_size': SyncConfig.page_size,
    }

    @classmethod
    def load(cls, config_path: str) -> SyncConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncConfig object with parsed configuration

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(
                config_path,
                'read',
                'Configuration file not found'
            )
        except PermissionError:
            raise FilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'read',
                str(e)
            )

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        if config_dict is None:
            return SyncConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def load_or_default(cls, config_path: str = DEFAULT_CONFIG_PATH) -> SyncConfig:
        """Load configuration if the file exists, otherwise return defaults."""
        if not os.path.exists(config_path):
            return SyncConfig()
        return cls.load(config_path)

    @classmethod
    def save(cls, config_path: str, sync_config: SyncConfig) -> None:
        """Save configuration to a YAML file.

        Args:
            config_path: Path to the YAML configuration file
            sync_config: SyncConfig object to save

        Raises:
            FilesystemError: If file cannot be written
        """
        config_dict = {
            'reserved_key': sync_config.reserved_key,
            'file_extension': sync_config.file_extension,
            'max_workers': sync_config.max_workers,
            'page_size': sync_config.page_size,
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(
                    config_dir,
                    'create_directory',
                    str(e)
                )

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(
                config_path,
                'write',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'write',
                str(e)
            )

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> SyncConfig:
        """Parse and validate configuration dictionary.

        Args:
            config_dict: Raw configuration dictionary from YAML

        Returns:
            Validated SyncConfig object

        Raises:
            ConfigError: If configuration is invalid
        """
        unknown_fields = set(config_dict.keys()) - cls.KNOWN_FIELDS
        if unknown_fields:
            raise ConfigError(
                f"Unknown fields: {', '.join(sorted(unknown_fields))}"
            )

        reserved_key = config_dict.get('reserved_key', cls.DEFAULTS['reserved_key'])
        file_extension = config_dict.get('file_extension', cls.DEFAULTS['file_extension'])
        max_workers = config_dict.get('max_workers', cls.DEFAULTS['max_workers'])
        page_size = config_dict.get('page_size', cls.DEFAULTS['page_size'])

        if not isinstance(reserved_key, str) or not reserved_key.strip():
            raise ConfigError(
                "Field 'reserved_key' must be a non-empty string",
                'reserved_key'
            )
        if not isinstance(file_extension, str) or not file_extension.startswith('.'):
            raise ConfigError(
                f"Field 'file_extension' must start with '.', got {file_extension!r}",
                'file_extension'
            )

        try:
            max_workers = int(max_workers)
            page_size = int(page_size)
        except (ValueError, TypeError) as e:
            raise ConfigError(
                f"Invalid field type for optional field: {str(e)}"
            )

        if max_workers < 1:
            raise ConfigError(
                f"Field 'max_workers' must be at least 1, got {max_workers}",
                'max_workers'
            )
        if page_size < 1:
            raise ConfigError(
                f"Field 'page_size' must be at least 1, got {page_size}",
                'page_size'
            )

        return SyncConfig(
            reserved_key=reserved_key,
            file_extension=file_extension,
            max_workers=max_workers,
            page_size=page_size,
        )
