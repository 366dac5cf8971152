"""
YAML configuration parser for dirfinder.

This module loads, validates and writes the YAML configuration file. It
handles configuration file discovery, environment overrides for the workspace
root, and falls back to defaults when no file exists.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from ..errors import DirFinderError
from ..models.config import DEFAULT_CACHE_FILE, ROOT_ENV_VAR, FinderConfig


logger = logging.getLogger(__name__)


@dataclass
class ConfigParseResult:
    """
    Result of configuration parsing operation.

    Attributes:
        config: The parsed and validated configuration
        warnings: List of non-fatal warnings
        config_path: Path to the configuration file used
        is_default: Whether default configuration was used
    """
    config: FinderConfig
    warnings: List[str]
    config_path: Optional[Path]
    is_default: bool


class ConfigurationError(DirFinderError):
    """Raised when configuration parsing or validation fails."""
    pass


class ConfigParser:
    """
    YAML configuration parser with validation and error handling.

    Settings are layered: defaults, then the configuration file, then
    explicit overrides passed by the caller. The workspace root falls back
    to the DIRFINDER_ROOT environment variable and finally to the current
    directory.
    """

    DEFAULT_CONFIG_NAMES = [
        '.dirfinder.yaml',
        '.dirfinder.yml',
        'dirfinder.yaml',
        'dirfinder.yml'
    ]

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the configuration parser.

        Args:
            strict_mode: If True, treat warnings as errors
        """
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load_config(self, config_path: Optional[Union[str, Path]] = None,
                    overrides: Optional[Dict[str, Any]] = None) -> ConfigParseResult:
        """
        Load and parse configuration from file or use defaults.

        Args:
            config_path: Path to configuration file. If None, searches for default files.
            overrides: Settings that take precedence over the file, None values ignored

        Returns:
            ConfigParseResult containing parsed configuration and metadata

        Raises:
            ConfigurationError: If configuration is invalid or file cannot be read
        """
        if config_path:
            config_path = Path(config_path).expanduser()
            if not config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {config_path}")
            config_data = self._load_yaml_file(config_path)
            is_default = False
        else:
            config_path, config_data = self._find_and_load_config()
            is_default = config_data is None
            if is_default:
                config_data = {}

        merged = self._get_default_config()
        merged.update(config_data)
        if overrides:
            merged.update({k: v for k, v in overrides.items() if v is not None})

        if not merged.get('root'):
            merged['root'] = os.getenv(ROOT_ENV_VAR) or str(Path.cwd())

        try:
            finder_config = FinderConfig.from_dict(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        warnings = finder_config.validate_configuration()
        if is_default:
            warnings.append("No configuration file found, using default settings")

        if self.strict_mode and warnings:
            raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

        self.logger.debug(f"Configuration loaded from {config_path or 'defaults'}")

        return ConfigParseResult(
            config=finder_config,
            warnings=warnings,
            config_path=config_path,
            is_default=is_default
        )

    def _find_and_load_config(self) -> tuple[Optional[Path], Optional[Dict[str, Any]]]:
        """
        Find and load configuration file from default locations.

        Returns:
            Tuple of (config_path, config_data) or (None, None) if not found
        """
        search_paths = [
            Path.cwd(),
            Path.home(),
            Path.home() / '.config' / 'dirfinder',
        ]

        for search_path in search_paths:
            for config_name in self.DEFAULT_CONFIG_NAMES:
                config_file = search_path / config_name
                if config_file.exists() and config_file.is_file():
                    try:
                        config_data = self._load_yaml_file(config_file)
                        self.logger.debug(f"Found configuration file: {config_file}")
                        return config_file, config_data
                    except ConfigurationError as e:
                        self.logger.warning(f"Failed to load {config_file}: {e}")
                        continue

        return None, None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load and parse YAML file.

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed YAML data as dictionary

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e

        if data is None:
            self.logger.warning(f"Configuration file is empty: {file_path}")
            return {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a YAML object, got {type(data).__name__}")

        unknown = sorted(set(data) - set(FinderConfig.model_fields))
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys in {file_path}: {', '.join(unknown)}")

        return data

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values (the root is resolved separately)."""
        return {
            'cache_file': DEFAULT_CACHE_FILE,
            'depth_limit': 3,
            'max_results': 10,
            'fuzzy_threshold': 10
        }

    def save_config(self, config: FinderConfig, output_path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: Configuration to save
            output_path: Path where to save the configuration

        Raises:
            ConfigurationError: If file cannot be written
        """
        self._write(output_path, self._generate_yaml_with_comments(config.to_dict()))
        self.logger.info(f"Configuration saved to {output_path}")

    def _write(self, output_path: Union[str, Path], content: str) -> None:
        try:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise ConfigurationError(f"Cannot write configuration file {output_path}: {e}") from e

    def _generate_yaml_with_comments(self, config_dict: Dict[str, Any]) -> str:
        """
        Generate YAML content with helpful comments.

        Args:
            config_dict: Configuration dictionary

        Returns:
            YAML content with comments
        """
        lines = [
            "# dirfinder configuration",
            "",
        ]

        sections = [
            ("root", "Workspace root to search (defaults to $DIRFINDER_ROOT or the current directory)"),
            ("cache_file", "Where the directory cache is persisted"),
            ("depth_limit", "Maximum directory depth to walk, -1 for unlimited"),
            ("max_results", "Maximum number of candidates listed for ambiguous queries"),
            ("fuzzy_threshold", "Largest fuzzy distance still accepted as a match")
        ]

        for key, comment in sections:
            if key in config_dict:
                lines.append(f"# {comment}")
                lines.append(yaml.safe_dump({key: config_dict[key]}, default_flow_style=False).rstrip())
                lines.append("")

        return "\n".join(lines)

    def get_config_template(self) -> str:
        """
        Get a template configuration file with all options and comments.

        Returns:
            YAML template as string
        """
        template_config = {'root': '~/src'}
        template_config.update(self._get_default_config())
        return self._generate_yaml_with_comments(template_config)

    def validate_config_file(self, config_path: Union[str, Path]) -> List[str]:
        """
        Validate a configuration file.

        Args:
            config_path: Path to configuration file

        Returns:
            List of validation errors (empty if valid)
        """
        try:
            self.load_config(config_path)
        except ConfigurationError as e:
            return [str(e)]
        return []


def load_config(config_path: Optional[Union[str, Path]] = None,
                overrides: Optional[Dict[str, Any]] = None,
                strict_mode: bool = False) -> ConfigParseResult:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to configuration file (optional)
        overrides: Settings taking precedence over the file
        strict_mode: Whether to treat warnings as errors

    Returns:
        ConfigParseResult containing parsed configuration

    Raises:
        ConfigurationError: If configuration is invalid
    """
    parser = ConfigParser(strict_mode=strict_mode)
    return parser.load_config(config_path, overrides)


def validate_config_file(config_path: Union[str, Path]) -> List[str]:
    """Convenience function to validate a configuration file."""
    return ConfigParser().validate_config_file(config_path)


def create_config_template(output_path: Union[str, Path]) -> None:
    """
    Create a template configuration file.

    Args:
        output_path: Where to save the template

    Raises:
        ConfigurationError: If template cannot be created
    """
    parser = ConfigParser()
    parser._write(output_path, parser.get_config_template())
