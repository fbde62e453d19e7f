"""
Configuration loader for the Control-M Migration Analyzer.

Loads settings from config.yaml with sensible defaults.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULTS = {
    'parser': {
        'encoding': 'cp1252',
        'max_file_size_mb': 510,
    },
    'scoring': {
        'full_graph_depth': False,
    },
    'output': {
        'output_dir': 'output',
        'format': 'all',
    },
    'database': {
        'path': 'controlm.db',
    },
    'server': {
        'host': '0.0.0.0',
        'port': 8080,
        'api_token': None,  # None = unauthenticated
    },
    'logging': {
        'level': 'INFO',
    },
}


class Config:
    """Configuration manager for the migration analyzer."""

    _instance: Optional['Config'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        """Singleton pattern to ensure single config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self):
        """Load configuration from config.yaml or use defaults."""
        self._config = self._deep_merge(DEFAULTS, {})

        config_paths = [
            Path('config.yaml'),
            Path('config.yml'),
            Path(__file__).parent.parent.parent / 'config.yaml',
            Path(__file__).parent.parent.parent / 'config.yml',
            Path.home() / '.controlm-analysis' / 'config.yaml',
        ]

        config_file = next((path for path in config_paths if path.exists()), None)

        if config_file:
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    file_config = yaml.safe_load(f) or {}
                if not isinstance(file_config, dict):
                    raise ValueError("top-level YAML value must be a mapping")

                self._config = self._deep_merge(DEFAULTS, file_config)
                logger.info(f"Loaded configuration from {config_file}")

            except (OSError, yaml.YAMLError, ValueError) as e:
                logger.warning(f"Failed to load config from {config_file}: {e}")
        else:
            logger.debug("No config.yaml found, using defaults")

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries."""
        result = {k: (v.copy() if isinstance(v, dict) else v) for k, v in base.items()}
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, *keys, default=None) -> Any:
        """
        Get a configuration value by key path.

        Usage:
            config.get('server', 'port')
            config.get('database', 'path', default='controlm.db')
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    @property
    def parser(self) -> Dict[str, Any]:
        """Get parser configuration."""
        return self._config.get('parser', DEFAULTS['parser'])

    @property
    def scoring(self) -> Dict[str, Any]:
        """Get scoring configuration."""
        return self._config.get('scoring', DEFAULTS['scoring'])

    @property
    def output(self) -> Dict[str, Any]:
        """Get report output configuration."""
        return self._config.get('output', DEFAULTS['output'])

    @property
    def database(self) -> Dict[str, Any]:
        """Get catalog database configuration."""
        return self._config.get('database', DEFAULTS['database'])

    @property
    def server(self) -> Dict[str, Any]:
        """Get query server configuration."""
        return self._config.get('server', DEFAULTS['server'])

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self._config.get('logging', DEFAULTS['logging'])

    def reload(self):
        """Reload configuration from file."""
        self._load_config()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config
