"""
Configuration management for the Peloton client.

Loads and validates configuration from config.yaml (or environment variables as fallback).
"""
from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

log = logging.getLogger(__name__)

# Load .env file if it exists (for local development)
load_dotenv()

DEFAULT_BASE_URL = "https://api.onepeloton.com"

# Default configuration
DEFAULT_CONFIG = {
    'timezone': {
        # None means "use the local time zone of the process"
        'default': None,
    },
    'ingestion': {
        'page_size': 100,
        'max_retries': 3,
        'retry_delay_seconds': 5,
        'timeout_seconds': 30,
    },
    'api': {
        'peloton': {
            'base_url': DEFAULT_BASE_URL,
            'platform': 'web',
        }
    }
}


class Config:
    """
    Configuration singleton for the client.

    Loads configuration from:
    1. config.yaml in the working directory, or the file named by PELOTON_CONFIG
    2. Environment variables (as override)
    3. Defaults (as fallback)

    Example:
        >>> config = Config()
        >>> token = config.get_bearer_token()
        >>> config.get('api.peloton.base_url')
        'https://api.onepeloton.com'
    """

    _instance: Optional['Config'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    @classmethod
    def reload(cls) -> 'Config':
        """Drop the cached instance and load configuration again."""
        cls._instance = None
        return cls()

    def _load_config(self) -> None:
        """Load configuration from config.yaml and environment."""
        # Start with defaults (deep copy so the module defaults never change)
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        config_path = Path(os.getenv('PELOTON_CONFIG', 'config.yaml'))
        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    yaml_config = yaml.safe_load(f)
                    if yaml_config:
                        self._merge_config(yaml_config)
                        log.info(f"Loaded configuration from {config_path}")
            except (OSError, yaml.YAMLError) as e:
                log.warning(f"Failed to load {config_path}: {e}. Using defaults.")
        else:
            log.debug(f"No {config_path} found. Using defaults and environment variables.")

        # Override with environment variables
        self._load_env_overrides()

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Recursively merge new config into existing config."""
        def merge(base: Dict, update: Dict) -> Dict:
            for key, value in update.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    merge(base[key], value)
                else:
                    base[key] = value
            return base

        merge(self._config, new_config)

    def _load_env_overrides(self) -> None:
        """Load overrides from environment variables."""
        peloton = self._config['api']['peloton']

        if token := os.getenv('PELOTON_BEARER_TOKEN'):
            peloton['token'] = token

        if user_id := os.getenv('PELOTON_USERID'):
            peloton['user_id'] = user_id

        if base_url := os.getenv('PELOTON_BASE_URL'):
            peloton['base_url'] = base_url

        if env_tz := os.getenv('PELOTON_TIMEZONE'):
            self._config['timezone']['default'] = env_tz

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Example:
            >>> config.get('ingestion.page_size')
            100
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_bearer_token(self) -> Optional[str]:
        """Bearer token for the Peloton API, None if not configured."""
        return self.get('api.peloton.token') or None

    def get_user_id(self) -> Optional[str]:
        return self.get('api.peloton.user_id') or None

    def get_base_url(self) -> str:
        return self.get('api.peloton.base_url') or DEFAULT_BASE_URL

    def get_platform(self) -> str:
        return self.get('api.peloton.platform', 'web')

    def get_timezone(self) -> Optional[str]:
        """IANA zone used for date inference, None for the process's local zone."""
        return self.get('timezone.default')

    def get_page_size(self) -> int:
        return int(self.get('ingestion.page_size', 100))

    def get_timeout(self) -> float:
        return float(self.get('ingestion.timeout_seconds', 30))

    def get_max_retries(self) -> int:
        """Get maximum retry attempts for rate-limited API calls."""
        return int(self.get('ingestion.max_retries', 3))

    def get_retry_delay(self) -> float:
        """Get retry delay in seconds."""
        return float(self.get('ingestion.retry_delay_seconds', 5))

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        tz_name = self.get_timezone()
        if tz_name:
            try:
                from zoneinfo import ZoneInfo
                ZoneInfo(tz_name)
            except Exception as e:
                errors.append(f"Invalid timezone {tz_name!r}: {e}")

        if not self.get_bearer_token():
            errors.append("Peloton bearer token not configured (set PELOTON_BEARER_TOKEN or add to config.yaml)")

        if self.get_page_size() < 1:
            errors.append("ingestion.page_size must be at least 1")

        return errors

    def __repr__(self) -> str:
        """String representation (hides sensitive data)."""
        safe_config = copy.deepcopy(self._config)

        # Mask API tokens
        for service in safe_config.get('api', {}).values():
            if isinstance(service, dict) and 'token' in service:
                service['token'] = '***MASKED***'

        return f"Config({safe_config})"


# Convenience functions for common operations
def get_config() -> Config:
    """Get the configuration singleton."""
    return Config()


def get_default_timezone() -> Optional[str]:
    return get_config().get_timezone()
