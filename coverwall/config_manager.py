import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from coverwall.exceptions import ConfigError
from coverwall.logging_config import get_logger

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_DIR = PROJECT_ROOT / "config"


class ConfigManager:
    """
    Loads the Cover Wall configuration.

    Resolution order: ``config.json`` (or the given path), falling back to
    ``config.template.json`` when it does not exist. Keys missing from the
    loaded file are filled in from the template, and ``config_secrets.json``
    (Goodreads access key) is deep-merged on top.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        secrets_path: Optional[str] = None,
        template_path: Optional[str] = None
    ) -> None:
        self.config_path: str = config_path or str(DEFAULT_CONFIG_DIR / "config.json")
        self.secrets_path: str = secrets_path or str(DEFAULT_CONFIG_DIR / "config_secrets.json")
        self.template_path: str = template_path or str(DEFAULT_CONFIG_DIR / "config.template.json")
        self.config: Dict[str, Any] = {}
        self.logger: logging.Logger = get_logger(__name__)

    def get_config_path(self) -> str:
        return self.config_path

    def get_secrets_path(self) -> str:
        return self.secrets_path

    def _read_json(self, path: str) -> Dict[str, Any]:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            error_msg = f"Error parsing configuration file {os.path.abspath(path)}"
            self.logger.error(error_msg, exc_info=True)
            raise ConfigError(error_msg, config_path=path) from e
        except OSError as e:
            error_msg = f"Error loading configuration from {os.path.abspath(path)}"
            self.logger.error(error_msg, exc_info=True)
            raise ConfigError(error_msg, config_path=path) from e

        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a JSON object", config_path=path)
        return data

    def load_config(self) -> Dict[str, Any]:
        """
        Load configuration from JSON files.

        Raises:
            ConfigError: If neither config nor template exists, or a file is invalid
        """
        template = self._read_json(self.template_path) if os.path.exists(self.template_path) else {}

        if os.path.exists(self.config_path):
            self.logger.info("Loading config from: %s", os.path.abspath(self.config_path))
            self.config = self._read_json(self.config_path)
            self._merge_template_defaults(self.config, template)
        elif template:
            self.logger.info(
                "No config at %s, using template %s",
                os.path.abspath(self.config_path), os.path.abspath(self.template_path)
            )
            self.config = template
        else:
            error_msg = f"Configuration file not found at {os.path.abspath(self.config_path)}"
            self.logger.error(error_msg)
            raise ConfigError(error_msg, config_path=self.config_path)

        # Secrets are optional; a broken secrets file only loses the access key
        if os.path.exists(self.secrets_path):
            try:
                with open(self.secrets_path, 'r') as f:
                    self._deep_merge(self.config, json.load(f))
            except (json.JSONDecodeError, OSError) as e:
                self.logger.warning(
                    "Error reading secrets file (%s): %s. Continuing without secrets.", self.secrets_path, e
                )

        return self.config

    def _deep_merge(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """Deep merge source dict into target dict."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._deep_merge(target[key], value)
            else:
                target[key] = value

    def _merge_template_defaults(self, current: Dict[str, Any], template: Dict[str, Any]) -> None:
        """Add keys present only in the template, keeping every value already set."""
        for key, value in template.items():
            if key not in current:
                current[key] = value
            elif isinstance(current[key], dict) and isinstance(value, dict):
                self._merge_template_defaults(current[key], value)

    def get_config(self) -> Dict[str, Any]:
        """Get the full configuration dictionary, loading it first if needed."""
        if not self.config:
            self.load_config()
        return self.config

    def get_timezone(self) -> str:
        return self.get_config().get('timezone', 'UTC')

    def get_wall_config(self) -> Dict[str, Any]:
        return self.get_config().get('wall', {})

    def get_goodreads_config(self) -> Dict[str, Any]:
        return self.get_config().get('goodreads', {})

    def get_display_config(self) -> Dict[str, Any]:
        return self.get_config().get('display', {})

    def get_web_config(self) -> Dict[str, Any]:
        return self.get_config().get('web', {})
