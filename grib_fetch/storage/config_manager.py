"""
Manages loading, validation and creation of the JSON configuration file.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from grib_fetch.exceptions import ConfigurationError
from grib_fetch.models.config import FetchConfig

log = logging.getLogger(__name__)

EXAMPLE_PARAMETERS = {
    "TMP": ["2 m above ground"],
    "UGRD": ["10 m above ground"],
    "VGRD": ["10 m above ground"],
    "PRMSL": [],
}


class ConfigManager:
    """Handles all operations related to the application's JSON config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = Path(config_file_path)

    def read_raw(self) -> dict[str, Any]:
        """
        Reads the JSON object from disk without validating it.

        Raises:
            ConfigurationError: If the file is missing or is not a JSON object.
        """
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'."
            )

        try:
            with open(self.config_file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Error reading configuration file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a JSON object.")

        unknown = set(data) - FetchConfig.get_file_keys()
        if unknown:
            log.warning(
                f"[yellow]Ignoring unknown configuration keys: "
                f"{', '.join(sorted(unknown))}[/yellow]"
            )
            data = {k: v for k, v in data.items() if k not in unknown}
        return data

    def load_config(self, cli_options: dict[str, Any] | None = None) -> FetchConfig:
        """
        Loads configuration from the JSON file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated FetchConfig object.

        Raises:
            ConfigurationError: If the config file is missing, invalid, or validation
            fails.
        """
        config_from_file = self.read_raw()

        # Override with CLI options
        if cli_options:
            config_from_file.update(cli_options)

        try:
            return FetchConfig(
                **config_from_file, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> FetchConfig:
        """
        Validates and writes a new configuration file.

        Args:
            settings: A dictionary of settings to save. Missing keys take the
                model defaults.

        Returns:
            The validated configuration that was written.
        """
        try:
            config = FetchConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

        data = config.model_dump(include=FetchConfig.get_file_keys())
        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

        log.debug(f"Wrote configuration to '{self.config_file_path}'.")
        return config
