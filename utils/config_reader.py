from logging import Logger
from pathlib import Path

import yaml

from crm_connector.errors import ConfigError

"""
Config
Loads the connector's YAML configuration (envs, sources, targets) from disk
and keeps it accessible on the reader instance.
"""


class ConfigReader:
    def __init__(self, log: Logger, configs_path: Path) -> None:
        """Initializes the reader with a configurations file path and a logger.

        :param configs_path: Path to the configurations file.
        :param log: Logger instance for logging messages.
        """
        self.configs_path = Path(configs_path)
        self.configs_data = None
        self.log = log

    def load_configurations(self) -> "ConfigReader":
        """Loads configurations from the file into the configs_data attribute.

        :return: Self for fluent interface.
        :raises ConfigError: If the file does not exist or is not valid YAML.
        """
        self._check_path_exists()
        try:
            with open(self.configs_path, "rb") as configs_file:
                self.configs_data = yaml.safe_load(configs_file) or {}
        except yaml.YAMLError as e:
            self.log.error(
                "Issue loading file '%s': %s" % (self.configs_path, e)
            )
            raise ConfigError(f"Invalid YAML in {self.configs_path}") from e
        if not isinstance(self.configs_data, dict):
            raise ConfigError(
                f"Top level of {self.configs_path} must be a mapping"
            )
        return self

    def _check_path_exists(self) -> None:
        """Checks if the config file exists at the specified path.

        :raises ConfigError: If the configurations file does not exist.
        """
        if not self.configs_path.exists():
            self.log.error("Issue loading file: %s" % (self.configs_path))
            raise ConfigError(
                "The file '%s' does not exist." % (self.configs_path)
            )
