import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Optional, Union

from dotenv import dotenv_values

from drops_deployment.constants import ENV_FILE_PREFIX
from drops_deployment.errors import ConfigurationError


def env_filepath(network_id: str, directory: Optional[Union[Path, str]] = None) -> Path:
    """Returns the filepath of the dotenv file for a network, e.g. '.env.mainnet'."""
    directory = Path(directory) if directory is not None else Path.cwd()
    return directory / f"{ENV_FILE_PREFIX}.{network_id}"


class DeploymentConfig(Mapping):
    """Read-only settings for a deployment run against a single network."""

    def __init__(self, values: Mapping[str, str], network_id: Optional[str] = None):
        self._values = MappingProxyType(dict(values))
        self.network_id = network_id

    @classmethod
    def from_env_file(
        cls,
        network_id: str,
        directory: Optional[Union[Path, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "DeploymentConfig":
        """
        Loads settings from '.env.<network_id>'; variables already present
        in the environment take precedence over the file.
        """
        filepath = env_filepath(network_id=network_id, directory=directory)
        if filepath.exists():
            print(f"Loading configuration from {filepath}...")
        else:
            print(f"(i) No configuration file found at {filepath}; using environment only.")

        values = {k: v for k, v in dotenv_values(filepath).items() if v is not None}
        values.update(os.environ if environ is None else environ)
        return cls(values=values, network_id=network_id)

    def require(self, keys: Iterable[str]) -> None:
        """Raises ConfigurationError listing every key that is absent or empty."""
        missing_keys = [key for key in keys if not self._values.get(key)]
        if missing_keys:
            raise ConfigurationError(missing_keys=missing_keys, network_id=self.network_id)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DeploymentConfig(network_id={self.network_id!r}, keys={len(self)})"
