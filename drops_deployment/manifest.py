import json
import os
from collections import OrderedDict
from collections.abc import Mapping
from datetime import date as Date
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, NamedTuple, Union

from eth_utils import is_0x_prefixed, is_hex

from drops_deployment.constants import DEPLOYMENTS_DIR, MANIFEST_JSON_FORMAT
from drops_deployment.errors import ManifestWriteError

ContractName = str

DEPLOYED_ADDRESS_KEY = "deployedAddress"
VERIFICATION_KEY = "verification"


def _is_address(value: Any) -> bool:
    return (
        isinstance(value, str) and is_0x_prefixed(value) and len(value) > 2 and is_hex(value)
    )


class DeploymentResult(NamedTuple):
    """The outcome of a single deploy-and-verify call."""

    deployed_address: str
    verification: Any = None

    @classmethod
    def from_response(cls, response: Any) -> "DeploymentResult":
        """
        Extracts a result from whatever the deploy primitive returned.
        Accepts a DeploymentResult or a mapping with a 'deployedAddress' key.
        """
        if isinstance(response, DeploymentResult):
            address, verification = response.deployed_address, response.verification
        elif isinstance(response, Mapping):
            address = response.get(DEPLOYED_ADDRESS_KEY)
            verification = response.get(VERIFICATION_KEY)
        else:
            raise ValueError(f"Malformed deployment result of type {type(response).__name__}")

        if not _is_address(address):
            raise ValueError(f"Malformed deployment result: invalid deployed address {address!r}")
        return cls(deployed_address=address, verification=verification)

    def to_dict(self) -> Dict[str, Any]:
        return {DEPLOYED_ADDRESS_KEY: self.deployed_address, VERIFICATION_KEY: self.verification}


class DeploymentManifest(Mapping):
    """Deployment results of one complete run, keyed by logical contract name."""

    def __init__(self, results: "OrderedDict[ContractName, DeploymentResult]"):
        self._results = OrderedDict(results)

    def __getitem__(self, name: ContractName) -> DeploymentResult:
        return self._results[name]

    def __iter__(self) -> Iterator[ContractName]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __repr__(self) -> str:
        return f"DeploymentManifest({dict(self.addresses())})"

    def addresses(self) -> "OrderedDict[ContractName, str]":
        return OrderedDict((name, result.deployed_address) for name, result in self.items())

    def to_dict(self) -> Dict[ContractName, Dict[str, Any]]:
        return OrderedDict((name, result.to_dict()) for name, result in self.items())

    def to_json(self) -> str:
        # verification records are opaque; anything json cannot encode is kept as text
        return json.dumps(self.to_dict(), default=str, **MANIFEST_JSON_FORMAT)


def today() -> str:
    """Returns the current UTC date in ISO 8601 format, e.g. '2024-03-01'."""
    return datetime.now(timezone.utc).date().isoformat()


def _validate_date(date: Union[Date, str]) -> str:
    if isinstance(date, Date):
        return date.isoformat()
    try:
        return Date.fromisoformat(date).isoformat()
    except (TypeError, ValueError):
        raise ValueError(f"Manifest date must be an ISO 8601 day (YYYY-MM-DD), got {date!r}")


def _validate_network_id(network_id: str) -> str:
    if not network_id or "/" in network_id or "\\" in network_id:
        raise ValueError(f"Invalid network identifier {network_id!r}")
    return network_id


def manifest_filepath(
    date: Union[Date, str], network_id: str, deployments_dir: Path = DEPLOYMENTS_DIR
) -> Path:
    """Returns the manifest filepath, e.g. deployments/2024-03-01.mainnet.json"""
    date = _validate_date(date)
    network_id = _validate_network_id(network_id)
    return Path(deployments_dir) / f"{date}.{network_id}.json"


def persist(
    manifest: DeploymentManifest,
    network_id: str,
    date: Union[Date, str],
    deployments_dir: Path = DEPLOYMENTS_DIR,
) -> Path:
    """
    Writes the manifest as JSON, replacing any manifest already written
    for the same date and network.

    The contracts in the manifest are already live, so when the write fails
    the full manifest is printed before ManifestWriteError is raised.
    An existing manifest is only replaced once the new one is fully written.
    """
    payload = manifest.to_json()
    filepath = None
    try:
        filepath = manifest_filepath(
            date=date, network_id=network_id, deployments_dir=deployments_dir
        )
        filepath.parent.mkdir(parents=True, exist_ok=True)
        _write_replacing(filepath, payload)
    except (OSError, ValueError) as e:
        print(f"\nERROR: could not write deployment manifest to {filepath or deployments_dir}.")
        print("Record the following deployments manually:")
        print(payload)
        raise ManifestWriteError(filepath=filepath, manifest=manifest, reason=str(e)) from e

    print(f"(i) Deployment manifest written to {filepath}!")
    return filepath


def _write_replacing(filepath: Path, payload: str) -> None:
    temp_filepath = filepath.with_name(f"{filepath.name}.tmp")
    try:
        with open(temp_filepath, "w") as file:
            file.write(payload)
            file.write("\n")
        os.replace(temp_filepath, filepath)
    except OSError:
        if temp_filepath.exists():
            temp_filepath.unlink()
        raise


def read_manifest(filepath: Path) -> DeploymentManifest:
    """Loads a manifest previously written by `persist`."""
    with open(filepath, "r") as file:
        data = json.load(file)

    if not isinstance(data, dict):
        raise ValueError(f"Malformed manifest at {filepath}: expected a JSON object.")

    results = OrderedDict()
    for name, entry in data.items():
        try:
            results[name] = DeploymentResult.from_response(entry)
        except ValueError as e:
            raise ValueError(f"Malformed manifest entry '{name}' at {filepath}: {e}")
    return DeploymentManifest(results)
