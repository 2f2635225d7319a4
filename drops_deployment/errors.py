from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional


class ConfigurationError(ValueError):
    """Raised when required deployment configuration is missing."""

    def __init__(self, missing_keys: List[str], network_id: Optional[str] = None):
        self.missing_keys = list(missing_keys)
        self.network_id = network_id
        network = f" for network '{network_id}'" if network_id else ""
        super().__init__(
            f"Missing required configuration{network}: {', '.join(self.missing_keys)}"
        )


class DeploymentError(Exception):
    """
    Raised when a deployment step fails.

    Deployments that already succeeded are live on-chain and cannot be undone,
    so the completed results are always carried along.
    """

    def __init__(
        self,
        step: str,
        position: int,
        total: int,
        completed: OrderedDict,
        reason: str,
        orphaned_address: Optional[str] = None,
    ):
        self.step = step
        self.position = position
        self.total = total
        self.completed = OrderedDict(completed)
        self.reason = reason
        # set when the failing step's contract was created on-chain anyway
        self.orphaned_address = orphaned_address
        super().__init__(self._message())

    @property
    def completed_addresses(self) -> Dict[str, str]:
        return OrderedDict(
            (name, result.deployed_address) for name, result in self.completed.items()
        )

    def _message(self) -> str:
        message = (
            f"Deployment step {self.position}/{self.total} '{self.step}' failed: {self.reason}"
        )
        if self.orphaned_address:
            message = f"{message}\n{self.step} is live at {self.orphaned_address} (unverified)."
        if not self.completed:
            return f"{message}\nNo contracts were deployed."
        pretty_completed = "\n\t".join(
            f"{name}={address}" for name, address in self.completed_addresses.items()
        )
        return f"{message}\nAlready deployed (live on-chain):\n\t{pretty_completed}"


class ManifestWriteError(OSError):
    """Raised when a manifest could not be written after all deployments succeeded."""

    def __init__(self, filepath: Path, manifest, reason: str):
        self.filepath = filepath
        self.manifest = manifest
        super().__init__(f"Failed to write deployment manifest to {filepath}: {reason}")


class DeploymentAborted(Exception):
    """Raised when the operator declines a deployment confirmation."""


class VerificationError(Exception):
    """Raised when a contract was created on-chain but could not be verified."""

    def __init__(self, contract_name: str, deployed_address: str, reason: str):
        self.contract_name = contract_name
        self.deployed_address = deployed_address
        super().__init__(
            f"{contract_name} was deployed to {deployed_address} but verification failed: {reason}"
        )
