import os
from pathlib import Path

import yaml
from ape import networks, project
from ape.contracts import ContractContainer

from drops_deployment.networks import is_local_network

ARTIFACT_DELIMITER = ":"


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def contract_name_from_artifact(artifact: str) -> str:
    """
    Returns the contract name of an artifact reference.
    'src/ERC721Drop.sol:ERC721Drop' -> 'ERC721Drop'; a bare name is returned as is.
    """
    contract_name = artifact.rsplit(ARTIFACT_DELIMITER, 1)[-1].strip()
    if not contract_name:
        raise ValueError(f"No contract name in artifact reference '{artifact}'.")
    return contract_name


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to verify contracts.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    api_key = os.environ.get(explorer_envvar) if explorer_envvar else None
    if not api_key:
        raise ValueError(f"{explorer_envvar or 'Explorer API key'} is not set.")


def check_infura_plugin() -> None:
    """Checks that the ape-infura plugin is installed."""
    if is_local_network():
        return  # unnecessary for local deployment
    if networks.provider.name != "infura":
        return  # unnecessary when using a provider different than infura
    try:
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES
    except ImportError:
        raise ImportError("Please install the ape-infura plugin to use the infura provider.")
    for envvar in _ENVIRONMENT_VARIABLE_NAMES:
        api_key = os.environ.get(envvar)
        if api_key:
            break
    else:
        raise ValueError(
            f"No Infura API key found in "
            f"environment variables: {', '.join(_ENVIRONMENT_VARIABLE_NAMES)}"
        )


def check_plugins() -> None:
    print("Checking plugins...")
    check_etherscan_plugin()
    check_infura_plugin()


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container
