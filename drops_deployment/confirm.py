from typing import Any, List

from ape.utils import ZERO_ADDRESS

from drops_deployment.errors import DeploymentAborted


def _confirm(question: str) -> None:
    answer = input(f"{question} Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        raise DeploymentAborted(question)


def _continue() -> None:
    """Asks the user to continue."""
    _confirm("Continue")


def _confirm_deployment(contract_name: str) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    _confirm(f"Deploy {contract_name}")


def _contains_zero_address(value: Any) -> bool:
    if isinstance(value, list):
        return any(_contains_zero_address(v) for v in value)
    return value == ZERO_ADDRESS


def _confirm_resolution(constructor_args: List[Any], contract_name: str) -> None:
    """Asks the user to confirm the resolved constructor arguments for a single contract."""
    if len(constructor_args) == 0:
        print(f"\n(i) No constructor parameters for {contract_name}")
        _confirm_deployment(contract_name)
        return

    print(f"\nConstructor parameters for {contract_name}")
    for position, resolved_value in enumerate(constructor_args):
        print(f"\t[{position}] {resolved_value}")
    _confirm_deployment(contract_name)
    if _contains_zero_address(constructor_args):
        _confirm("Zero Address detected for deployment parameter; Continue")
