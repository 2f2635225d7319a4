import typing
from collections import OrderedDict
from typing import Any, Dict, List

from ape import networks
from ape.api import AccountAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance
from ape.utils import ZERO_ADDRESS
from eth_utils import to_checksum_address
from web3 import Web3

from drops_deployment.config import DeploymentConfig
from drops_deployment.confirm import _confirm_resolution, _continue
from drops_deployment.errors import VerificationError
from drops_deployment.manifest import DeploymentResult
from drops_deployment.params import DeploymentPlan
from drops_deployment.utils import (
    check_plugins,
    contract_name_from_artifact,
    get_contract_container,
)

w3 = Web3()


def _validate_constructor_abi_inputs(
    contract_name: str,
    abi_inputs: List[Any],
    resolved_parameters: OrderedDict,
) -> None:
    """Validates the constructor parameters against the constructor ABI."""
    if len(resolved_parameters) != len(abi_inputs):
        raise ApeDeployer.Invalid(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
        )
    if not abi_inputs:
        return  # no constructor parameters

    codex = enumerate(zip(abi_inputs, resolved_parameters.items()), start=0)
    for position, (abi_input, resolved_input) in codex:
        name, value = resolved_input
        # validate name
        if abi_input.name != name:
            raise ApeDeployer.Invalid(
                f"{contract_name} constructor parameter '{name}' at position {position} does not "
                f"match the expected ABI name '{abi_input.name}'."
            )

        # validate value type
        if not w3.is_encodable(abi_input.type, value):
            raise ApeDeployer.Invalid(
                f"Constructor param name '{name}' at position {position} has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_input.type}'"
            )


class ApeDeployer:
    """
    Deploys and verifies contract artifacts with an ape account.
    """

    class Invalid(Exception):
        """Raised when constructor parameters do not match a contract's constructor ABI"""

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        verify: bool = True,
        autosign: bool = False,
    ):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

        self.verify = verify
        if self.verify:
            check_plugins()

    def get_account(self) -> AccountAPI:
        """Returns the deployer account."""
        return self._account

    def validate_plan(self, plan: DeploymentPlan, config: DeploymentConfig) -> None:
        """
        Eagerly checks every step of the plan against its contract's constructor ABI
        before anything is deployed; contract addresses are stood in by the zero address.
        """
        print("Validating constructor parameters...")
        config.require(plan.required_config_keys)
        placeholder_addresses = {name: ZERO_ADDRESS for name in plan.names}
        for step in plan:
            spec = step.resolve(config=config, addresses=placeholder_addresses)
            container = get_contract_container(contract_name_from_artifact(spec.artifact))
            _validate_constructor_abi_inputs(
                contract_name=spec.name,
                abi_inputs=container.constructor.abi.inputs,
                resolved_parameters=spec.constructor,
            )

    def deploy_and_verify(self, artifact: str, constructor_args: List[Any]) -> DeploymentResult:
        contract_name = contract_name_from_artifact(artifact)
        container = get_contract_container(contract_name)
        instance = self._deploy_contract(container, constructor_args)

        verified = False
        if self.verify:
            self._verify_contract(contract_name, instance)
            verified = True

        verification = self._verification_record(artifact, instance, verified)
        return DeploymentResult(
            deployed_address=to_checksum_address(instance.address),
            verification=verification,
        )

    def _deploy_contract(
        self, container: ContractContainer, constructor_args: List[Any]
    ) -> ContractInstance:
        contract_name = container.contract_type.name
        if not self._autosign:
            _confirm_resolution(constructor_args, contract_name)
        return self._account.deploy(container, *constructor_args)

    @staticmethod
    def _verify_contract(contract_name: str, instance: ContractInstance) -> None:
        explorer = networks.provider.network.explorer
        if explorer is None:
            raise VerificationError(
                contract_name=contract_name,
                deployed_address=instance.address,
                reason="no block explorer configured for this network",
            )
        print(f"(i) Verifying {contract_name}...")
        try:
            explorer.publish_contract(instance.address)
        except Exception as e:
            raise VerificationError(
                contract_name=contract_name, deployed_address=instance.address, reason=str(e)
            ) from e

    @staticmethod
    def _verification_record(
        artifact: str, instance: ContractInstance, verified: bool
    ) -> Dict[str, Any]:
        receipt = instance.receipt
        return {
            "contract": instance.contract_type.name,
            "artifact": artifact,
            "chainId": receipt.chain_id,
            "txHash": str(receipt.txn_hash),
            "blockNumber": int(receipt.block_number),
            "deployer": str(receipt.transaction.sender),
            "verified": verified,
        }

    def confirm_start(self) -> None:
        """Confirms the start of the deployment."""
        if not self._autosign:
            _continue()

    def print_deployment_info(self, plan: DeploymentPlan) -> None:
        print(
            f"Account: {self.get_account().address}",
            f"Contracts: {', '.join(plan.names)}",
            f"Verify: {self.verify}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
