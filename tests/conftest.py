from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from drops_deployment.config import DeploymentConfig
from drops_deployment.constants import ZORA_ERC_721_TRANSFER_HELPER_ADDRESS
from drops_deployment.params import DeploymentPlan

TRANSFER_HELPER_ADDRESS = "0xABC"


class FakeDeployAndVerify:
    """Stands in for the deploy-and-verify primitive; records every call."""

    def __init__(self, addresses, fail_on=None, error=None, responses=None):
        self.addresses = list(addresses)
        self.fail_on = fail_on
        self.error = error or RuntimeError("transaction reverted")
        self.responses = responses or dict()
        self.calls = list()

    def __call__(self, artifact, constructor_args):
        self.calls.append((artifact, list(constructor_args)))
        position = len(self.calls)
        if position == self.fail_on:
            raise self.error
        if position in self.responses:
            return self.responses[position]
        return {
            "deployedAddress": self.addresses[position - 1],
            "verification": {"artifact": artifact, "verified": True},
        }

    @property
    def call_count(self):
        return len(self.calls)


@pytest.fixture
def config():
    return DeploymentConfig(
        {ZORA_ERC_721_TRANSFER_HELPER_ADDRESS: TRANSFER_HELPER_ADDRESS}, network_id="mainnet"
    )


@pytest.fixture(scope="session")
def plan():
    return DeploymentPlan.from_yaml()


@pytest.fixture
def fake_deploy():
    return FakeDeployAndVerify(addresses=["0x1", "0x2", "0x3"])


@pytest.fixture
def deployer_account():
    account = MagicMock()
    account.address = "0x" + "de" * 20

    def deploy(container, *args):
        receipt = SimpleNamespace(
            chain_id=11155111,
            txn_hash="0x" + "aa" * 32,
            block_number=4_200_000,
            transaction=SimpleNamespace(sender=account.address),
        )
        return SimpleNamespace(
            address="0x" + "ab" * 20,
            contract_type=container.contract_type,
            receipt=receipt,
        )

    account.deploy.side_effect = deploy
    return account


@pytest.fixture
def fake_deploy_factory():
    return FakeDeployAndVerify
