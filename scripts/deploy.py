#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from drops_deployment.config import DeploymentConfig
from drops_deployment.deployer import ApeDeployer
from drops_deployment.manifest import persist, today
from drops_deployment.networks import is_local_network
from drops_deployment.options import (
    autosign_option,
    deployments_dir_option,
    env_dir_option,
    params_filepath_option,
    verify_option,
)
from drops_deployment.orchestrator import run_deployment
from drops_deployment.params import DeploymentPlan


@click.command(cls=ConnectedProviderCommand, name="deploy")
@account_option()
@network_option(required=True)
@params_filepath_option
@env_dir_option
@deployments_dir_option
@verify_option
@autosign_option
def cli(account, network, params_filepath, env_dir, deployments_dir, verify, autosign):
    """
    Deploys the drop contracts, verifies them and writes a dated deployment manifest.

    ape run deploy --network ethereum:sepolia:infura --account deployer
    """
    network_id = network.name
    click.echo(f"Connected to {network_id} network.")

    config = DeploymentConfig.from_env_file(network_id=network_id, directory=env_dir)
    plan = DeploymentPlan.from_yaml(params_filepath)

    deployer = ApeDeployer(
        account=account,
        verify=verify and not is_local_network(),
        autosign=autosign,
    )
    deployer.validate_plan(plan=plan, config=config)
    deployer.print_deployment_info(plan=plan)
    deployer.confirm_start()

    manifest = run_deployment(
        config=config, deploy_and_verify=deployer.deploy_and_verify, plan=plan
    )

    filepath = persist(
        manifest=manifest, network_id=network_id, date=today(), deployments_dir=deployments_dir
    )
    for name, address in manifest.addresses().items():
        click.echo(f"'{name}' deployed to: {address}")
    click.echo(f"Manifest: {filepath}")


if __name__ == "__main__":
    cli()
