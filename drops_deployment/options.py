from pathlib import Path

import click

from drops_deployment.constants import DEFAULT_PARAMS_FILEPATH, DEPLOYMENTS_DIR

params_filepath_option = click.option(
    "--params-filepath",
    "-p",
    help="Constructor parameters YAML describing the contracts to deploy, in order.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=DEFAULT_PARAMS_FILEPATH,
    show_default=True,
)

env_dir_option = click.option(
    "--env-dir",
    "-e",
    help="Directory containing the '.env.<network>' configuration files.",
    type=click.Path(file_okay=False, exists=True, path_type=Path),
    default=Path("."),
    show_default=True,
)

deployments_dir_option = click.option(
    "--deployments-dir",
    help="Directory the deployment manifest is written to.",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEPLOYMENTS_DIR,
    show_default=True,
)

verify_option = click.option(
    "--verify/--no-verify",
    help="Verify contracts on the network's block explorer. Never done on local networks.",
    default=True,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Automatically sign transactions.",
    is_flag=True,
)
