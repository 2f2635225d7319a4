#!/usr/bin/python3
from pathlib import Path

import click

from drops_deployment.manifest import read_manifest


@click.command(name="show-manifest")
@click.argument(
    "manifest_filepath",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
)
def cli(manifest_filepath):
    """Display the contracts recorded in a deployment manifest."""
    manifest = read_manifest(filepath=manifest_filepath)
    click.secho(f"\n{manifest_filepath.name}", fg="green")
    for index, (name, result) in enumerate(manifest.items(), start=1):
        click.secho(f"    {index}. {name} {result.deployed_address}", fg="cyan")
        verification = result.verification or dict()
        if isinstance(verification, dict) and "verified" in verification:
            status = "verified" if verification["verified"] else "not verified"
            click.secho(f"        {status}", fg="yellow")


if __name__ == "__main__":
    cli()
