#!/usr/bin/python3

import click

from dkg_deploy.options import tags_option, units_file_option
from dkg_deploy.sequencer import resolve_order, select_units
from dkg_deploy.units import registrar_from_config
from dkg_deploy.utils import _load_yaml


@click.command()
@units_file_option
@tags_option
def cli(units_file, tags):
    """Print the execution order of a units file without connecting to a network."""
    registrar = registrar_from_config(_load_yaml(units_file))
    plan = select_units(resolve_order(registrar), tags)

    click.secho(f"\n{units_file.name}", fg="green")
    for index, unit in enumerate(plan, start=1):
        dependencies = ", ".join(unit.dependencies) or "-"
        click.secho(f"    {index}. {unit.name}", fg="cyan", nl=False)
        click.echo(f"  (after: {dependencies})")


if __name__ == "__main__":
    cli()
