from pathlib import Path

import click

from dkg_deploy.types import CommaSeparated

units_file_option = click.option(
    "--units-file",
    "-u",
    help="YAML file declaring the deployment units",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)

tags_option = click.option(
    "--tags",
    "-t",
    help="Comma-separated tags; only tagged units and their dependencies are executed",
    type=CommaSeparated(),
    default=None,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without asking for confirmation",
    is_flag=True,
    default=False,
)

verify_option = click.option(
    "--verify/--no-verify",
    help="Publish deployed contracts to the network's block explorer",
    default=False,
)
