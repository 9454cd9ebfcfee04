#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from dkg_deploy.actions import Deployer
from dkg_deploy.options import autosign_option, tags_option, units_file_option, verify_option


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@units_file_option
@tags_option
@autosign_option
@verify_option
def cli(network, account, units_file, tags, autosign, verify):
    """
    Deploys and configures the units declared in a units file, in dependency order.

    ape run deploy_units --network ethereum:local:test -u dkg_deploy/configs/v1.yml -t v1
    """
    deployer = Deployer.from_yaml(
        filepath=units_file, verify=verify, account=account, autosign=autosign
    )
    deployer.run(tags=tags)


if __name__ == "__main__":
    cli()
