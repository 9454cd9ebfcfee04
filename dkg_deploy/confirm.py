from collections import OrderedDict
from typing import List

import click
from ape.utils import ZERO_ADDRESS


def _proceed(question: str) -> None:
    """Raises click.Abort unless the user agrees; an empty answer agrees."""
    click.confirm(question, default=True, abort=True)


def _continue() -> None:
    _proceed("Continue?")


def _confirm_plan(unit_names: List[str]) -> None:
    """Shows the execution order and asks the user to confirm it."""
    print("\nExecution order:")
    for index, unit_name in enumerate(unit_names, start=1):
        print(f"\t{index}. {unit_name}")
    _continue()


def _confirm_deployment(unit_name: str, resolved_params: OrderedDict) -> None:
    """
    Shows the constructor arguments a unit is about to be deployed with,
    flags the ones that resolved to the zero address, and asks before deploying.
    """
    if resolved_params:
        print(f"\nConstructor parameters for {unit_name}")
        for name, value in resolved_params.items():
            print(f"\t{name}={value}")
    else:
        print(f"\n(i) No constructor parameters for {unit_name}")

    zero_params = [name for name, value in resolved_params.items() if value == ZERO_ADDRESS]
    if zero_params:
        click.secho(
            f"WARNING: {', '.join(zero_params)} resolved to the zero address.", fg="yellow"
        )
    _proceed(f"Deploy {unit_name}?")
