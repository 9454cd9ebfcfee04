import runpy
from pathlib import Path

import pytest
from click.testing import CliRunner

from dkg_deploy.constants import UNITS_DIR
from dkg_deploy.params import ConstructorParameters, ContractParameters
from dkg_deploy.sequencer import resolve_order, select_units
from dkg_deploy.units import registrar_from_config
from dkg_deploy.utils import _load_yaml, get_ledger_filepath

V1_UNITS_FILEPATH = UNITS_DIR / "v1.yml"
SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"


@pytest.fixture(scope="module")
def v1_config():
    return _load_yaml(V1_UNITS_FILEPATH)


def test_v1_order(v1_config):
    order = [unit.name for unit in resolve_order(registrar_from_config(v1_config))]

    assert order[0] == "Hub"
    assert order[-1] == "CommitManagerV1"
    assert order.index("ParametersStorage") < order.index("Staking")


def test_v1_parameters_storage_tag(v1_config):
    order = resolve_order(registrar_from_config(v1_config))
    assert [unit.name for unit in select_units(order, ["ParametersStorage"])] == [
        "Hub",
        "ParametersStorage",
    ]


def test_v1_v1_tag_excludes_commit_manager(v1_config):
    order = resolve_order(registrar_from_config(v1_config))
    selected = [unit.name for unit in select_units(order, ["v1"])]
    assert "CommitManagerV1" not in selected
    assert len(selected) == len(order) - 1


def test_v1_values_resolve(v1_config, hub_address):
    handles = {"Hub": hub_address}
    constructor_parameters = ConstructorParameters.from_config(v1_config, handles=handles)
    contract_parameters = ContractParameters.from_config(v1_config, handles=handles)

    assert dict(constructor_parameters.resolve("CommitManagerV1")) == {"hubAddress": hub_address}
    assert contract_parameters.resolve("ParametersStorage")["minimumStake"] == 50000 * 10**18


def test_v1_ledger_filepath(v1_config):
    assert get_ledger_filepath(v1_config).name == "dkg-v1-local.json"


def test_ledger_filepath_requires_filename():
    with pytest.raises(ValueError, match="artifact filename"):
        get_ledger_filepath({"artifacts": {}})


def test_plan_script():
    cli = runpy.run_path(str(SCRIPTS_DIR / "plan.py"))["cli"]
    result = CliRunner().invoke(cli, ["--units-file", str(V1_UNITS_FILEPATH), "-t", "Staking"])

    assert result.exit_code == 0, result.output
    lines = [line.strip() for line in result.output.splitlines() if line.strip()]
    assert lines[0] == "v1.yml"
    assert lines[1].startswith("1. Hub")
    assert lines[-1].startswith("6. Staking")


def test_plan_script_unknown_tag():
    cli = runpy.run_path(str(SCRIPTS_DIR / "plan.py"))["cli"]
    result = CliRunner().invoke(cli, ["--units-file", str(V1_UNITS_FILEPATH), "-t", "v3"])
    assert result.exit_code != 0
