from collections import OrderedDict
from types import SimpleNamespace

import pytest

from dkg_deploy.params import setter_name
from dkg_deploy.units import DeploymentRegistrar

HUB_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
PARAMETERS_STORAGE_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeContract:
    """Contract handle exposing `<name>()` getters and `set<Name>()` setters for its values."""

    def __init__(self, name, address, abi_types=None, **values):
        self.name = name
        self.address = address
        self.abi_types = dict(abi_types or {})
        self._values = OrderedDict(values)
        self.calls = list()

    def __getattr__(self, attribute):
        values = self.__dict__.get("_values", {})
        if attribute in values:
            return lambda: self._values[attribute]
        for parameter in values:
            if attribute == setter_name(parameter):
                return self._setter(parameter)
        raise AttributeError(attribute)

    def _setter(self, parameter):
        def setter(value, **kwargs):
            self.calls.append((setter_name(parameter), value))
            self._values[parameter] = value
            return f"receipt:{setter_name(parameter)}"

        if parameter in self.abi_types:
            abi_input = SimpleNamespace(name=parameter, type=self.abi_types[parameter])
            setter.abis = [SimpleNamespace(name=setter_name(parameter), inputs=[abi_input])]
        return setter


class FakeTransactor:
    def __init__(self):
        self.transactions = list()

    def transact(self, method, *args):
        self.transactions.append((method, args))
        return method(*args)


class Recorder:
    """Deploy and configure actions that log every call."""

    def __init__(self, fail_deploy=None, fail_configure=None):
        self.calls = list()
        self.fail_deploy = fail_deploy
        self.fail_configure = fail_configure

    def deploy(self, unit_name):
        self.calls.append(("deploy", unit_name))
        if unit_name == self.fail_deploy:
            raise RuntimeError(f"{unit_name} reverted")
        return FakeContract(unit_name, address=f"handle:{unit_name}")

    def update_parameters(self, unit_name, handle):
        self.calls.append(("configure", unit_name))
        if unit_name == self.fail_configure:
            raise RuntimeError(f"{unit_name} setter reverted")

    @property
    def deployed(self):
        return [name for stage, name in self.calls if stage == "deploy"]

    @property
    def configured(self):
        return [name for stage, name in self.calls if stage == "configure"]


@pytest.fixture
def hub_address():
    return HUB_ADDRESS


@pytest.fixture
def parameters_storage_address():
    return PARAMETERS_STORAGE_ADDRESS


@pytest.fixture
def deployer_address():
    return DEPLOYER_ADDRESS


@pytest.fixture
def make_contract():
    return FakeContract


@pytest.fixture
def transactor():
    return FakeTransactor()


@pytest.fixture
def make_recorder():
    return Recorder


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def commit_manager_registrar():
    registrar = DeploymentRegistrar()
    registrar.register("Hub", tags=["Hub", "v1"])
    registrar.register("ScoringProxy", tags=["ScoringProxy", "v1"], dependencies=["Hub"])
    registrar.register("Staking", tags=["Staking", "v1"], dependencies=["Hub"])
    registrar.register(
        "CommitManagerV1",
        tags=["CommitManagerV1"],
        dependencies=["Hub", "ScoringProxy", "Staking"],
    )
    return registrar


@pytest.fixture
def units_config():
    return {
        "deployment": {"name": "dkg-test", "chain_id": 31337},
        "artifacts": {"filename": "dkg-test.json"},
        "constants": {"MINIMUM_STAKE": 50000},
        "units": [
            "Hub",
            {
                "ParametersStorage": {
                    "tags": ["ParametersStorage", "v1"],
                    "dependencies": ["Hub"],
                    "constructor": {"hubAddress": "$Hub"},
                    "parameters": {
                        "minimumStake": "$MINIMUM_STAKE",
                        "epochLength": 3600,
                        "owner": "$deployer",
                    },
                }
            },
        ],
    }
