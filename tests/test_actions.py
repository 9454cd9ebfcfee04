from collections import OrderedDict
from types import SimpleNamespace

import pytest
from ape.utils import ZERO_ADDRESS

from dkg_deploy.actions import Deployer, _validate_method_args


def _abi(name, *inputs):
    return SimpleNamespace(
        name=name,
        inputs=[SimpleNamespace(name=input_name, type=input_type) for input_name, input_type in inputs],
    )


def test_validate_method_args():
    abis = [_abi("setMinimumStake", ("minimumStake", "uint96"))]
    assert _validate_method_args(abis, [50000]) == {"minimumStake": 50000}


def test_validate_method_args_picks_matching_overload(hub_address):
    abis = [
        _abi("setContractAddress", ("name", "string"), ("newContractAddress", "address")),
        _abi("setContractAddress", ("newContractAddress", "address")),
    ]
    assert _validate_method_args(abis, [hub_address]) == {"newContractAddress": hub_address}


def test_validate_method_args_type_mismatch():
    abis = [_abi("setMinimumStake", ("minimumStake", "uint96"))]
    with pytest.raises(ValueError, match="setMinimumStake"):
        _validate_method_args(abis, ["a lot"])


def test_validate_constructor_abi_inputs(hub_address):
    Deployer._validate_constructor_abi_inputs(
        unit_name="ParametersStorage",
        abi_inputs=_abi("constructor", ("hubAddress", "address")).inputs,
        resolved_parameters=OrderedDict(hubAddress=hub_address),
    )


@pytest.mark.parametrize(
    "resolved_parameters, message",
    [
        (OrderedDict(), "length mismatch"),
        (OrderedDict(hub=ZERO_ADDRESS), "does not match the expected ABI name"),
        (OrderedDict(hubAddress=42), "does not match expected ABI type"),
    ],
)
def test_invalid_constructor_abi_inputs(resolved_parameters, message):
    with pytest.raises(Deployer.Invalid, match=message):
        Deployer._validate_constructor_abi_inputs(
            unit_name="ParametersStorage",
            abi_inputs=_abi("constructor", ("hubAddress", "address")).inputs,
            resolved_parameters=resolved_parameters,
        )
