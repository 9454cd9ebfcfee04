from collections import OrderedDict

import click
import pytest
from ape.utils import ZERO_ADDRESS
from click.testing import CliRunner

from dkg_deploy import confirm


@pytest.fixture
def questions(monkeypatch):
    asked = list()

    def fake_confirm(question, default=False, abort=False):
        asked.append(question)
        return True

    monkeypatch.setattr(confirm.click, "confirm", fake_confirm)
    return asked


def test_confirm_plan(questions, capsys):
    confirm._confirm_plan(["Hub", "ParametersStorage"])

    output = capsys.readouterr().out
    assert "1. Hub" in output
    assert "2. ParametersStorage" in output
    assert questions == ["Continue?"]


def test_confirm_deployment_shows_constructor_parameters(questions, capsys, hub_address):
    confirm._confirm_deployment("ParametersStorage", OrderedDict(hubAddress=hub_address))

    output = capsys.readouterr().out
    assert f"hubAddress={hub_address}" in output
    assert "zero address" not in output
    assert questions == ["Deploy ParametersStorage?"]


def test_confirm_deployment_without_constructor_parameters(questions, capsys):
    confirm._confirm_deployment("Hub", OrderedDict())

    assert "No constructor parameters for Hub" in capsys.readouterr().out
    assert questions == ["Deploy Hub?"]


def test_confirm_deployment_flags_zero_address(questions, capsys, hub_address):
    resolved_params = OrderedDict(hubAddress=hub_address, owner=ZERO_ADDRESS)
    confirm._confirm_deployment("Staking", resolved_params)

    assert "WARNING: owner resolved to the zero address." in capsys.readouterr().out
    assert questions == ["Deploy Staking?"]


def test_declined_deployment_aborts():
    with CliRunner().isolation(input="n\n"):
        with pytest.raises(click.Abort):
            confirm._confirm_deployment("Hub", OrderedDict())


def test_empty_answer_continues():
    with CliRunner().isolation(input="\n"):
        confirm._continue()
