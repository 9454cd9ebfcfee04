import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List

from ape import networks
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ethpm_types import MethodABI
from web3.auto import w3

from dkg_deploy.confirm import _confirm_deployment, _confirm_plan, _continue
from dkg_deploy.constants import CONTRACT_TYPE_KEY
from dkg_deploy.ledger import DeploymentLedger, LedgerEntry
from dkg_deploy.params import (
    ConstructorParameters,
    ContractParameters,
    ParameterUpdater,
    coerce_value,
)
from dkg_deploy.sequencer import DependencySequencer
from dkg_deploy.units import UnitName, iter_unit_entries, registrar_from_config
from dkg_deploy.utils import (
    _load_yaml,
    check_plugins,
    get_contract_container,
    validate_config,
)


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        return method(*args, sender=self._account)


class Deployer(Transactor):
    """
    Deploys and configures the units of a units file through an ape account.

    `deploy` and `update_parameters` are the actions handed to the
    dependency sequencer; `handles` is shared with it so that `$Unit`
    variables resolve to the addresses of units executed earlier in the run.
    """

    class Invalid(Exception):
        """Raised when the constructor parameters are invalid"""

    def __init__(
        self,
        config: typing.Dict,
        path: Path,
        verify: bool,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
    ):
        super().__init__(account, autosign)

        check_plugins(verify=verify)
        self.path = path
        self.config = config
        self.ledger_filepath = validate_config(config=self.config)
        self.handles = OrderedDict()
        self.contract_types = OrderedDict(
            (unit_name, unit_data.get(CONTRACT_TYPE_KEY, unit_name))
            for unit_name, unit_data in iter_unit_entries(config)
        )
        self.constructor_parameters = ConstructorParameters.from_config(
            config, handles=self.handles, deployer=self._deployer_address
        )
        self.contract_parameters = ContractParameters.from_config(
            config, handles=self.handles, deployer=self._deployer_address
        )
        self.parameter_updater = ParameterUpdater(
            transactor=self, parameters=self.contract_parameters
        )

        self.verify = verify
        self._print_deployment_info()

        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Deployer":
        config = _load_yaml(filepath)
        return cls(config=config, path=filepath, *args, **kwargs)

    def _deployer_address(self) -> str:
        return self.get_account().address

    def _get_kwargs(self) -> typing.Dict[str, Any]:
        """Returns the deployment kwargs."""
        return {"publish": self.verify}

    def get_container(self, unit_name: UnitName) -> ContractContainer:
        return get_contract_container(self.contract_types[unit_name])

    def deploy(self, unit_name: UnitName) -> ContractInstance:
        container = self.get_container(unit_name)
        abi_inputs = container.constructor.abi.inputs
        resolved_params = self.constructor_parameters.resolve(unit_name)
        for abi_input, name in zip(abi_inputs, resolved_params):
            resolved_params[name] = coerce_value(resolved_params[name], abi_input.type)
        self._validate_constructor_abi_inputs(
            unit_name=unit_name,
            abi_inputs=abi_inputs,
            resolved_parameters=resolved_params,
        )

        if not self._autosign:
            _confirm_deployment(unit_name, resolved_params)
        deployment_params = [container, *resolved_params.values()]
        kwargs = self._get_kwargs()

        instance = self.get_account().deploy(*deployment_params, **kwargs)
        print(f"(i) {unit_name} deployed at {instance.address}")
        return instance

    def update_parameters(self, unit_name: UnitName, handle: ContractInstance) -> None:
        self.parameter_updater(unit_name, handle)

    def load_handle(self, entry: LedgerEntry) -> ContractInstance:
        """Rebuilds the contract instance of a unit recorded in the ledger."""
        return self.get_container(entry.name).at(entry.address)

    def ledger(self) -> DeploymentLedger:
        # local networks may not match the configured chain id; record what is connected
        chain_id = networks.provider.network.chain_id
        return DeploymentLedger(
            filepath=self.ledger_filepath, chain_id=chain_id, loader=self.load_handle
        )

    def sequencer(self) -> DependencySequencer:
        return DependencySequencer(
            units=registrar_from_config(self.config),
            deploy=self.deploy,
            update_parameters=self.update_parameters,
            ledger=self.ledger(),
            handles=self.handles,
        )

    def run(self, tags: typing.Optional[List[str]] = None) -> Dict[UnitName, ContractInstance]:
        """Deploys and configures the selected units, in dependency order."""
        sequencer = self.sequencer()
        plan = sequencer.plan(tags)
        if not self._autosign:
            _confirm_plan([unit.name for unit in plan])
        deployments = sequencer.run(tags)
        self.finalize(deployments)
        return deployments

    def finalize(self, deployments: Dict[UnitName, ContractInstance]) -> None:
        print(f"\n(i) Ledger written to {self.ledger_filepath}!")
        for unit_name, instance in deployments.items():
            print(f"\t{unit_name}: {instance.address}")

    @classmethod
    def _validate_constructor_abi_inputs(
        cls,
        unit_name: UnitName,
        abi_inputs: List[Any],
        resolved_parameters: OrderedDict,
    ) -> None:
        """Validates the constructor parameters against the constructor ABI."""
        if len(resolved_parameters) != len(abi_inputs):
            raise cls.Invalid(
                f"Constructor parameters length mismatch - "
                f"{unit_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
            )

        codex = enumerate(zip(abi_inputs, resolved_parameters.items()), start=0)
        for position, (abi_input, resolved_input) in codex:
            name, value = resolved_input
            if abi_input.name != name:
                raise cls.Invalid(
                    f"{unit_name} constructor parameter '{name}' at position {position} does not "
                    f"match the expected ABI name '{abi_input.name}'."
                )

            if not w3.is_encodable(abi_input.type, value):
                raise cls.Invalid(
                    f"Constructor param name '{name}' at position {position} has a value '{value}' "
                    f"whose type does not match expected ABI type '{abi_input.type}'"
                )

    def _print_deployment_info(self):
        print(
            f"Account: {self.get_account().address}",
            f"Config: {self.path}",
            f"Ledger: {self.ledger_filepath}",
            f"Verify: {self.verify}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
