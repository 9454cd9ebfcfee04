import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Callable, List, Mapping, Optional

from ape.utils import ZERO_ADDRESS
from eth_utils import is_address, to_checksum_address

from dkg_deploy.constants import CONSTRUCTOR_KEY, DEPENDENCIES_KEY, PARAMETERS_KEY
from dkg_deploy.exceptions import UnitConfigError
from dkg_deploy.units import UnitName, iter_unit_entries


class VariableContext:
    def __init__(
        self,
        unit_names: List[UnitName],
        unit_name: UnitName,
        dependencies: Optional[List[UnitName]] = None,
        constants: typing.Dict[str, Any] = None,
        handles: Optional[Mapping[UnitName, Any]] = None,
        deployer: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.unit_names = unit_names or list()
        self.unit_name = unit_name
        self.dependencies = dependencies or list()
        self.constants = constants or dict()
        self.handles = handles if handles is not None else dict()
        self.deployer = deployer


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.deployer = context.deployer

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        address = self.deployer() if self.deployer else None
        if address is None:
            return ZERO_ADDRESS
        return address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise UnitConfigError(f"Constant '{constant_name}' not found in units file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a units file constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


class UnitAddress(Variable):
    def __init__(self, unit_name: str, context: VariableContext):
        if unit_name not in context.unit_names:
            raise UnitConfigError(f"Unit name {unit_name} not found")
        if unit_name not in context.dependencies:
            raise UnitConfigError(
                f"{context.unit_name} references ${unit_name} but does not depend on it."
            )

        self.unit_name = unit_name
        self.requester = context.unit_name
        self.handles = context.handles

    def resolve(self) -> Any:
        """Resolves the address of an executed unit."""
        try:
            handle = self.handles[self.unit_name]
        except KeyError:
            raise ValueError(
                f"{self.unit_name} has no deployment yet; cannot resolve it for {self.requester}."
            )
        return getattr(handle, "address", handle)


def _normalize(value: Any) -> Any:
    """Canonical form used both for comparison with on-chain values and for sending."""
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    if isinstance(value, str) and is_address(value):
        return to_checksum_address(value)
    return value


def coerce_value(value: Any, abi_type: Optional[str]) -> Any:
    """
    Converts decimal strings to integers for integer ABI types,
    including arrays of them. Any other value is returned as is.
    """
    if not abi_type:
        return value
    if isinstance(value, list):
        item_type = abi_type[: abi_type.rfind("[")] if abi_type.endswith("]") else abi_type
        return [coerce_value(v, item_type) for v in value]
    if isinstance(value, str) and abi_type.startswith(("int", "uint")) and value.isdigit():
        return int(value)
    return value


def _setter_input_type(setter: Any) -> Optional[str]:
    """ABI type of a single-argument setter, when the handle exposes its ABIs."""
    for abi in getattr(setter, "abis", None) or ():
        if len(abi.inputs) == 1:
            return abi.inputs[0].type
    return None


def _resolve_param(value: Any) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v) for v in value]

    if isinstance(value, Variable):
        return value.resolve()

    return value  # literally a value


def _resolve_params(parameters: OrderedDict) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _normalize(_resolve_param(value))

    return resolved_parameters


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable.strip(Variable.VARIABLE_PREFIX)
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return UnitAddress(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: Mapping, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


class UnitValues:
    """Named values declared under one key of every unit in a units file."""

    KEY = None

    def __init__(self, values: OrderedDict):
        self.values = values

    @classmethod
    def from_config(
        cls,
        config: typing.Dict,
        handles: Optional[Mapping[UnitName, Any]] = None,
        deployer: Optional[Callable[[], Optional[str]]] = None,
    ) -> "UnitValues":
        units = list(iter_unit_entries(config))
        unit_names = [name for name, _ in units]
        constants = config.get("constants")

        values = OrderedDict()
        for unit_name, unit_data in units:
            raw_values = unit_data.get(cls.KEY) or OrderedDict()
            if not isinstance(raw_values, dict):
                raise UnitConfigError(f"Malformed '{cls.KEY}' config for {unit_name}.")

            dependencies = unit_data.get(DEPENDENCIES_KEY) or list()
            if isinstance(dependencies, str):
                dependencies = [dependencies]
            context = VariableContext(
                unit_names=unit_names,
                unit_name=unit_name,
                dependencies=dependencies,
                constants=constants,
                handles=handles,
                deployer=deployer,
            )
            values[unit_name] = _process_raw_values(raw_values, context)

        return cls(values=values)

    def resolve(self, unit_name: UnitName) -> OrderedDict:
        """Resolves the values of a single unit; empty if it declares none."""
        return _resolve_params(self.values.get(unit_name, OrderedDict()))


class ConstructorParameters(UnitValues):
    """Constructor arguments, in ABI order, for each unit."""

    KEY = CONSTRUCTOR_KEY


class ContractParameters(UnitValues):
    """Post-deployment parameters for each unit, applied through setters."""

    KEY = PARAMETERS_KEY


def setter_name(parameter: str) -> str:
    return f"set{parameter[0].upper()}{parameter[1:]}"


class ParameterUpdater:
    """
    Brings a deployed contract's parameters to their declared values.

    Each parameter is read through its getter, `<name>()`, and written through
    `set<Name>(value)` only when the on-chain value differs.
    """

    class Invalid(Exception):
        """Raised when a contract cannot be configured as declared"""

    def __init__(self, transactor, parameters: ContractParameters):
        self.transactor = transactor
        self.parameters = parameters

    def __call__(self, unit_name: UnitName, handle: Any) -> List[Any]:
        resolved_params = self.parameters.resolve(unit_name)
        if not resolved_params:
            print(f"\n(i) No parameters to update for {unit_name}")
            return list()

        print(f"\nUpdating parameters for {unit_name}")
        receipts = list()
        for name, value in resolved_params.items():
            getter = getattr(handle, name, None)
            setter = getattr(handle, setter_name(name), None)
            if getter is None or setter is None:
                raise self.Invalid(
                    f"{unit_name} has no '{name}' getter/'{setter_name(name)}' setter pair."
                )

            value = coerce_value(value, _setter_input_type(setter))
            current_value = _normalize(getter())
            if current_value == value:
                print(f"\t{name}={value} (unchanged)")
                continue

            print(f"\t{name}: {current_value} -> {value}")
            receipts.append(self.transactor.transact(setter, value))

        return receipts
