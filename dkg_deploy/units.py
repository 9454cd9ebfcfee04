import typing
from collections import OrderedDict
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from dkg_deploy.constants import DEPENDENCIES_KEY, TAGS_KEY, UNITS_KEY
from dkg_deploy.exceptions import DuplicateUnit, UnitConfigError

UnitName = str


class UnitState(Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


class DeploymentUnit(NamedTuple):
    """A named deployable artifact, its selection tags and its prerequisites."""

    name: UnitName
    tags: FrozenSet[str] = frozenset()
    dependencies: Tuple[UnitName, ...] = ()


class DeploymentRegistrar:
    """
    Collects deployment units by name, in registration order.
    Registration is the only side effect; ordering is the sequencer's job.
    """

    def __init__(self, units: Optional[Iterable[DeploymentUnit]] = None):
        self._units = OrderedDict()
        for unit in units or ():
            self.register(unit.name, unit.tags, unit.dependencies)

    def register(
        self,
        name: UnitName,
        tags: Iterable[str] = (),
        dependencies: Iterable[UnitName] = (),
    ) -> DeploymentUnit:
        if name in self._units:
            raise DuplicateUnit(name)
        unit = DeploymentUnit(name=name, tags=frozenset(tags), dependencies=tuple(dependencies))
        self._units[name] = unit
        return unit

    def get(self, name: UnitName) -> DeploymentUnit:
        return self._units[name]

    @property
    def names(self) -> List[UnitName]:
        return list(self._units)

    @property
    def units(self) -> List[DeploymentUnit]:
        return list(self._units.values())

    def __contains__(self, name: UnitName) -> bool:
        return name in self._units

    def __iter__(self) -> Iterator[DeploymentUnit]:
        return iter(self._units.values())

    def __len__(self) -> int:
        return len(self._units)


def _string_list(value: typing.Any, key: str, unit_name: UnitName) -> List[str]:
    if value is None:
        return list()
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise UnitConfigError(f"Malformed '{key}' for unit {unit_name}; expected a list of names.")
    return list(value)


def iter_unit_entries(config: typing.Dict) -> Iterator[Tuple[UnitName, typing.Dict]]:
    """Yields (name, data) for every entry of the units list, bare names included."""
    entries = config.get(UNITS_KEY)
    if not entries:
        raise UnitConfigError(f"Units file missing '{UNITS_KEY}' field.")

    for unit_info in entries:
        if isinstance(unit_info, str):
            yield unit_info, dict()
        elif isinstance(unit_info, dict):
            if len(unit_info) != 1:
                raise UnitConfigError("Malformed units YAML; one unit per list entry.")
            unit_name = list(unit_info.keys())[0]  # only one entry
            unit_data = unit_info[unit_name] or dict()
            if not isinstance(unit_data, dict):
                raise UnitConfigError(f"Malformed unit config for {unit_name}.")
            yield unit_name, unit_data
        else:
            raise UnitConfigError("Malformed units YAML.")


def get_unit_names(config: typing.Dict) -> List[UnitName]:
    return [name for name, _ in iter_unit_entries(config)]


def registrar_from_config(config: typing.Dict) -> DeploymentRegistrar:
    """Registers every unit declared in a parsed units file."""
    registrar = DeploymentRegistrar()
    for unit_name, unit_data in iter_unit_entries(config):
        registrar.register(
            name=unit_name,
            tags=_string_list(unit_data.get(TAGS_KEY), TAGS_KEY, unit_name),
            dependencies=_string_list(
                unit_data.get(DEPENDENCIES_KEY), DEPENDENCIES_KEY, unit_name
            ),
        )
    return registrar
