import typing
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, MutableMapping, Optional, Union

from dkg_deploy.exceptions import (
    CyclicDependency,
    DeployActionFailed,
    ParameterUpdateFailed,
    UnknownDependency,
    UnknownTag,
)
from dkg_deploy.units import DeploymentRegistrar, DeploymentUnit, UnitName, UnitState

DeployAction = Callable[[UnitName], Any]
ParameterUpdateAction = Callable[[UnitName, Any], None]


def _check_dependencies(units_by_name: typing.Mapping[UnitName, DeploymentUnit]) -> None:
    """Fails on the first dependency name that is not registered."""
    for unit in units_by_name.values():
        for dependency in unit.dependencies:
            if dependency not in units_by_name:
                raise UnknownDependency(unit=unit.name, dependency=dependency)


def resolve_order(units: Iterable[DeploymentUnit]) -> List[DeploymentUnit]:
    """
    Orders units so that each one comes after all of its dependencies.

    Depth-first with visiting/visited marks. Units are visited in the order
    given and dependencies in their declared order, so the result is stable
    for a given registry.
    """
    units_by_name = OrderedDict((unit.name, unit) for unit in units)
    _check_dependencies(units_by_name)

    order = list()
    visited = set()

    for root in units_by_name:
        if root in visited:
            continue

        # current depth-first path, each name with its remaining dependencies
        stack = [(root, iter(units_by_name[root].dependencies))]
        visiting = {root}
        while stack:
            name, dependencies = stack[-1]
            for dependency in dependencies:
                if dependency in visited:
                    continue
                if dependency in visiting:
                    path = [entry[0] for entry in stack]
                    raise CyclicDependency(path[path.index(dependency) :] + [dependency])
                visiting.add(dependency)
                stack.append((dependency, iter(units_by_name[dependency].dependencies)))
                break
            else:
                stack.pop()
                visiting.discard(name)
                visited.add(name)
                order.append(units_by_name[name])

    return order


def select_units(
    order: List[DeploymentUnit], tags: Optional[Iterable[str]] = None
) -> List[DeploymentUnit]:
    """
    Keeps the units of an ordered registry that carry any of the tags,
    together with everything they transitively depend on. No tags keeps all.
    """
    tags = list(tags or ())
    if not tags:
        return list(order)

    units_by_name = {unit.name: unit for unit in order}
    selected = set()

    for tag in tags:
        tagged = [unit.name for unit in order if tag in unit.tags]
        if not tagged:
            raise UnknownTag(tag)

        pending = list(tagged)
        while pending:
            name = pending.pop()
            if name in selected:
                continue
            selected.add(name)
            pending.extend(units_by_name[name].dependencies)

    return [unit for unit in order if unit.name in selected]


class DependencySequencer:
    """
    Executes registered units in dependency order: deploy, then update parameters.

    A unit already present in the ledger is not deployed again; its stored
    handle is reused and its parameters are still brought up to date.
    The first failure stops the run.
    """

    def __init__(
        self,
        units: Union[DeploymentRegistrar, Iterable[DeploymentUnit]],
        deploy: DeployAction,
        update_parameters: ParameterUpdateAction,
        ledger=None,
        handles: Optional[MutableMapping[UnitName, Any]] = None,
    ):
        if not isinstance(units, DeploymentRegistrar):
            units = DeploymentRegistrar(units)
        self.registrar = units
        self._deploy = deploy
        self._update_parameters = update_parameters
        self.ledger = ledger
        self.handles = handles if handles is not None else OrderedDict()
        self._states = OrderedDict((name, UnitState.REGISTERED) for name in units.names)
        self._order = None

    @property
    def order(self) -> List[DeploymentUnit]:
        """Execution order of the whole registry."""
        if self._order is None:
            self._order = resolve_order(self.registrar)
        return list(self._order)

    @property
    def states(self) -> Dict[UnitName, UnitState]:
        return dict(self._states)

    def state(self, name: UnitName) -> UnitState:
        return self._states.get(name, UnitState.UNREGISTERED)

    def plan(self, tags: Optional[Iterable[str]] = None) -> List[DeploymentUnit]:
        """
        Returns the units to execute, in order.

        With tags, only units carrying at least one of them are selected,
        together with everything they transitively depend on.
        """
        return select_units(self.order, tags)

    def run(self, tags: Optional[Iterable[str]] = None) -> Dict[UnitName, Any]:
        """Executes the plan for the given tags and returns the handle of every executed unit."""
        plan = self.plan(tags)
        print(f"\n(i) Executing {len(plan)} unit(s): {', '.join(unit.name for unit in plan)}")
        for unit in plan:
            if self._states[unit.name] is UnitState.DONE:
                continue
            self._execute(unit)
        return OrderedDict((unit.name, self.handles[unit.name]) for unit in plan)

    def _lookup(self, name: UnitName) -> Any:
        if self.ledger is None:
            return None
        return self.ledger.lookup(name)

    def _execute(self, unit: DeploymentUnit) -> None:
        self._states[unit.name] = UnitState.EXECUTING

        try:
            handle = self._lookup(unit.name)
            if handle is not None:
                print(f"\n(i) {unit.name} found in ledger; skipping deployment.")
            else:
                handle = self._deploy(unit.name)
                if self.ledger is not None:
                    self.ledger.record(unit.name, handle)
        except Exception as e:
            self._states[unit.name] = UnitState.FAILED
            raise DeployActionFailed(unit=unit.name, cause=e) from e

        self.handles[unit.name] = handle

        try:
            self._update_parameters(unit.name, handle)
        except Exception as e:
            self._states[unit.name] = UnitState.FAILED
            raise ParameterUpdateFailed(unit=unit.name, cause=e) from e

        self._states[unit.name] = UnitState.DONE
