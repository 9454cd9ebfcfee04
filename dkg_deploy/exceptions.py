from typing import Sequence

from dkg_deploy.constants import CONFIGURE_STAGE, DEPLOY_STAGE


class DeploymentError(Exception):
    """Base class for all unit registration, sequencing and execution errors."""


class UnitConfigError(DeploymentError, ValueError):
    """Raised when a units file is malformed."""


class DuplicateUnit(DeploymentError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unit '{name}' is already registered.")


class UnknownDependency(DeploymentError):
    def __init__(self, unit: str, dependency: str):
        self.unit = unit
        self.dependency = dependency
        super().__init__(f"Unit '{unit}' depends on '{dependency}', which is not registered.")


class CyclicDependency(DeploymentError):
    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency detected: {' -> '.join(self.cycle)}")


class UnknownTag(DeploymentError):
    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"No registered unit is tagged '{tag}'.")


class ExecutionFailed(DeploymentError):
    """Terminates a run; identifies the unit and the stage that failed."""

    def __init__(self, unit: str, cause: Exception, stage: str):
        self.unit = unit
        self.cause = cause
        self.stage = stage
        super().__init__(f"{stage.capitalize()} stage failed for unit '{unit}': {cause}")


class DeployActionFailed(ExecutionFailed):
    def __init__(self, unit: str, cause: Exception):
        super().__init__(unit=unit, cause=cause, stage=DEPLOY_STAGE)


class ParameterUpdateFailed(ExecutionFailed):
    def __init__(self, unit: str, cause: Exception):
        super().__init__(unit=unit, cause=cause, stage=CONFIGURE_STAGE)
