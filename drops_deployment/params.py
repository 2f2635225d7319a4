import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, Mapping

from drops_deployment.constants import DEFAULT_PARAMS_FILEPATH
from drops_deployment.utils import _load_yaml

CONTRACT_ARTIFACT_KEY = "artifact"
CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"


class VariableContext:
    def __init__(
        self,
        contract_name: str,
        preceding_contract_names: List[str] = None,
        plan_contract_names: List[str] = None,
    ):
        self.contract_name = contract_name
        self.preceding_contract_names = preceding_contract_names or list()
        self.plan_contract_names = plan_contract_names or list()

    def is_contract_name(self, name: str) -> bool:
        return (
            name == self.contract_name
            or name in self.preceding_contract_names
            or name in self.plan_contract_names
        )


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, config: Mapping[str, str], addresses: Mapping[str, str]) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class ConfigValue(Variable):
    """A deployment configuration value, e.g. $ZORA_ERC_721_TRANSFER_HELPER_ADDRESS"""

    def __init__(self, key: str):
        self.key = key

    @classmethod
    def is_config_value(cls, value: str) -> bool:
        return value.isupper()

    def resolve(self, config: Mapping[str, str], addresses: Mapping[str, str]) -> Any:
        return config[self.key]

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.key}"


class ContractAddress(Variable):
    """The deployed address of a contract from an earlier step, e.g. $dropContract"""

    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name == context.contract_name:
            raise DeploymentPlan.Invalid(
                f"{context.contract_name} cannot take its own address as a constructor parameter."
            )
        if contract_name not in context.preceding_contract_names:
            raise DeploymentPlan.Invalid(
                f"{context.contract_name} references ${contract_name}, "
                f"which is not deployed before it."
            )
        self.contract_name = contract_name

    def resolve(self, config: Mapping[str, str], addresses: Mapping[str, str]) -> Any:
        return addresses[self.contract_name]

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.contract_name}"


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if not variable:
        raise DeploymentPlan.Invalid(f"Empty variable in {context.contract_name} parameters.")
    # contract names win over the uppercase config rule
    if not context.is_contract_name(variable) and ConfigValue.is_config_value(variable):
        return ConfigValue(variable)
    return ContractAddress(variable, context)


def _process_raw_value(value: Any, context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, context)

    return value


def _process_raw_values(values: Mapping, context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, context)

    return processed_parameters


def _resolve_param(value: Any, config: Mapping[str, str], addresses: Mapping[str, str]) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, config, addresses) for v in value]

    if isinstance(value, Variable):
        return value.resolve(config, addresses)

    return value  # literally a value


def _variables(value: Any) -> typing.Iterator[Variable]:
    if isinstance(value, list):
        for item in value:
            yield from _variables(item)
    elif isinstance(value, Variable):
        yield value


class ContractSpec(typing.NamedTuple):
    """A contract ready for deployment: artifact plus resolved constructor parameters."""

    name: str
    artifact: str
    constructor: OrderedDict

    @property
    def args(self) -> List[Any]:
        """Constructor arguments in declaration order."""
        return list(self.constructor.values())


class DeploymentStep:
    """A contract deployment whose constructor parameters may still reference variables."""

    def __init__(self, name: str, artifact: str, constructor: OrderedDict = None):
        self.name = name
        self.artifact = artifact
        self.constructor = constructor or OrderedDict()

    def _variables(self) -> typing.Iterator[Variable]:
        for value in self.constructor.values():
            yield from _variables(value)

    @property
    def config_keys(self) -> List[str]:
        return [v.key for v in self._variables() if isinstance(v, ConfigValue)]

    @property
    def dependencies(self) -> List[str]:
        return [v.contract_name for v in self._variables() if isinstance(v, ContractAddress)]

    def resolve(self, config: Mapping[str, str], addresses: Mapping[str, str]) -> ContractSpec:
        constructor = OrderedDict()
        for name, value in self.constructor.items():
            constructor[name] = _resolve_param(value, config, addresses)
        return ContractSpec(name=self.name, artifact=self.artifact, constructor=constructor)

    def __repr__(self) -> str:
        return f"DeploymentStep({self.name!r}, {self.artifact!r})"


class DeploymentPlan:
    """An ordered sequence of contract deployments."""

    class Invalid(ValueError):
        """Raised when the constructor parameters file describes an invalid plan"""

    def __init__(self, steps: List[DeploymentStep]):
        if not steps:
            raise self.Invalid("Deployment plan has no contracts.")
        names = [step.name for step in steps]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise self.Invalid(f"Duplicate contract names in deployment plan: {duplicates}")
        self.steps = list(steps)

    @classmethod
    def from_config(cls, config: typing.Dict) -> "DeploymentPlan":
        """Builds a plan from a parsed constructor parameters file."""
        contracts = config.get("contracts") if isinstance(config, dict) else None
        if not contracts:
            raise cls.Invalid("Constructor parameters file missing 'contracts' field.")

        entries = list()
        for contract_info in contracts:
            if not isinstance(contract_info, dict) or len(contract_info) != 1:
                raise cls.Invalid("Malformed constructor parameters YAML.")

            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            if not isinstance(contract_data, dict):
                raise cls.Invalid(f"Malformed constructor parameter config for {contract_name}.")
            entries.append((contract_name, contract_data))

        plan_contract_names = [contract_name for contract_name, _ in entries]
        steps = list()
        for contract_name, contract_data in entries:
            steps.append(
                cls._process_step(
                    contract_name=contract_name,
                    contract_data=contract_data,
                    preceding_contract_names=[step.name for step in steps],
                    plan_contract_names=plan_contract_names,
                )
            )
        return cls(steps=steps)

    @classmethod
    def from_yaml(cls, filepath: Path = DEFAULT_PARAMS_FILEPATH) -> "DeploymentPlan":
        print(f"Processing contract constructor parameters from {filepath}...")
        return cls.from_config(_load_yaml(filepath))

    @classmethod
    def _process_step(
        cls,
        contract_name: str,
        contract_data: typing.Dict,
        preceding_contract_names: List[str],
        plan_contract_names: List[str] = None,
    ) -> DeploymentStep:
        artifact = contract_data.get(CONTRACT_ARTIFACT_KEY)
        if not artifact:
            raise cls.Invalid(f"'{CONTRACT_ARTIFACT_KEY}' is not set for {contract_name}.")

        raw_parameters = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or OrderedDict()
        if not isinstance(raw_parameters, dict):
            raise cls.Invalid(f"Malformed constructor parameter config for {contract_name}.")

        context = VariableContext(
            contract_name=contract_name,
            preceding_contract_names=preceding_contract_names,
            plan_contract_names=plan_contract_names,
        )
        constructor = _process_raw_values(raw_parameters, context)
        return DeploymentStep(name=contract_name, artifact=artifact, constructor=constructor)

    @property
    def names(self) -> List[str]:
        return [step.name for step in self.steps]

    @property
    def required_config_keys(self) -> List[str]:
        """Configuration keys referenced anywhere in the plan, in first-use order."""
        keys = list()
        for step in self.steps:
            for key in step.config_keys:
                if key not in keys:
                    keys.append(key)
        return keys

    def __iter__(self) -> typing.Iterator[DeploymentStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)
