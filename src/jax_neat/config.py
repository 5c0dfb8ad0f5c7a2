from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from .activations import ActivationFunctionSet
from .aggregations import AggregationFunctionSet
from .attributes import (
    FALSE_LITERALS,
    TRUE_LITERALS,
    BoolAttributeConfig,
    FloatAttributeConfig,
    StringAttributeConfig,
)
from .errors import (
    ConfigurationError,
    InvalidActivationFunctionError,
    InvalidAggregationFunctionError,
)
from .genes import ConnectionGene, NodeGene
from .stats import STAT_FUNCTIONS

ALLOWED_CONNECTIVITY = (
    "unconnected",
    "fs_neat_nohidden",
    "fs_neat_hidden",
    "full_nodirect",
    "full_direct",
    "partial_nodirect",
    "partial_direct",
)
CONNECTIVITY_ALIASES = {
    "fs_neat": "fs_neat_nohidden",
    "full": "full_nodirect",
    "partial": "partial_nodirect",
}
FITNESS_CRITERIA = ("max", "min", "mean")


def _check_probability(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be within [0, 1], got {value}")


@dataclass
class GenomeConfig:
    num_inputs: int
    num_outputs: int
    num_hidden: int = 0
    feed_forward: bool = True
    initial_connection: str = "unconnected"
    compatibility_disjoint_coefficient: float = 1.0
    compatibility_weight_coefficient: float = 0.5
    conn_add_prob: float = 0.5
    conn_delete_prob: float = 0.5
    node_add_prob: float = 0.2
    node_delete_prob: float = 0.2
    single_structural_mutation: bool = False
    structural_mutation_surer: str = "default"
    bias: FloatAttributeConfig = field(default_factory=FloatAttributeConfig)
    response: FloatAttributeConfig = field(
        default_factory=lambda: FloatAttributeConfig(
            init_mean=1.0, init_stdev=0.0, replace_rate=0.0, mutate_rate=0.0, mutate_power=0.0
        )
    )
    activation: StringAttributeConfig = field(
        default_factory=lambda: StringAttributeConfig(default="sigmoid", options=("sigmoid",))
    )
    aggregation: StringAttributeConfig = field(
        default_factory=lambda: StringAttributeConfig(default="sum", options=("sum",))
    )
    weight: FloatAttributeConfig = field(default_factory=FloatAttributeConfig)
    enabled: BoolAttributeConfig = field(default_factory=BoolAttributeConfig)
    custom_activations: dict[str, Callable] = field(default_factory=dict, repr=False)
    custom_aggregations: dict[str, Callable] = field(default_factory=dict, repr=False)

    connection_fraction: float | None = field(default=None, init=False)
    input_keys: list[int] = field(default_factory=list, init=False)
    output_keys: list[int] = field(default_factory=list, init=False)
    activation_defs: ActivationFunctionSet = field(init=False, repr=False, compare=False)
    aggregation_defs: AggregationFunctionSet = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.num_inputs < 0 or self.num_outputs < 1 or self.num_hidden < 0:
            raise ConfigurationError(
                "num_inputs and num_hidden must be >= 0 and num_outputs must be >= 1"
            )
        for name in ("conn_add_prob", "conn_delete_prob", "node_add_prob", "node_delete_prob"):
            _check_probability(name, getattr(self, name))
        if self.compatibility_disjoint_coefficient < 0 or self.compatibility_weight_coefficient < 0:
            raise ConfigurationError("compatibility coefficients must be >= 0")

        self._parse_initial_connection()
        self._parse_surer()

        self.input_keys = [-i - 1 for i in range(self.num_inputs)]
        self.output_keys = list(range(self.num_outputs))

        self.activation_defs = ActivationFunctionSet()
        self.aggregation_defs = AggregationFunctionSet()
        for name, func in self.custom_activations.items():
            self.activation_defs.add(name, func)
        for name, func in self.custom_aggregations.items():
            self.aggregation_defs.add(name, func)

        NodeGene.validate_attributes(self)
        ConnectionGene.validate_attributes(self)

        for name in self.activation.options:
            if not self.activation_defs.is_valid(name):
                raise InvalidActivationFunctionError(f"No such activation function: {name!r}")
        for name in self.aggregation.options:
            if not self.aggregation_defs.is_valid(name):
                raise InvalidAggregationFunctionError(f"No such aggregation function: {name!r}")

    def _parse_initial_connection(self) -> None:
        parts = self.initial_connection.split()
        if not parts:
            raise ConfigurationError("initial_connection must not be empty")
        mode = CONNECTIVITY_ALIASES.get(parts[0], parts[0])
        if mode not in ALLOWED_CONNECTIVITY:
            raise ConfigurationError(f"Invalid initial_connection type: {self.initial_connection!r}")

        if mode.startswith("partial"):
            try:
                fraction = float(parts[1])
            except (IndexError, ValueError) as exc:
                raise ConfigurationError(
                    "'partial' connection value must be a number between 0.0 and 1.0"
                ) from exc
            if not 0.0 <= fraction <= 1.0:
                raise ConfigurationError(
                    "'partial' connection value must be a number between 0.0 and 1.0"
                )
            self.connection_fraction = fraction
        elif len(parts) > 1:
            raise ConfigurationError(f"Invalid initial_connection type: {self.initial_connection!r}")
        self.initial_connection = mode

    def _parse_surer(self) -> None:
        surer = str(self.structural_mutation_surer).lower()
        if surer in TRUE_LITERALS:
            self.structural_mutation_surer = "true"
        elif surer in FALSE_LITERALS:
            self.structural_mutation_surer = "false"
        elif surer == "default":
            self.structural_mutation_surer = "default"
        else:
            raise ConfigurationError(
                f"Invalid structural_mutation_surer: {self.structural_mutation_surer!r}"
            )

    def check_structural_mutation_surer(self) -> bool:
        if self.structural_mutation_surer == "true":
            return True
        if self.structural_mutation_surer == "false":
            return False
        return self.single_structural_mutation

    def add_activation(self, name: str, func: Callable) -> None:
        self.activation_defs.add(name, func)

    def add_aggregation(self, name: str, func: Callable) -> None:
        self.aggregation_defs.add(name, func)


@dataclass
class SpeciesConfig:
    compatibility_threshold: float = 3.0

    def __post_init__(self) -> None:
        if self.compatibility_threshold <= 0:
            raise ConfigurationError("compatibility_threshold must be > 0")


@dataclass
class StagnationConfig:
    species_fitness_func: str = "mean"
    max_stagnation: int = 15
    species_elitism: int = 0

    def __post_init__(self) -> None:
        if self.species_fitness_func not in STAT_FUNCTIONS:
            raise ConfigurationError(f"Unexpected species fitness function: {self.species_fitness_func!r}")
        if self.max_stagnation < 1 or self.species_elitism < 0:
            raise ConfigurationError("max_stagnation must be >= 1 and species_elitism >= 0")


@dataclass
class ReproductionConfig:
    elitism: int = 0
    survival_threshold: float = 0.2
    min_species_size: int = 1

    def __post_init__(self) -> None:
        if self.elitism < 0:
            raise ConfigurationError("elitism must be >= 0")
        if not 0.0 < self.survival_threshold <= 1.0:
            raise ConfigurationError("survival_threshold must be within (0, 1]")
        if self.min_species_size < 1:
            raise ConfigurationError("min_species_size must be >= 1")


@dataclass
class EvolutionConfig:
    genome: GenomeConfig
    pop_size: int
    fitness_criterion: str = "max"
    fitness_threshold: float | None = None
    reset_on_extinction: bool = False
    no_fitness_termination: bool = False
    seed: int | None = None
    species: SpeciesConfig = field(default_factory=SpeciesConfig)
    stagnation: StagnationConfig = field(default_factory=StagnationConfig)
    reproduction: ReproductionConfig = field(default_factory=ReproductionConfig)

    def __post_init__(self) -> None:
        if self.pop_size < 1:
            raise ConfigurationError("pop_size must be >= 1")
        if not self.no_fitness_termination:
            if self.fitness_criterion not in FITNESS_CRITERIA:
                raise ConfigurationError(f"Unexpected fitness_criterion: {self.fitness_criterion!r}")
            if self.fitness_threshold is None:
                raise ConfigurationError("fitness_threshold is required unless no_fitness_termination is set")

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "EvolutionConfig":
        """Build a config from flat named parameters such as ``bias_init_mean``."""
        remaining = dict(params)

        genome_kwargs = _take_fields(GenomeConfig, remaining, skip=_NESTED_GENOME_FIELDS)
        defaults = {f.name: f for f in dataclasses.fields(GenomeConfig)}
        for attr in NodeGene.ATTRIBUTES + ConnectionGene.ATTRIBUTES:
            base = defaults[attr.name].default_factory()
            given = {}
            types = {f.name: f.type for f in dataclasses.fields(attr.config_type)}
            for flat_name, field_name in attr.param_names().items():
                if flat_name in remaining:
                    given[field_name] = _coerce(flat_name, remaining.pop(flat_name), types[field_name])
            if given:
                genome_kwargs[attr.name] = dataclasses.replace(base, **given)

        sections = {
            "species": _take_fields(SpeciesConfig, remaining),
            "stagnation": _take_fields(StagnationConfig, remaining),
            "reproduction": _take_fields(ReproductionConfig, remaining),
        }
        top_kwargs = _take_fields(cls, remaining, skip=("genome",) + tuple(sections))

        if remaining:
            raise ConfigurationError(f"Unknown configuration items: {', '.join(sorted(remaining))}")

        return cls(
            genome=GenomeConfig(**genome_kwargs),
            species=SpeciesConfig(**sections["species"]),
            stagnation=StagnationConfig(**sections["stagnation"]),
            reproduction=ReproductionConfig(**sections["reproduction"]),
            **top_kwargs,
        )


_NESTED_GENOME_FIELDS = (
    "bias",
    "response",
    "activation",
    "aggregation",
    "weight",
    "enabled",
    "custom_activations",
    "custom_aggregations",
)


def _take_fields(cls: type, remaining: dict[str, Any], skip: tuple[str, ...] = ()) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if not f.init or f.name in skip:
            continue
        if f.name in remaining:
            kwargs[f.name] = _coerce(f.name, remaining.pop(f.name), f.type)
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            raise ConfigurationError(f"Missing configuration item: {f.name}")
    return kwargs


def _coerce(name: str, value: Any, type_str: str) -> Any:
    optional = "None" in type_str
    if optional and (value is None or str(value).strip().lower() == "none"):
        return None
    try:
        if type_str.startswith("bool"):
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in TRUE_LITERALS:
                return True
            if text in FALSE_LITERALS:
                return False
            raise ValueError(value)
        if type_str.startswith("int"):
            if isinstance(value, bool):
                raise TypeError(value)
            number = float(value)
            if not number.is_integer():
                raise ValueError(value)
            return int(number)
        if type_str.startswith("float"):
            if isinstance(value, bool):
                raise TypeError(value)
            return float(value)
        if type_str.startswith("tuple"):
            if isinstance(value, str):
                return tuple(value.split())
            return tuple(str(v) for v in value)
        if type_str == "str":
            if isinstance(value, bool):
                return str(value).lower()
            if not isinstance(value, str):
                raise TypeError(value)
            return value
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value {value!r} for {name} (expected {type_str})") from exc
    return value
