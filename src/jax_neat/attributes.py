"""Randomised initialise/mutate/validate policies for gene attributes.

A gene kind declares its attributes as a static tuple of policies (see
``genes.py``). Each policy reads its parameters from a small dataclass that
lives on the genome config under the attribute's name, e.g.
``genome_config.bias.mutate_rate``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np

from .errors import ConfigurationError

TRUE_LITERALS = ("1", "on", "yes", "true")
FALSE_LITERALS = ("0", "off", "no", "false")
RANDOM_LITERALS = ("random", "none")


@dataclass
class FloatAttributeConfig:
    init_mean: float = 0.0
    init_stdev: float = 1.0
    init_type: str = "gaussian"
    replace_rate: float = 0.1
    mutate_rate: float = 0.7
    mutate_power: float = 0.5
    min_value: float = -30.0
    max_value: float = 30.0


@dataclass
class IntAttributeConfig:
    init_mean: float = 0.0
    init_stdev: float = 1.0
    init_type: str = "gaussian"
    replace_rate: float = 0.1
    mutate_rate: float = 0.7
    mutate_power: float = 1.0
    min_value: int = -10
    max_value: int = 10


@dataclass
class BoolAttributeConfig:
    default: str = "true"
    mutate_rate: float = 0.01
    rate_to_true_add: float = 0.0
    rate_to_false_add: float = 0.0


@dataclass
class StringAttributeConfig:
    default: str = "random"
    options: tuple[str, ...] = ()
    mutate_rate: float = 0.0


class BaseAttribute:
    config_type: ClassVar[type] = object

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def param_names(self) -> dict[str, str]:
        """Flat parameter name (``bias_init_mean``) -> config field (``init_mean``)."""
        return {f"{self.name}_{f.name}": f.name for f in dataclasses.fields(self.config_type)}

    def check_config(self, cfg: Any) -> None:
        if not isinstance(cfg, self.config_type):
            raise ConfigurationError(
                f"Attribute {self.name!r} expects {self.config_type.__name__}, got {type(cfg).__name__}"
            )

    def init_value(self, rng: np.random.Generator, cfg: Any) -> Any:
        raise NotImplementedError

    def mutate_value(self, value: Any, rng: np.random.Generator, cfg: Any) -> Any:
        raise NotImplementedError

    def validate(self, cfg: Any) -> None:
        self.check_config(cfg)


class FloatAttribute(BaseAttribute):
    config_type = FloatAttributeConfig

    def clamp(self, value: float, cfg: FloatAttributeConfig) -> float:
        return float(max(min(value, cfg.max_value), cfg.min_value))

    def init_value(self, rng: np.random.Generator, cfg: FloatAttributeConfig) -> float:
        init_type = cfg.init_type.lower()
        if "gauss" in init_type or "normal" in init_type:
            return self.clamp(float(rng.normal(cfg.init_mean, cfg.init_stdev)), cfg)
        if "uniform" in init_type:
            lo = self.clamp(cfg.init_mean - 2.0 * cfg.init_stdev, cfg)
            hi = self.clamp(cfg.init_mean + 2.0 * cfg.init_stdev, cfg)
            return self.clamp(float(rng.uniform(lo, hi)), cfg)
        raise ConfigurationError(f"Unknown init_type {cfg.init_type!r} for {self.name}_init_type")

    def mutate_value(self, value: float, rng: np.random.Generator, cfg: FloatAttributeConfig) -> float:
        if rng.random() < cfg.mutate_rate:
            return self.clamp(value + float(rng.normal(0.0, cfg.mutate_power)), cfg)
        if rng.random() < cfg.replace_rate:
            return self.init_value(rng, cfg)
        return value

    def validate(self, cfg: FloatAttributeConfig) -> None:
        super().validate(cfg)
        if cfg.min_value > cfg.max_value:
            raise ConfigurationError(f"Invalid min/max configuration for attribute {self.name}")
        init_type = cfg.init_type.lower()
        if not any(t in init_type for t in ("gauss", "normal", "uniform")):
            raise ConfigurationError(f"Unknown init_type {cfg.init_type!r} for {self.name}_init_type")
        if cfg.init_stdev < 0 or cfg.mutate_power < 0:
            raise ConfigurationError(f"{self.name}_init_stdev and {self.name}_mutate_power must be >= 0")


class IntAttribute(FloatAttribute):
    config_type = IntAttributeConfig

    def clamp(self, value: float, cfg: IntAttributeConfig) -> int:
        return int(max(min(round(value), cfg.max_value), cfg.min_value))

    def init_value(self, rng: np.random.Generator, cfg: IntAttributeConfig) -> int:
        return self.clamp(super().init_value(rng, cfg), cfg)

    def mutate_value(self, value: int, rng: np.random.Generator, cfg: IntAttributeConfig) -> int:
        if rng.random() < cfg.mutate_rate:
            return self.clamp(value + int(round(rng.normal(0.0, cfg.mutate_power))), cfg)
        if rng.random() < cfg.replace_rate:
            return self.init_value(rng, cfg)
        return value


class BoolAttribute(BaseAttribute):
    config_type = BoolAttributeConfig

    def init_value(self, rng: np.random.Generator, cfg: BoolAttributeConfig) -> bool:
        default = str(cfg.default).lower()
        if default in TRUE_LITERALS:
            return True
        if default in FALSE_LITERALS:
            return False
        if default in RANDOM_LITERALS:
            return bool(rng.random() < 0.5)
        raise ConfigurationError(f"Unknown default value {cfg.default!r} for {self.name}")

    def mutate_value(self, value: bool, rng: np.random.Generator, cfg: BoolAttributeConfig) -> bool:
        mutate_rate = cfg.mutate_rate
        if value:
            mutate_rate += cfg.rate_to_false_add
        else:
            mutate_rate += cfg.rate_to_true_add

        if mutate_rate > 0 and rng.random() < mutate_rate:
            # Fresh coin flip; may return the same value.
            return bool(rng.random() < 0.5)
        return value

    def validate(self, cfg: BoolAttributeConfig) -> None:
        super().validate(cfg)
        default = str(cfg.default).lower()
        if default not in TRUE_LITERALS + FALSE_LITERALS + RANDOM_LITERALS:
            raise ConfigurationError(f"Invalid default value {cfg.default!r} for {self.name}")


class StringAttribute(BaseAttribute):
    config_type = StringAttributeConfig

    def _choose(self, rng: np.random.Generator, cfg: StringAttributeConfig) -> str:
        return cfg.options[int(rng.integers(len(cfg.options)))]

    def init_value(self, rng: np.random.Generator, cfg: StringAttributeConfig) -> str:
        if cfg.default.lower() in RANDOM_LITERALS:
            return self._choose(rng, cfg)
        return cfg.default

    def mutate_value(self, value: str, rng: np.random.Generator, cfg: StringAttributeConfig) -> str:
        if rng.random() < cfg.mutate_rate:
            return self._choose(rng, cfg)
        return value

    def validate(self, cfg: StringAttributeConfig) -> None:
        super().validate(cfg)
        if not cfg.options:
            raise ConfigurationError(f"{self.name}_options must not be empty")
        if cfg.default.lower() not in RANDOM_LITERALS and cfg.default not in cfg.options:
            raise ConfigurationError(f"Invalid initial value {cfg.default!r} for attribute {self.name}")
