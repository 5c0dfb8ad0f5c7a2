from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np

from .attributes import BaseAttribute, BoolAttribute, FloatAttribute, StringAttribute
from .errors import KeyMismatchError

if TYPE_CHECKING:
    from .config import GenomeConfig


class BaseGene:
    """Shared behaviour for genes whose fields are driven by attribute policies.

    Subclasses are dataclasses with a ``key`` field followed by one field per
    entry of ``ATTRIBUTES``.
    """

    ATTRIBUTES: ClassVar[tuple[BaseAttribute, ...]] = ()
    key: Any

    @classmethod
    def validate_attributes(cls, cfg: GenomeConfig) -> None:
        for attr in cls.ATTRIBUTES:
            attr.validate(getattr(cfg, attr.name))

    @classmethod
    def create(cls, key: Any, rng: np.random.Generator, cfg: GenomeConfig):
        gene = cls(key)
        gene.init_attributes(rng, cfg)
        return gene

    def init_attributes(self, rng: np.random.Generator, cfg: GenomeConfig) -> None:
        for attr in self.ATTRIBUTES:
            setattr(self, attr.name, attr.init_value(rng, getattr(cfg, attr.name)))

    def mutate(self, rng: np.random.Generator, cfg: GenomeConfig) -> None:
        for attr in self.ATTRIBUTES:
            value = getattr(self, attr.name)
            setattr(self, attr.name, attr.mutate_value(value, rng, getattr(cfg, attr.name)))

    def copy(self):
        return dataclasses.replace(self)

    def crossover(self, other: BaseGene, rng: np.random.Generator):
        if self.key != other.key:
            raise KeyMismatchError(f"Cannot crossover genes with different keys: {self.key} and {other.key}")

        child = self.copy()
        for attr in self.ATTRIBUTES:
            source = self if rng.random() > 0.5 else other
            setattr(child, attr.name, getattr(source, attr.name))
        return child

    def distance(self, other: BaseGene, cfg: GenomeConfig) -> float:
        raise NotImplementedError

    def __str__(self) -> str:
        parts = [f"key={self.key!r}"] + [f"{a.name}={getattr(self, a.name)!r}" for a in self.ATTRIBUTES]
        return f"{type(self).__name__}({', '.join(parts)})"


@dataclass
class NodeGene(BaseGene):
    ATTRIBUTES: ClassVar[tuple[BaseAttribute, ...]] = (
        FloatAttribute("bias"),
        FloatAttribute("response"),
        StringAttribute("activation"),
        StringAttribute("aggregation"),
    )

    key: int
    bias: float = 0.0
    response: float = 1.0
    activation: str = "sigmoid"
    aggregation: str = "sum"

    def distance(self, other: NodeGene, cfg: GenomeConfig) -> float:
        d = abs(self.bias - other.bias) + abs(self.response - other.response)
        if self.activation != other.activation:
            d += 1.0
        if self.aggregation != other.aggregation:
            d += 1.0
        return d * cfg.compatibility_weight_coefficient


@dataclass
class ConnectionGene(BaseGene):
    ATTRIBUTES: ClassVar[tuple[BaseAttribute, ...]] = (
        FloatAttribute("weight"),
        BoolAttribute("enabled"),
    )

    key: tuple[int, int]
    weight: float = 0.0
    enabled: bool = True

    @property
    def src(self) -> int:
        return self.key[0]

    @property
    def dst(self) -> int:
        return self.key[1]

    def distance(self, other: ConnectionGene, cfg: GenomeConfig) -> float:
        d = abs(self.weight - other.weight)
        if self.enabled != other.enabled:
            d += 1.0
        return d * cfg.compatibility_weight_coefficient
