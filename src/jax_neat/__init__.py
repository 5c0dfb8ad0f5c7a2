"""NEAT neuro-evolution with JAX-evaluated feed-forward phenotypes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import (
    EvolutionConfig,
    GenomeConfig,
    ReproductionConfig,
    SpeciesConfig,
    StagnationConfig,
)
from .errors import (
    CompleteExtinctionError,
    ConfigurationError,
    InvalidFunctionError,
    KeyMismatchError,
    MissingFitnessError,
    NEATError,
)

if TYPE_CHECKING:
    from .evolution import Population

__all__ = [
    "CompleteExtinctionError",
    "ConfigurationError",
    "EvolutionConfig",
    "GenomeConfig",
    "InvalidFunctionError",
    "KeyMismatchError",
    "MissingFitnessError",
    "NEATError",
    "Population",
    "ReproductionConfig",
    "SpeciesConfig",
    "StagnationConfig",
]


def __getattr__(name: str):
    if name == "Population":
        from .evolution import Population as _Population

        return _Population
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
