from __future__ import annotations

import numpy as np
import pytest

from jax_neat.attributes import FloatAttributeConfig, StringAttributeConfig
from jax_neat.config import EvolutionConfig, GenomeConfig, SpeciesConfig, StagnationConfig


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(0)


@pytest.fixture
def make_genome_config():
    def _make(**overrides) -> GenomeConfig:
        params = dict(num_inputs=2, num_outputs=1, initial_connection="full_direct")
        params.update(overrides)
        return GenomeConfig(**params)

    return _make


@pytest.fixture
def genome_config(make_genome_config) -> GenomeConfig:
    return make_genome_config()


@pytest.fixture
def identity_genome_config(make_genome_config) -> GenomeConfig:
    """Linear nodes so phenotype outputs can be checked by hand."""
    return make_genome_config(
        activation=StringAttributeConfig(default="identity", options=("identity",)),
        bias=FloatAttributeConfig(init_mean=0.0, init_stdev=0.0, mutate_rate=0.0, replace_rate=0.0),
    )


@pytest.fixture
def make_evolution_config(make_genome_config):
    def _make(pop_size: int = 20, genome: GenomeConfig | None = None, **overrides) -> EvolutionConfig:
        params = dict(
            genome=genome if genome is not None else make_genome_config(),
            pop_size=pop_size,
            fitness_threshold=1e9,
            seed=0,
            species=SpeciesConfig(compatibility_threshold=3.0),
            stagnation=StagnationConfig(max_stagnation=20),
        )
        params.update(overrides)
        return EvolutionConfig(**params)

    return _make
