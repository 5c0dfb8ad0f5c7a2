from __future__ import annotations

import numpy as np
import pytest

from jax_neat.config import GenomeConfig
from jax_neat.genes import ConnectionGene, NodeGene
from jax_neat.genome import Genome, create_genome
from jax_neat.innovation import NodeKeyIndexer
from jax_neat.phenotype import FeedForwardNetwork


def _genome(nodes, connections) -> Genome:
    return Genome(
        key=1,
        nodes={n.key: n for n in nodes},
        connections={c.key: c for c in connections},
    )


def test_linear_output(identity_genome_config):
    genome = _genome(
        [NodeGene(0, bias=0.5, activation="identity")],
        [ConnectionGene((-1, 0), weight=2.0), ConnectionGene((-2, 0), weight=-1.0)],
    )
    net = FeedForwardNetwork.create(genome, identity_genome_config)
    out = net.activate_numpy([1.0, 3.0])
    assert out.shape == (1,)
    assert out[0] == pytest.approx(-0.5, abs=1e-5)


def test_batched_inputs(identity_genome_config):
    genome = _genome(
        [NodeGene(0, bias=0.5, activation="identity")],
        [ConnectionGene((-1, 0), weight=2.0), ConnectionGene((-2, 0), weight=-1.0)],
    )
    net = genome.to_phenotype(identity_genome_config)
    batch = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
    out = net.activate_numpy(batch)
    assert out.shape == (4, 1)
    np.testing.assert_allclose(out[:, 0], [0.5, 2.5, -0.5, 1.5], atol=1e-5)


def test_hidden_nodes_are_evaluated_first(identity_genome_config):
    genome = _genome(
        [NodeGene(0, bias=0.0, activation="identity"), NodeGene(1, bias=1.0, activation="identity")],
        [ConnectionGene((-1, 1), weight=2.0), ConnectionGene((1, 0), weight=3.0)],
    )
    net = FeedForwardNetwork.create(genome, identity_genome_config)
    assert [ev.key for ev in net.node_evals] == [1, 0]
    assert net.activate_numpy([1.0, 0.0])[0] == pytest.approx(9.0, abs=1e-5)


def test_disabled_connections_are_ignored(identity_genome_config):
    genome = _genome(
        [NodeGene(0, bias=0.0, activation="identity")],
        [ConnectionGene((-1, 0), weight=1.0), ConnectionGene((-2, 0), weight=5.0, enabled=False)],
    )
    net = FeedForwardNetwork.create(genome, identity_genome_config)
    assert net.activate_numpy([2.0, 10.0])[0] == pytest.approx(2.0, abs=1e-5)


def test_unconnected_output_uses_bias_only():
    genome = _genome(
        [NodeGene(0, bias=0.0, activation="sigmoid"), NodeGene(1, bias=0.25, activation="identity")],
        [],
    )
    cfg = GenomeConfig(num_inputs=2, num_outputs=2)
    net = FeedForwardNetwork.create(genome, cfg)
    np.testing.assert_allclose(net.activate_numpy([1.0, 1.0]), [0.5, 0.25], atol=1e-6)


def test_wrong_input_size_raises(identity_genome_config):
    genome = _genome([NodeGene(0, activation="identity")], [])
    net = FeedForwardNetwork.create(genome, identity_genome_config)
    with pytest.raises(ValueError):
        net.activate([1.0, 2.0, 3.0])


def test_random_genomes_compile_and_run(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=3, num_outputs=2, num_hidden=1)
    indexer = NodeKeyIndexer(next_node_key=3)
    for key in range(5):
        genome = create_genome(key, rng, cfg)
        for _ in range(5):
            genome.mutate(rng, cfg, indexer)
        out = genome.to_phenotype(cfg).activate_numpy(np.ones((2, 3)))
        assert out.shape == (2, 2)
        assert np.all(np.isfinite(out))
