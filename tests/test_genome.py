from __future__ import annotations

import pytest

from jax_neat.genes import ConnectionGene, NodeGene
from jax_neat.genome import Genome, compatibility_distance, create_genome, crossover, genome_to_dict
from jax_neat.graphs import creates_cycle
from jax_neat.innovation import NodeKeyIndexer


def _is_acyclic(connections) -> bool:
    seen = []
    for key in connections:
        if creates_cycle(seen, key):
            return False
        seen.append(key)
    return True


def _indexer(cfg) -> NodeKeyIndexer:
    return NodeKeyIndexer(next_node_key=cfg.num_outputs + cfg.num_hidden)


def test_full_direct_connects_inputs_to_outputs(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=3, num_outputs=2, initial_connection="full_direct")
    genome = create_genome(1, rng, cfg)
    assert set(genome.nodes) == {0, 1}
    assert set(genome.connections) == {(i, o) for i in (-1, -2, -3) for o in (0, 1)}


def test_full_connection_with_hidden_nodes(rng, make_genome_config):
    nodirect = create_genome(1, rng, make_genome_config(num_hidden=1, initial_connection="full_nodirect"))
    assert set(nodirect.nodes) == {0, 1}
    assert set(nodirect.connections) == {(-1, 1), (-2, 1), (1, 0)}

    direct = create_genome(2, rng, make_genome_config(num_hidden=1, initial_connection="full_direct"))
    assert set(direct.connections) == {(-1, 1), (-2, 1), (1, 0), (-1, 0), (-2, 0)}


def test_fs_neat_uses_a_single_input(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=4, num_outputs=3, initial_connection="fs_neat")
    genome = create_genome(1, rng, cfg)
    assert len(genome.connections) == 3
    assert len({src for src, _ in genome.connections}) == 1
    assert {dst for _, dst in genome.connections} == {0, 1, 2}


def test_partial_connection_fraction(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=4, num_outputs=2, initial_connection="partial_direct 0.5")
    genome = create_genome(1, rng, cfg)
    assert len(genome.connections) == 4


def test_unconnected(rng, make_genome_config):
    genome = create_genome(1, rng, make_genome_config(initial_connection="unconnected"))
    assert genome.connections == {}
    assert set(genome.nodes) == {0}


def test_distance_to_self_is_zero(rng, make_genome_config):
    cfg = make_genome_config(num_hidden=2)
    for key in range(10):
        genome = create_genome(key, rng, cfg)
        assert genome.distance(genome, cfg) == 0.0


def test_distance_is_symmetric_and_counts_disjoint_genes(make_genome_config):
    cfg = make_genome_config()
    a = Genome(1, nodes={0: NodeGene(0)}, connections={(-1, 0): ConnectionGene((-1, 0), weight=1.0)})
    b = Genome(
        2,
        nodes={0: NodeGene(0), 1: NodeGene(1)},
        connections={
            (-1, 0): ConnectionGene((-1, 0), weight=0.0),
            (-2, 0): ConnectionGene((-2, 0), weight=1.0),
        },
    )
    # nodes: one disjoint over 2 genes; connections: |1 - 0| * 0.5 plus one disjoint over 2 genes.
    expected = 1.0 / 2 + (0.5 + 1.0) / 2
    assert a.distance(b, cfg) == pytest.approx(expected)
    assert compatibility_distance(b, a, cfg) == pytest.approx(expected)


def test_crossover_identical_key_sets(rng, make_genome_config):
    cfg = make_genome_config(num_hidden=1)
    a = create_genome(1, rng, cfg)
    b = create_genome(2, rng, cfg)
    a.fitness, b.fitness = 1.0, 2.0
    child = crossover(rng, a, b, 3)
    assert child.key == 3
    assert set(child.nodes) == set(a.nodes)
    assert set(child.connections) == set(a.connections)


def test_crossover_takes_disjoint_genes_from_fitter_parent(rng, make_genome_config):
    cfg = make_genome_config()
    indexer = _indexer(cfg)
    a = create_genome(1, rng, cfg)
    b = a.clone(2)
    b.mutate_add_node(rng, cfg, indexer)
    a.mutate_delete_connection(rng)

    a.fitness, b.fitness = 0.0, 1.0
    child = crossover(rng, a, b, 3)
    assert set(child.nodes) == set(b.nodes)
    assert set(child.connections) == set(b.connections)

    a.fitness = 5.0
    child = crossover(rng, a, b, 4)
    assert set(child.nodes) == set(a.nodes)
    assert set(child.connections) == set(a.connections)


def test_crossover_treats_missing_fitness_as_worst(rng, make_genome_config):
    cfg = make_genome_config()
    a = create_genome(1, rng, cfg)
    b = create_genome(2, rng, make_genome_config(initial_connection="unconnected"))
    a.fitness = -100.0
    child = crossover(rng, b, a, 3)
    assert set(child.connections) == set(a.connections)


def test_clone_is_deep(rng, genome_config):
    genome = create_genome(1, rng, genome_config)
    clone = genome.clone(7)
    assert clone.key == 7
    next(iter(clone.connections.values())).weight = 99.0
    assert all(c.weight != 99.0 for c in genome.connections.values())


def test_mutate_add_node_splits_an_enabled_connection(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=1)
    genome = create_genome(1, rng, cfg)
    old = genome.connections[(-1, 0)]
    old_weight = old.weight

    indexer = _indexer(cfg)
    genome.mutate_add_node(rng, cfg, indexer)

    assert set(genome.nodes) == {0, 1}
    assert old.enabled is False
    assert genome.connections[(-1, 1)].weight == 1.0
    assert genome.connections[(1, 0)].weight == old_weight
    assert genome.connections[(-1, 1)].enabled and genome.connections[(1, 0)].enabled


def test_mutate_add_node_without_enabled_connections(rng, make_genome_config):
    cfg = make_genome_config(initial_connection="unconnected")
    genome = create_genome(1, rng, cfg)
    genome.mutate_add_node(rng, cfg, _indexer(cfg))
    assert set(genome.nodes) == {0}
    assert genome.connections == {}


def test_same_split_reuses_node_key(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=1)
    indexer = _indexer(cfg)
    a = create_genome(1, rng, cfg)
    b = create_genome(2, rng, cfg)
    a.mutate_add_node(rng, cfg, indexer)
    b.mutate_add_node(rng, cfg, indexer)
    assert set(a.nodes) == set(b.nodes) == {0, 1}
    assert set(a.connections) == set(b.connections)


def test_node_key_indexer_skips_taken_keys():
    indexer = NodeKeyIndexer(next_node_key=1)
    assert indexer.get_split(-1, 0, {0: None}) == 1
    assert indexer.get_split(-1, 0, {0: None, 1: None}) == 2
    assert indexer.get_split(-1, 0, {0: None}) == 1
    assert indexer.new_key({3: None, 4: None}) == 5


def test_mutate_add_connection_keeps_feed_forward_graph_acyclic(rng, make_genome_config):
    cfg = make_genome_config(num_hidden=3, initial_connection="unconnected")
    indexer = _indexer(cfg)
    genome = create_genome(1, rng, cfg)
    for _ in range(200):
        genome.mutate_add_connection(rng, cfg)
        if rng.random() < 0.1:
            genome.mutate_add_node(rng, cfg, indexer)
        assert _is_acyclic(list(genome.connections))
    assert genome.connections


def test_mutate_add_connection_never_links_outputs(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=0, num_outputs=2, initial_connection="unconnected")
    genome = create_genome(1, rng, cfg)
    for _ in range(100):
        genome.mutate_add_connection(rng, cfg)
    assert genome.connections == {}


def test_mutate_add_connection_reenables_when_surer(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=1, structural_mutation_surer="true")
    genome = create_genome(1, rng, cfg)
    genome.connections[(-1, 0)].enabled = False
    # Only (-1, 0) and the self loop (0, 0) can be drawn.
    for _ in range(50):
        genome.mutate_add_connection(rng, cfg)
    assert genome.connections[(-1, 0)].enabled is True
    assert set(genome.connections) == {(-1, 0)}


def test_mutate_delete_node_keeps_outputs(rng, make_genome_config):
    cfg = make_genome_config(num_hidden=2)
    genome = create_genome(1, rng, cfg)
    deleted = genome.mutate_delete_node(rng, cfg)
    assert deleted in (1, 2)
    assert 0 in genome.nodes
    assert all(deleted not in key for key in genome.connections)

    genome.mutate_delete_node(rng, cfg)
    assert genome.mutate_delete_node(rng, cfg) is None
    assert set(genome.nodes) == {0}


def test_mutate_delete_connection(rng, genome_config):
    genome = create_genome(1, rng, genome_config)
    before = set(genome.connections)
    genome.mutate_delete_connection(rng)
    assert len(genome.connections) == len(before) - 1
    assert set(genome.connections) < before


def test_mutate_without_structural_changes(rng, make_genome_config):
    cfg = make_genome_config(
        conn_add_prob=0.0, conn_delete_prob=0.0, node_add_prob=0.0, node_delete_prob=0.0
    )
    genome = create_genome(1, rng, cfg)
    nodes, conns = set(genome.nodes), set(genome.connections)
    for _ in range(20):
        genome.mutate(rng, cfg, _indexer(cfg))
    assert set(genome.nodes) == nodes
    assert set(genome.connections) == conns


def test_single_structural_mutation_changes_at_most_one_node(rng, make_genome_config):
    cfg = make_genome_config(
        num_hidden=2,
        single_structural_mutation=True,
        conn_add_prob=1.0,
        conn_delete_prob=1.0,
        node_add_prob=1.0,
        node_delete_prob=1.0,
    )
    indexer = _indexer(cfg)
    for key in range(30):
        genome = create_genome(key, rng, cfg)
        nodes = set(genome.nodes)
        genome.mutate(rng, cfg, indexer)
        node_change = len(set(genome.nodes) ^ nodes)
        assert node_change <= 1


def test_size_counts_enabled_connections(rng, genome_config):
    genome = create_genome(1, rng, genome_config)
    genome.connections[(-1, 0)].enabled = False
    assert genome.size() == (1, 1)


def test_genome_to_dict_is_plain_data(rng, genome_config):
    genome = create_genome(1, rng, genome_config)
    genome.fitness = 0.5
    data = genome_to_dict(genome)
    assert data["key"] == 1
    assert data["fitness"] == 0.5
    assert [n["key"] for n in data["nodes"]] == [0]
    assert [c["key"] for c in data["connections"]] == [[-2, 0], [-1, 0]]
    assert isinstance(str(genome), str)


def test_partial_nodirect_with_hidden_nodes(rng, make_genome_config):
    cfg = make_genome_config(num_inputs=2, num_outputs=1, num_hidden=2, initial_connection="partial 0.5")
    assert cfg.connection_fraction == 0.5
    genome = create_genome(1, rng, cfg)
    full = {(-1, 1), (-1, 2), (-2, 1), (-2, 2), (1, 0), (2, 0)}
    assert len(genome.connections) == 3
    assert set(genome.connections) <= full
