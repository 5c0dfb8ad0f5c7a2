from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from .config import GenomeConfig
from .genes import ConnectionGene, NodeGene
from .graphs import creates_cycle
from .innovation import NodeKeyIndexer

if TYPE_CHECKING:
    from .phenotype import FeedForwardNetwork


def _fitness_or_min(genome: "Genome") -> float:
    return genome.fitness if genome.fitness is not None else float("-inf")


@dataclass
class Genome:
    key: int
    nodes: dict[int, NodeGene] = field(default_factory=dict)
    connections: dict[tuple[int, int], ConnectionGene] = field(default_factory=dict)
    fitness: float | None = None

    def clone(self, new_key: int | None = None) -> "Genome":
        return Genome(
            key=self.key if new_key is None else new_key,
            nodes={k: n.copy() for k, n in self.nodes.items()},
            connections={k: c.copy() for k, c in self.connections.items()},
            fitness=self.fitness,
        )

    def size(self) -> tuple[int, int]:
        enabled = sum(1 for c in self.connections.values() if c.enabled)
        return len(self.nodes), enabled

    def to_phenotype(self, cfg: GenomeConfig) -> "FeedForwardNetwork":
        from .phenotype import FeedForwardNetwork

        return FeedForwardNetwork.create(self, cfg)

    # -- construction -------------------------------------------------------

    def configure_new(self, rng: np.random.Generator, cfg: GenomeConfig) -> None:
        for node_key in cfg.output_keys:
            self.nodes[node_key] = NodeGene.create(node_key, rng, cfg)

        # Initial hidden nodes get the same keys in every genome so they align.
        for i in range(cfg.num_hidden):
            node_key = cfg.num_outputs + i
            self.nodes[node_key] = NodeGene.create(node_key, rng, cfg)

        mode = cfg.initial_connection
        if mode == "fs_neat_nohidden":
            self.connect_fs_neat(rng, cfg, hidden=False)
        elif mode == "fs_neat_hidden":
            self.connect_fs_neat(rng, cfg, hidden=True)
        elif mode == "full_nodirect":
            self.connect_full(rng, cfg, direct=False)
        elif mode == "full_direct":
            self.connect_full(rng, cfg, direct=True)
        elif mode == "partial_nodirect":
            self.connect_partial(rng, cfg, direct=False)
        elif mode == "partial_direct":
            self.connect_partial(rng, cfg, direct=True)

    def configure_crossover(self, genome1: "Genome", genome2: "Genome", rng: np.random.Generator) -> None:
        """Fill this genome from two parents; the fitter one donates its non-shared genes."""
        if _fitness_or_min(genome1) > _fitness_or_min(genome2):
            parent1, parent2 = genome1, genome2
        else:
            parent1, parent2 = genome2, genome1

        for key, cg1 in parent1.connections.items():
            cg2 = parent2.connections.get(key)
            self.connections[key] = cg1.copy() if cg2 is None else cg1.crossover(cg2, rng)

        for key, ng1 in parent1.nodes.items():
            ng2 = parent2.nodes.get(key)
            self.nodes[key] = ng1.copy() if ng2 is None else ng1.crossover(ng2, rng)

    def compute_full_connections(self, cfg: GenomeConfig, direct: bool) -> list[tuple[int, int]]:
        output = cfg.output_keys
        hidden = sorted(k for k in self.nodes if k not in output)
        connections: list[tuple[int, int]] = []
        if hidden:
            for i in cfg.input_keys:
                for h in hidden:
                    connections.append((i, h))
            for h in hidden:
                for o in output:
                    connections.append((h, o))
        if direct or not hidden:
            for i in cfg.input_keys:
                for o in output:
                    connections.append((i, o))
        return connections

    def connect_fs_neat(self, rng: np.random.Generator, cfg: GenomeConfig, hidden: bool) -> None:
        if not cfg.input_keys:
            return
        input_key = cfg.input_keys[int(rng.integers(len(cfg.input_keys)))]
        targets = sorted(self.nodes) if hidden else cfg.output_keys
        for output_key in targets:
            self._insert(ConnectionGene.create((input_key, output_key), rng, cfg))

    def connect_full(self, rng: np.random.Generator, cfg: GenomeConfig, direct: bool) -> None:
        for pair in self.compute_full_connections(cfg, direct):
            self._insert(ConnectionGene.create(pair, rng, cfg))

    def connect_partial(self, rng: np.random.Generator, cfg: GenomeConfig, direct: bool) -> None:
        all_connections = self.compute_full_connections(cfg, direct)
        order = rng.permutation(len(all_connections))
        num_to_add = int(round(len(all_connections) * cfg.connection_fraction))
        for idx in order[:num_to_add]:
            self._insert(ConnectionGene.create(all_connections[int(idx)], rng, cfg))

    def _insert(self, conn: ConnectionGene) -> None:
        self.connections[conn.key] = conn

    # -- mutation -----------------------------------------------------------

    def mutate(self, rng: np.random.Generator, cfg: GenomeConfig, indexer: NodeKeyIndexer) -> None:
        if cfg.single_structural_mutation:
            div = max(1.0, cfg.node_add_prob + cfg.node_delete_prob + cfg.conn_add_prob + cfg.conn_delete_prob)
            r = rng.random()
            if r < cfg.node_add_prob / div:
                self.mutate_add_node(rng, cfg, indexer)
            elif r < (cfg.node_add_prob + cfg.node_delete_prob) / div:
                self.mutate_delete_node(rng, cfg)
            elif r < (cfg.node_add_prob + cfg.node_delete_prob + cfg.conn_add_prob) / div:
                self.mutate_add_connection(rng, cfg)
            elif r < (cfg.node_add_prob + cfg.node_delete_prob + cfg.conn_add_prob + cfg.conn_delete_prob) / div:
                self.mutate_delete_connection(rng)
        else:
            if rng.random() < cfg.node_add_prob:
                self.mutate_add_node(rng, cfg, indexer)
            if rng.random() < cfg.node_delete_prob:
                self.mutate_delete_node(rng, cfg)
            if rng.random() < cfg.conn_add_prob:
                self.mutate_add_connection(rng, cfg)
            if rng.random() < cfg.conn_delete_prob:
                self.mutate_delete_connection(rng)

        for cg in self.connections.values():
            cg.mutate(rng, cfg)
        for ng in self.nodes.values():
            ng.mutate(rng, cfg)

    def mutate_add_node(self, rng: np.random.Generator, cfg: GenomeConfig, indexer: NodeKeyIndexer) -> None:
        enabled = [c for c in self.connections.values() if c.enabled]
        if not enabled:
            if cfg.check_structural_mutation_surer():
                self.mutate_add_connection(rng, cfg)
            return

        conn_to_split = enabled[int(rng.integers(len(enabled)))]
        i, o = conn_to_split.key
        new_key = indexer.get_split(i, o, self.nodes)
        self.nodes[new_key] = NodeGene.create(new_key, rng, cfg)

        # New input link gets weight 1.0, new output link inherits the old weight.
        conn_to_split.enabled = False
        self.add_connection(rng, cfg, i, new_key, 1.0, True)
        self.add_connection(rng, cfg, new_key, o, conn_to_split.weight, True)

    def add_connection(
        self,
        rng: np.random.Generator,
        cfg: GenomeConfig,
        input_key: int,
        output_key: int,
        weight: float,
        enabled: bool,
    ) -> None:
        conn = ConnectionGene.create((input_key, output_key), rng, cfg)
        conn.weight = weight
        conn.enabled = enabled
        self._insert(conn)

    def mutate_add_connection(self, rng: np.random.Generator, cfg: GenomeConfig) -> None:
        possible_outputs = list(self.nodes)
        if not possible_outputs:
            return
        possible_inputs = possible_outputs + cfg.input_keys

        out_node = possible_outputs[int(rng.integers(len(possible_outputs)))]
        in_node = possible_inputs[int(rng.integers(len(possible_inputs)))]
        key = (in_node, out_node)

        existing = self.connections.get(key)
        if existing is not None:
            if cfg.check_structural_mutation_surer():
                existing.enabled = True
            return

        if in_node in cfg.output_keys and out_node in cfg.output_keys:
            return

        if cfg.feed_forward and creates_cycle(list(self.connections), key):
            return

        self._insert(ConnectionGene.create(key, rng, cfg))

    def mutate_delete_node(self, rng: np.random.Generator, cfg: GenomeConfig) -> int | None:
        available = [k for k in self.nodes if k not in cfg.output_keys]
        if not available:
            return None

        del_key = available[int(rng.integers(len(available)))]
        for key in [k for k in self.connections if del_key in k]:
            del self.connections[key]
        del self.nodes[del_key]
        return del_key

    def mutate_delete_connection(self, rng: np.random.Generator) -> None:
        if self.connections:
            keys = list(self.connections)
            del self.connections[keys[int(rng.integers(len(keys)))]]

    # -- comparison ---------------------------------------------------------

    def distance(self, other: "Genome", cfg: GenomeConfig) -> float:
        """Compatibility distance: node term plus connection term.

        Each term sums the per-gene distance of shared keys and the weighted
        count of keys present in only one genome, divided by the gene count
        of the larger genome.
        """
        disjoint_coeff = cfg.compatibility_disjoint_coefficient

        node_distance = 0.0
        if self.nodes or other.nodes:
            disjoint_nodes = sum(1 for k in other.nodes if k not in self.nodes)
            for k, n1 in self.nodes.items():
                n2 = other.nodes.get(k)
                if n2 is None:
                    disjoint_nodes += 1
                else:
                    node_distance += n1.distance(n2, cfg)
            max_nodes = max(1, len(self.nodes), len(other.nodes))
            node_distance = (node_distance + disjoint_coeff * disjoint_nodes) / max_nodes

        conn_distance = 0.0
        if self.connections or other.connections:
            disjoint_conns = sum(1 for k in other.connections if k not in self.connections)
            for k, c1 in self.connections.items():
                c2 = other.connections.get(k)
                if c2 is None:
                    disjoint_conns += 1
                else:
                    conn_distance += c1.distance(c2, cfg)
            max_conns = max(1, len(self.connections), len(other.connections))
            conn_distance = (conn_distance + disjoint_coeff * disjoint_conns) / max_conns

        return node_distance + conn_distance

    def __str__(self) -> str:
        lines = [f"Key: {self.key}", f"Fitness: {self.fitness}", "Nodes:"]
        for k, ng in sorted(self.nodes.items()):
            lines.append(f"\t{k} {ng}")
        lines.append("Connections:")
        for _, cg in sorted(self.connections.items()):
            lines.append(f"\t{cg}")
        return "\n".join(lines)


def create_genome(key: int, rng: np.random.Generator, cfg: GenomeConfig) -> Genome:
    genome = Genome(key=key)
    genome.configure_new(rng, cfg)
    return genome


def crossover(
    rng: np.random.Generator,
    parent_a: Genome,
    parent_b: Genome,
    child_key: int,
) -> Genome:
    child = Genome(key=child_key)
    child.configure_crossover(parent_a, parent_b, rng)
    return child


def compatibility_distance(genome_a: Genome, genome_b: Genome, cfg: GenomeConfig) -> float:
    return genome_a.distance(genome_b, cfg)


def genome_to_dict(genome: Genome) -> dict:
    return {
        "key": genome.key,
        "fitness": genome.fitness,
        "nodes": [asdict(n) for n in sorted(genome.nodes.values(), key=lambda x: x.key)],
        "connections": [
            {**asdict(c), "key": list(c.key)}
            for c in sorted(genome.connections.values(), key=lambda x: x.key)
        ],
    }
