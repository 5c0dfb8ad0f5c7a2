from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .config import GenomeConfig, SpeciesConfig
from .genome import Genome, compatibility_distance
from .stats import mean, stdev

if TYPE_CHECKING:
    from .reporting import ReporterSet


@dataclass
class Species:
    key: int
    created: int
    last_improved: int | None = None
    representative: Genome | None = None
    members: dict[int, Genome] = field(default_factory=dict)
    fitness: float | None = None
    adjusted_fitness: float | None = None
    fitness_history: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.last_improved is None:
            self.last_improved = self.created

    def update(self, representative: Genome, members: dict[int, Genome]) -> None:
        self.representative = representative
        self.members = members

    def get_fitnesses(self) -> list[float | None]:
        return [m.fitness for m in self.members.values()]


class GenomeDistanceCache:
    """Memoises genome distances for a single speciation pass."""

    def __init__(self, cfg: GenomeConfig):
        self.cfg = cfg
        self.distances: dict[tuple[int, int], float] = {}
        self.hits = 0
        self.misses = 0

    def __call__(self, genome_a: Genome, genome_b: Genome) -> float:
        key_a, key_b = genome_a.key, genome_b.key
        pair = (key_a, key_b) if key_a <= key_b else (key_b, key_a)
        d = self.distances.get(pair)
        if d is not None:
            self.hits += 1
            return d

        self.misses += 1
        d = compatibility_distance(genome_a, genome_b, self.cfg)
        self.distances[pair] = d
        return d


class SpeciesSet:
    def __init__(self, cfg: SpeciesConfig, reporters: ReporterSet):
        self.cfg = cfg
        self.reporters = reporters
        self.indexer = itertools.count(1)
        self.species: dict[int, Species] = {}
        self.genome_to_species: dict[int, int] = {}

    def speciate(self, genome_config: GenomeConfig, population: dict[int, Genome], generation: int) -> None:
        """Partition ``population`` into species, keeping lineages from the previous generation."""
        if not population:
            return

        threshold = self.cfg.compatibility_threshold
        distances = GenomeDistanceCache(genome_config)
        # Insertion-ordered so that assignment order follows the population order.
        unspeciated = dict.fromkeys(population)
        new_representatives: dict[int, Genome] = {}
        new_members: dict[int, list[int]] = {}

        # Each surviving species continues through the genome nearest its old representative.
        for sid, s in self.species.items():
            if not unspeciated:
                break
            new_rep = min(
                (population[gid] for gid in unspeciated),
                key=lambda g: distances(s.representative, g),
            )
            new_representatives[sid] = new_rep
            new_members[sid] = [new_rep.key]
            del unspeciated[new_rep.key]

        for gid in unspeciated:
            g = population[gid]
            best_sid = None
            best_dist = threshold
            for sid, rep in new_representatives.items():
                d = distances(rep, g)
                if d < best_dist:
                    best_sid, best_dist = sid, d

            if best_sid is None:
                best_sid = next(self.indexer)
                new_representatives[best_sid] = g
                new_members[best_sid] = []
            new_members[best_sid].append(gid)

        self.genome_to_species = {}
        alive: dict[int, Species] = {}
        for sid, rep in new_representatives.items():
            s = self.species.get(sid)
            if s is None:
                s = Species(key=sid, created=generation)
            members = {}
            for gid in new_members[sid]:
                self.genome_to_species[gid] = sid
                members[gid] = population[gid]
            s.update(rep, members)
            alive[sid] = s
        self.species = alive

        if distances.distances:
            values = list(distances.distances.values())
            self.reporters.info(
                f"Mean genetic distance {mean(values):.3f}, standard deviation {stdev(values):.3f}"
            )

    def get_species_id(self, genome_key: int) -> int | None:
        return self.genome_to_species.get(genome_key)

    def get_species(self, genome_key: int) -> Species | None:
        sid = self.genome_to_species.get(genome_key)
        return None if sid is None else self.species.get(sid)
