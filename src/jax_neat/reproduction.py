from __future__ import annotations

import itertools
import math
from typing import TYPE_CHECKING, Sequence

import numpy as np

from .config import EvolutionConfig, GenomeConfig, ReproductionConfig
from .genome import Genome, create_genome, crossover
from .innovation import NodeKeyIndexer
from .species import SpeciesSet
from .stagnation import Stagnation
from .stats import mean

if TYPE_CHECKING:
    from .reporting import ReporterSet


def _round_half_away(x: float) -> int:
    return int(math.floor(abs(x) + 0.5)) * (1 if x >= 0 else -1)


def apportion(weights: Sequence[float], total: int, floor: int) -> list[int]:
    """Split ``total`` proportionally to ``weights`` into integers that are each >= ``floor``.

    Uses largest remainders (ties: larger share first, then lower index).
    If flooring overshoots ``total``, units are taken back from the largest
    amount above the floor (ties: lower index). The result sums to ``total``
    whenever ``total >= len(weights) * floor``.
    """
    n = len(weights)
    if n == 0:
        return []
    clipped = [max(0.0, float(w)) for w in weights]
    weight_sum = sum(clipped)
    if weight_sum <= 0:
        clipped = [1.0] * n
        weight_sum = float(n)

    raw = [w * total / weight_sum for w in clipped]
    amounts = [int(math.floor(r)) for r in raw]
    leftover = total - sum(amounts)
    order = sorted(range(n), key=lambda i: (-(raw[i] - amounts[i]), -raw[i], i))
    for i in order[:leftover]:
        amounts[i] += 1

    amounts = [max(floor, a) for a in amounts]
    excess = sum(amounts) - total
    while excess > 0:
        candidates = [i for i in range(n) if amounts[i] > floor]
        if not candidates:
            break
        i = max(candidates, key=lambda j: (amounts[j], -j))
        amounts[i] -= 1
        excess -= 1
    return amounts


class Reproduction:
    """Explicit fitness sharing with fixed-time species stagnation."""

    def __init__(
        self,
        cfg: ReproductionConfig,
        reporters: ReporterSet,
        stagnation: Stagnation,
        node_indexer: NodeKeyIndexer,
    ):
        self.cfg = cfg
        self.reporters = reporters
        self.stagnation = stagnation
        self.node_indexer = node_indexer
        self.genome_indexer = itertools.count(1)
        self.ancestors: dict[int, tuple[int, ...]] = {}

    def create_new(self, genome_config: GenomeConfig, num_genomes: int, rng: np.random.Generator) -> dict[int, Genome]:
        new_genomes = {}
        for _ in range(num_genomes):
            key = next(self.genome_indexer)
            new_genomes[key] = create_genome(key, rng, genome_config)
            self.ancestors[key] = ()
        return new_genomes

    @staticmethod
    def compute_spawn(
        adjusted_fitness: Sequence[float],
        previous_sizes: Sequence[int],
        pop_size: int,
        min_species_size: int,
    ) -> list[int]:
        """Offspring count per species, proportional to adjusted fitness.

        Each species moves halfway from its previous size towards its
        fitness-proportional target, then the counts are rescaled to
        ``pop_size`` and floored at ``min_species_size``.
        """
        af_sum = sum(adjusted_fitness)

        spawn_amounts = []
        for af, ps in zip(adjusted_fitness, previous_sizes):
            if af_sum > 0:
                s = max(min_species_size, af / af_sum * pop_size)
            else:
                s = min_species_size

            d = (s - ps) * 0.5
            c = _round_half_away(d)
            spawn = ps
            if abs(c) > 0:
                spawn += c
            elif d > 0:
                spawn += 1
            elif d < 0:
                spawn -= 1
            spawn_amounts.append(spawn)

        return apportion(spawn_amounts, pop_size, min_species_size)

    def reproduce(
        self,
        config: EvolutionConfig,
        species_set: SpeciesSet,
        pop_size: int,
        generation: int,
        rng: np.random.Generator,
    ) -> dict[int, Genome]:
        all_fitnesses: list[float] = []
        remaining_species = []
        for sid, s, is_stagnant in self.stagnation.update(species_set.species, generation):
            if is_stagnant:
                self.reporters.species_stagnant(sid, s)
            else:
                all_fitnesses.extend(m.fitness for m in s.members.values())
                remaining_species.append(s)

        if not remaining_species:
            species_set.species = {}
            return {}

        min_fitness = min(all_fitnesses)
        max_fitness = max(all_fitnesses)
        fitness_range = max(1.0, max_fitness - min_fitness)
        for s in remaining_species:
            msf = mean(s.get_fitnesses())
            s.adjusted_fitness = (msf - min_fitness) / fitness_range

        adjusted_fitness = [s.adjusted_fitness for s in remaining_species]
        self.reporters.info(f"Average adjusted fitness: {mean(adjusted_fitness):.3f}")

        previous_sizes = [len(s.members) for s in remaining_species]
        elitism = self.cfg.elitism
        min_species_size = max(self.cfg.min_species_size, elitism)
        spawn_amounts = self.compute_spawn(adjusted_fitness, previous_sizes, pop_size, min_species_size)

        genome_config = config.genome
        new_population: dict[int, Genome] = {}
        species_set.species = {}
        for spawn, s in zip(spawn_amounts, remaining_species):
            spawn = max(spawn, elitism)
            if spawn <= 0:
                continue

            old_members = sorted(
                s.members.items(),
                key=lambda item: item[1].fitness if item[1].fitness is not None else float("-inf"),
                reverse=True,
            )
            s.members = {}
            species_set.species[s.key] = s

            for gid, elite in old_members[:elitism]:
                if len(new_population) < pop_size:
                    new_population[gid] = elite
                    spawn -= 1

            if spawn <= 0:
                continue

            repro_cutoff = max(2, int(np.ceil(self.cfg.survival_threshold * len(old_members))))
            parents = old_members[:repro_cutoff]
            # Rank weights: the fittest parent gets len(parents), the last gets 1.
            weights = np.arange(len(parents), 0, -1, dtype=float)
            probs = weights / weights.sum()

            while spawn > 0 and len(new_population) < pop_size:
                spawn -= 1
                i1, i2 = rng.choice(len(parents), size=2, p=probs)
                p1_id, parent1 = parents[int(i1)]
                p2_id, parent2 = parents[int(i2)]

                gid = next(self.genome_indexer)
                child = crossover(rng, parent1, parent2, gid)
                child.mutate(rng, genome_config, self.node_indexer)
                new_population[gid] = child
                self.ancestors[gid] = (p1_id, p2_id)

        return new_population
