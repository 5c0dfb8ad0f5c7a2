from __future__ import annotations

from enum import Enum
from typing import Any, Callable

import numpy as np

from .config import EvolutionConfig
from .errors import CompleteExtinctionError, ConfigurationError, MissingFitnessError
from .genome import Genome, genome_to_dict
from .innovation import NodeKeyIndexer
from .reporting import BaseReporter, ReporterSet
from .reproduction import Reproduction
from .species import SpeciesSet
from .stagnation import Stagnation
from .stats import STAT_FUNCTIONS

FitnessFunction = Callable[[dict[int, Genome], EvolutionConfig], None]

SNAPSHOT_VERSION = 1


class RunState(Enum):
    INITIALIZED = "initialized"
    EVALUATING = "evaluating"
    REPORTING = "reporting"
    REPRODUCING = "reproducing"
    SPECIATING = "speciating"
    TERMINATED = "terminated"


class Population:
    """Runs the generation loop.

    1. Evaluate the fitness of every genome.
    2. Check for a solution.
    3. Reproduce the next generation.
    4. Partition it into species.
    """

    def __init__(
        self,
        config: EvolutionConfig,
        initial_state: tuple[dict[int, Genome], SpeciesSet, int] | None = None,
    ):
        self.config = config
        self.reporters = ReporterSet()
        self.rng = np.random.default_rng(config.seed)

        genome_config = config.genome
        self.node_indexer = NodeKeyIndexer(next_node_key=genome_config.num_outputs + genome_config.num_hidden)
        self.stagnation = Stagnation(config.stagnation, self.reporters)
        self.reproduction = Reproduction(config.reproduction, self.reporters, self.stagnation, self.node_indexer)

        if config.no_fitness_termination:
            self.fitness_criterion = None
        else:
            self.fitness_criterion = STAT_FUNCTIONS[config.fitness_criterion]

        if initial_state is None:
            self.population = self.reproduction.create_new(genome_config, config.pop_size, self.rng)
            self.species_set = SpeciesSet(config.species, self.reporters)
            self.generation = 0
            self.species_set.speciate(genome_config, self.population, self.generation)
        else:
            self.population, self.species_set, self.generation = initial_state
            self.species_set.reporters = self.reporters

        self.best_genome: Genome | None = None
        self.generation_best: Genome | None = None
        self.state = RunState.INITIALIZED

    def add_reporter(self, reporter: BaseReporter) -> None:
        self.reporters.add(reporter)

    def remove_reporter(self, reporter: BaseReporter) -> None:
        self.reporters.remove(reporter)

    def run(self, fitness_function: FitnessFunction, n: int | None = None) -> Genome | None:
        """Run for at most ``n`` generations (unbounded when None) and return the best genome seen.

        ``fitness_function(population, config)`` must set ``fitness`` on every
        genome of the mapping before returning.
        """
        if self.config.no_fitness_termination and n is None:
            raise ConfigurationError("Cannot have no generation limit with no fitness termination")

        genome_config = self.config.genome
        k = 0
        while n is None or k < n:
            k += 1
            self.reporters.start_generation(self.generation)

            self.state = RunState.EVALUATING
            fitness_function(self.population, self.config)

            self.state = RunState.REPORTING
            best = None
            for g in self.population.values():
                if g.fitness is None:
                    raise MissingFitnessError(g.key)
                if best is None or g.fitness > best.fitness:
                    best = g
            self.generation_best = best
            self.reporters.post_evaluate(self.config, self.population, self.species_set, best)

            if self.best_genome is None or best.fitness > self.best_genome.fitness:
                self.best_genome = best

            if not self.config.no_fitness_termination:
                fv = self.fitness_criterion([g.fitness for g in self.population.values()])
                if fv >= self.config.fitness_threshold:
                    self.reporters.found_solution(self.config, self.generation, best)
                    self.state = RunState.TERMINATED
                    break

            self.state = RunState.REPRODUCING
            self.population = self.reproduction.reproduce(
                self.config, self.species_set, self.config.pop_size, self.generation, self.rng
            )

            if not self.species_set.species:
                self.reporters.complete_extinction()
                if not self.config.reset_on_extinction:
                    self.state = RunState.TERMINATED
                    raise CompleteExtinctionError()
                self.population = self.reproduction.create_new(genome_config, self.config.pop_size, self.rng)

            self.reporters.post_reproduction(self.config, self.population, self.species_set)

            self.state = RunState.SPECIATING
            self.species_set.speciate(genome_config, self.population, self.generation)

            self.reporters.end_generation(self.config, self.population, self.species_set)
            self.generation += 1

        if self.config.no_fitness_termination:
            self.reporters.found_solution(self.config, self.generation, self.best_genome)

        self.state = RunState.TERMINATED
        return self.best_genome

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the run state.

        Species refer to genomes by key only; every referenced genome appears
        once under ``genomes``, so a loader can rebuild genomes first and
        re-link species afterwards.
        """
        genomes = {key: genome_to_dict(g) for key, g in self.population.items()}
        species = {}
        for sid, s in self.species_set.species.items():
            rep = s.representative
            if rep is not None and rep.key not in genomes:
                genomes[rep.key] = genome_to_dict(rep)
            species[sid] = {
                "key": s.key,
                "created": s.created,
                "last_improved": s.last_improved,
                "representative": None if rep is None else rep.key,
                "members": sorted(s.members),
                "fitness": s.fitness,
                "adjusted_fitness": s.adjusted_fitness,
                "fitness_history": list(s.fitness_history),
            }

        return {
            "version": SNAPSHOT_VERSION,
            "generation": self.generation,
            "population": sorted(self.population),
            "genomes": genomes,
            "species": species,
            "genome_to_species": dict(self.species_set.genome_to_species),
            "ancestors": {k: list(v) for k, v in self.reproduction.ancestors.items()},
            "best_genome": None if self.best_genome is None else self.best_genome.key,
        }
