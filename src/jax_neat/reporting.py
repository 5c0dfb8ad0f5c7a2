from __future__ import annotations

import csv
import time
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from .stats import mean, stdev

if TYPE_CHECKING:
    from .config import EvolutionConfig
    from .genome import Genome
    from .species import Species, SpeciesSet


class BaseReporter:
    """No-op hooks; subclasses override the events they care about."""

    def start_generation(self, generation: int) -> None:
        pass

    def end_generation(self, config: EvolutionConfig, population: dict[int, Genome], species_set: SpeciesSet) -> None:
        pass

    def post_evaluate(
        self,
        config: EvolutionConfig,
        population: dict[int, Genome],
        species_set: SpeciesSet,
        best_genome: Genome,
    ) -> None:
        pass

    def post_reproduction(self, config: EvolutionConfig, population: dict[int, Genome], species_set: SpeciesSet) -> None:
        pass

    def complete_extinction(self) -> None:
        pass

    def found_solution(self, config: EvolutionConfig, generation: int, best: Genome) -> None:
        pass

    def species_stagnant(self, sid: int, species: Species) -> None:
        pass

    def info(self, msg: str) -> None:
        pass


class ReporterSet:
    def __init__(self):
        self.reporters: list[BaseReporter] = []

    def add(self, reporter: BaseReporter) -> None:
        self.reporters.append(reporter)

    def remove(self, reporter: BaseReporter) -> None:
        self.reporters.remove(reporter)

    def start_generation(self, generation: int) -> None:
        for r in self.reporters:
            r.start_generation(generation)

    def end_generation(self, config, population, species_set) -> None:
        for r in self.reporters:
            r.end_generation(config, population, species_set)

    def post_evaluate(self, config, population, species_set, best_genome) -> None:
        for r in self.reporters:
            r.post_evaluate(config, population, species_set, best_genome)

    def post_reproduction(self, config, population, species_set) -> None:
        for r in self.reporters:
            r.post_reproduction(config, population, species_set)

    def complete_extinction(self) -> None:
        for r in self.reporters:
            r.complete_extinction()

    def found_solution(self, config, generation, best) -> None:
        for r in self.reporters:
            r.found_solution(config, generation, best)

    def species_stagnant(self, sid, species) -> None:
        for r in self.reporters:
            r.species_stagnant(sid, species)

    def info(self, msg: str) -> None:
        for r in self.reporters:
            r.info(msg)


class StdOutReporter(BaseReporter):
    def __init__(self, show_species_detail: bool = True):
        self.show_species_detail = show_species_detail
        self.generation: int | None = None
        self.generation_start_time: float | None = None
        self.generation_times: list[float] = []
        self.num_extinctions = 0

    def start_generation(self, generation: int) -> None:
        self.generation = generation
        print(f"\n ****** Running generation {generation} ****** \n")
        self.generation_start_time = time.perf_counter()

    def end_generation(self, config, population, species_set) -> None:
        ng = len(population)
        ns = len(species_set.species)
        if self.show_species_detail:
            print(f"Population of {ng} members in {ns} species:")
            print("   ID   age  size   fitness   adj fit  stag")
            print("  ====  ===  ====  =========  =======  ====")
            for sid in sorted(species_set.species):
                s = species_set.species[sid]
                age = self.generation - s.created
                fitness = "--" if s.fitness is None else f"{s.fitness:.3f}"
                adj = "--" if s.adjusted_fitness is None else f"{s.adjusted_fitness:.3f}"
                stag = self.generation - s.last_improved
                print(f"  {sid:>4}  {age:>3}  {len(s.members):>4}  {fitness:>9}  {adj:>7}  {stag:>4}")
        else:
            print(f"Population of {ng} members in {ns} species")

        elapsed = time.perf_counter() - self.generation_start_time
        self.generation_times.append(elapsed)
        self.generation_times = self.generation_times[-10:]
        average = mean(self.generation_times)
        print(f"Total extinctions: {self.num_extinctions:d}")
        if len(self.generation_times) > 1:
            print(f"Generation time: {elapsed:.3f} sec ({average:.3f} average)")
        else:
            print(f"Generation time: {elapsed:.3f} sec")

    def post_evaluate(self, config, population, species_set, best_genome) -> None:
        fitnesses = [g.fitness for g in population.values()]
        best_species_id = species_set.get_species_id(best_genome.key)
        print(f"Population's average fitness: {mean(fitnesses):3.5f} stdev: {stdev(fitnesses):3.5f}")
        print(
            f"Best fitness: {best_genome.fitness:3.5f} - size: {best_genome.size()!r} "
            f"- species {best_species_id} - id {best_genome.key}"
        )

    def complete_extinction(self) -> None:
        self.num_extinctions += 1
        print("All species extinct.")

    def found_solution(self, config, generation, best) -> None:
        print(f"\nBest individual in generation {self.generation} meets fitness threshold - complexity: {best.size()!r}")

    def species_stagnant(self, sid, species) -> None:
        if self.show_species_detail:
            print(f"\nSpecies {sid} with {len(species.members)} members is stagnated: removing it")

    def info(self, msg: str) -> None:
        print(msg)


class HistoryReporter(BaseReporter):
    """Keeps one summary row per generation plus per-species sizes."""

    def __init__(self):
        self.generation = 0
        self.history: list[dict[str, float]] = []
        self.species_sizes: list[dict[int, int]] = []
        self.champions: list[tuple[int, Genome]] = []

    def start_generation(self, generation: int) -> None:
        self.generation = generation

    def post_evaluate(self, config, population, species_set, best_genome) -> None:
        fitness = np.array([g.fitness for g in population.values()], dtype=float)
        output_keys = set(config.genome.output_keys)
        hidden = [sum(1 for k in g.nodes if k not in output_keys) for g in population.values()]
        enabled = [g.size()[1] for g in population.values()]
        champ_nodes, champ_conns = best_genome.size()

        self.history.append(
            {
                "generation": float(self.generation),
                "best_fitness": float(np.max(fitness)),
                "mean_fitness": float(np.mean(fitness)),
                "stdev_fitness": float(np.std(fitness)),
                "species_count": float(len(species_set.species)),
                "mean_hidden_nodes": float(np.mean(hidden)),
                "mean_enabled_connections": float(np.mean(enabled)),
                "champ_nodes": float(champ_nodes),
                "champ_enabled_connections": float(champ_conns),
            }
        )
        self.champions.append((self.generation, best_genome.clone()))
        self.species_sizes.append({sid: len(s.members) for sid, s in species_set.species.items()})

    def write_history_csv(self, path: Path) -> None:
        if not self.history:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        fieldnames = list(self.history[0].keys())
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for row in self.history:
                writer.writerow(row)

    def write_species_csv(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        all_species = sorted({sid for m in self.species_sizes for sid in m})
        fields = ["generation"] + [f"species_{sid}" for sid in all_species]
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fields)
            writer.writeheader()
            for gen, sizes in enumerate(self.species_sizes):
                row = {"generation": gen}
                for sid in all_species:
                    row[f"species_{sid}"] = sizes.get(sid, 0)
                writer.writerow(row)
