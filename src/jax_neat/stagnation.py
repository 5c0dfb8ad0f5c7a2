from __future__ import annotations

from typing import TYPE_CHECKING

from .config import StagnationConfig
from .species import Species
from .stats import STAT_FUNCTIONS

if TYPE_CHECKING:
    from .reporting import ReporterSet


class Stagnation:
    """Flags species whose fitness statistic has stopped improving."""

    def __init__(self, cfg: StagnationConfig, reporters: ReporterSet):
        self.cfg = cfg
        self.reporters = reporters
        self.species_fitness_func = STAT_FUNCTIONS[cfg.species_fitness_func]

    def update(self, species: dict[int, Species], generation: int) -> list[tuple[int, Species, bool]]:
        """Record each species' fitness and return ``(sid, species, is_stagnant)``, worst first.

        The ``species_elitism`` best species are never reported as stagnant.
        """
        species_data: list[tuple[int, Species]] = []
        for sid, s in species.items():
            fitnesses = [f for f in s.get_fitnesses() if f is not None]
            if not fitnesses:
                s.fitness = None
            else:
                prev_fitness = max(s.fitness_history) if s.fitness_history else float("-inf")
                s.fitness = self.species_fitness_func(fitnesses)
                s.fitness_history.append(s.fitness)
                s.adjusted_fitness = None
                if s.fitness > prev_fitness:
                    s.last_improved = generation
            species_data.append((sid, s))

        species_data.sort(key=lambda item: item[1].fitness if item[1].fitness is not None else float("-inf"))

        result = []
        num_non_stagnant = len(species_data)
        for idx, (sid, s) in enumerate(species_data):
            stagnant_time = generation - s.last_improved
            is_stagnant = stagnant_time >= self.cfg.max_stagnation

            if len(species_data) - idx <= self.cfg.species_elitism:
                is_stagnant = False
            if num_non_stagnant <= self.cfg.species_elitism:
                is_stagnant = False
            if is_stagnant:
                num_non_stagnant -= 1

            result.append((sid, s, is_stagnant))
        return result
