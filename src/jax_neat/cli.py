from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np

from .config import EvolutionConfig
from .evolution import Population
from .genome import Genome, genome_to_dict
from .reporting import HistoryReporter, StdOutReporter
from .visualization import plot_genome, plot_history, plot_species_sizes

XOR_INPUTS = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]], dtype=np.float32)
XOR_OUTPUTS = np.array([0.0, 1.0, 1.0, 0.0], dtype=np.float32)

XOR_PARAMS = {
    "fitness_criterion": "max",
    "reset_on_extinction": False,
    "num_inputs": 2,
    "num_outputs": 1,
    "num_hidden": 0,
    "feed_forward": True,
    "initial_connection": "full",
    "activation_default": "sigmoid",
    "activation_options": "sigmoid",
    "activation_mutate_rate": 0.0,
    "aggregation_default": "sum",
    "aggregation_options": "sum",
    "aggregation_mutate_rate": 0.0,
    "bias_init_mean": 0.0,
    "bias_init_stdev": 1.0,
    "bias_max_value": 30.0,
    "bias_min_value": -30.0,
    "bias_mutate_power": 0.5,
    "bias_mutate_rate": 0.7,
    "bias_replace_rate": 0.1,
    "response_init_mean": 1.0,
    "response_init_stdev": 0.0,
    "response_mutate_rate": 0.0,
    "response_replace_rate": 0.0,
    "weight_init_mean": 0.0,
    "weight_init_stdev": 1.0,
    "weight_max_value": 30.0,
    "weight_min_value": -30.0,
    "weight_mutate_power": 0.5,
    "weight_mutate_rate": 0.8,
    "weight_replace_rate": 0.1,
    "enabled_default": "true",
    "enabled_mutate_rate": 0.01,
    "compatibility_disjoint_coefficient": 1.0,
    "compatibility_weight_coefficient": 0.5,
    "conn_add_prob": 0.5,
    "conn_delete_prob": 0.5,
    "node_add_prob": 0.2,
    "node_delete_prob": 0.2,
    "compatibility_threshold": 3.0,
    "species_fitness_func": "max",
    "max_stagnation": 20,
    "species_elitism": 2,
    "elitism": 2,
    "survival_threshold": 0.2,
}


def eval_xor(population: dict[int, Genome], config: EvolutionConfig) -> None:
    for genome in population.values():
        net = genome.to_phenotype(config.genome)
        out = np.asarray(net.activate(XOR_INPUTS))[:, 0]
        genome.fitness = float(4.0 - np.sum((out - XOR_OUTPUTS) ** 2))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Evolve a feed-forward network for XOR with NEAT")
    p.add_argument("--pop-size", type=int, default=150)
    p.add_argument("--generations", type=int, default=300)
    p.add_argument("--fitness-threshold", type=float, default=3.9)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--out-dir", type=str, default=None)
    p.add_argument("--quiet", action="store_true", help="Hide the per-species table")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    cfg = EvolutionConfig.from_dict(
        {
            **XOR_PARAMS,
            "pop_size": args.pop_size,
            "fitness_threshold": args.fitness_threshold,
            "seed": args.seed,
        }
    )

    pop = Population(cfg)
    history = HistoryReporter()
    pop.add_reporter(StdOutReporter(show_species_detail=not args.quiet))
    pop.add_reporter(history)

    winner = pop.run(eval_xor, args.generations)

    print(f"\nBest genome:\n{winner}")
    net = winner.to_phenotype(cfg.genome)
    outputs = np.asarray(net.activate(XOR_INPUTS))[:, 0]
    for xi, xo, out in zip(XOR_INPUTS, XOR_OUTPUTS, outputs):
        print(f"input {tuple(float(v) for v in xi)}, expected {float(xo):.1f}, got {float(out):.4f}")

    if args.out_dir is not None:
        out_dir = Path(args.out_dir).resolve()
        out_dir.mkdir(parents=True, exist_ok=True)
        history.write_history_csv(out_dir / "history.csv")
        history.write_species_csv(out_dir / "species_sizes.csv")
        with (out_dir / "champion_genome.json").open("w", encoding="utf-8") as f:
            json.dump(genome_to_dict(winner), f, indent=2)

        plots_dir = out_dir / "plots"
        plot_history(history.history, plots_dir / "fitness_complexity.png")
        plot_species_sizes(history.species_sizes, plots_dir / "species_sizes.png")
        plot_genome(winner, cfg.genome, plots_dir / "champion_network.png", title="Champion Topology")
        print(f"Run artifacts: {out_dir}")


if __name__ == "__main__":
    main()
