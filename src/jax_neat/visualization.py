from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from .config import GenomeConfig
from .genome import Genome
from .graphs import feed_forward_layers

INPUT_COLOR = "#2ca02c"
OUTPUT_COLOR = "#ff7f0e"
HIDDEN_COLOR = "#9467bd"
POSITIVE_COLOR = "#1f77b4"
NEGATIVE_COLOR = "#d62728"


def _save(fig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=160)
    plt.close(fig)


def _column(history: list[dict[str, float]], name: str) -> np.ndarray:
    return np.array([row[name] for row in history], dtype=float)


def plot_history(history: list[dict[str, float]], path: Path) -> None:
    """Fitness (mean +/- stdev and best), network size and species count per generation."""
    if not history:
        return

    gen = _column(history, "generation")
    best = _column(history, "best_fitness")
    avg = _column(history, "mean_fitness")
    spread = _column(history, "stdev_fitness")

    fig, (ax_fit, ax_size, ax_species) = plt.subplots(3, 1, figsize=(9, 10), sharex=True)

    ax_fit.fill_between(gen, avg - spread, avg + spread, alpha=0.2, label="mean +/- stdev")
    ax_fit.plot(gen, avg, label="mean")
    ax_fit.plot(gen, best, label="best", linewidth=2)
    ax_fit.set_ylabel("fitness")

    ax_size.plot(gen, _column(history, "mean_hidden_nodes"), label="mean hidden nodes")
    ax_size.plot(gen, _column(history, "mean_enabled_connections"), label="mean enabled connections")
    ax_size.plot(gen, _column(history, "champ_enabled_connections"), "--", label="champion connections")
    ax_size.set_ylabel("genes")

    ax_species.step(gen, _column(history, "species_count"), where="mid", label="species")
    ax_species.set_ylabel("species")
    ax_species.set_xlabel("generation")

    for ax in (ax_fit, ax_size, ax_species):
        ax.grid(True, alpha=0.3)
        ax.legend(loc="best", fontsize=8)

    _save(fig, path)


def plot_species_sizes(species_sizes: list[dict[int, int]], path: Path) -> None:
    if not species_sizes:
        return

    sids = sorted({sid for row in species_sizes for sid in row})
    counts = np.array([[row.get(sid, 0) for row in species_sizes] for sid in sids], dtype=float)

    fig, ax = plt.subplots(figsize=(9, 4))
    ax.stackplot(np.arange(len(species_sizes)), counts, labels=[f"species {sid}" for sid in sids], alpha=0.6)
    ax.set_xlabel("generation")
    ax.set_ylabel("members")
    ax.set_title("Speciation")
    ax.margins(x=0)
    if len(sids) <= 10:
        ax.legend(loc="upper left", fontsize=7)

    _save(fig, path)


def node_columns(genome: Genome, cfg: GenomeConfig) -> list[list[int]]:
    """Inputs, then each feed-forward layer, then any node the layering skipped."""
    enabled = [c.key for c in genome.connections.values() if c.enabled]
    columns = [list(cfg.input_keys)] + feed_forward_layers(cfg.input_keys, cfg.output_keys, enabled)
    placed = {k for col in columns for k in col}
    unused = sorted(k for k in genome.nodes if k not in placed)
    if unused:
        columns.append(unused)
    return columns


def node_positions(columns: list[list[int]]) -> dict[int, tuple[float, float]]:
    pos = {}
    for x, keys in enumerate(columns):
        for y, key in zip(np.linspace(0.0, 1.0, len(keys) + 2)[1:-1], keys):
            pos[key] = (float(x), float(y))
    return pos


def plot_genome(genome: Genome, cfg: GenomeConfig, path: Path, title: str = "Genome") -> None:
    """Draw ``genome`` with nodes laid out by feed-forward layer.

    Edge colour gives the weight sign and edge width its magnitude; disabled
    connections are dotted.
    """
    pos = node_positions(node_columns(genome, cfg))
    outputs = set(cfg.output_keys)

    fig, ax = plt.subplots(figsize=(10, 6))
    for conn in sorted(genome.connections.values(), key=lambda c: c.enabled):
        if conn.src not in pos or conn.dst not in pos:
            continue
        ax.annotate(
            "",
            xy=pos[conn.dst],
            xytext=pos[conn.src],
            arrowprops=dict(
                arrowstyle="-|>",
                color=POSITIVE_COLOR if conn.weight >= 0 else NEGATIVE_COLOR,
                linewidth=0.5 + min(3.0, abs(conn.weight)),
                linestyle="-" if conn.enabled else ":",
                alpha=0.7 if conn.enabled else 0.25,
                shrinkA=8,
                shrinkB=8,
            ),
        )

    for key, (x, y) in pos.items():
        if key < 0:
            color, label = INPUT_COLOR, f"in {key}"
        else:
            node = genome.nodes[key]
            color = OUTPUT_COLOR if key in outputs else HIDDEN_COLOR
            label = f"{key} {node.activation}\nb={node.bias:.2f}"
        ax.scatter([x], [y], s=220, color=color, edgecolors="black", zorder=3)
        ax.annotate(label, (x, y), textcoords="offset points", xytext=(0, 12), ha="center", fontsize=7)

    n_nodes, n_enabled = genome.size()
    ax.set_title(f"{title} (key {genome.key}, {n_nodes} nodes, {n_enabled} enabled connections)")
    ax.set_xlim(-0.5, max(x for x, _ in pos.values()) + 0.5)
    ax.set_ylim(0.0, 1.0)
    ax.axis("off")

    _save(fig, path)
