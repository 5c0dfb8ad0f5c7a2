"""Directed-graph helpers shared by structural mutation and phenotype compilation.

Edges are ``(source, target)`` pairs of node keys. All functions are pure.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Hashable, Iterable, Sequence

Edge = tuple[Hashable, Hashable]


def creates_cycle(connections: Iterable[Edge], test: Edge) -> bool:
    """Return True if adding ``test`` to an acyclic ``connections`` would create a cycle."""
    i, o = test
    if i == o:
        return True

    outgoing: dict[Hashable, list[Hashable]] = defaultdict(list)
    for a, b in connections:
        outgoing[a].append(b)

    visited = {o}
    frontier = [o]
    while frontier:
        nxt = []
        for node in frontier:
            for target in outgoing.get(node, ()):
                if target == i:
                    return True
                if target not in visited:
                    visited.add(target)
                    nxt.append(target)
        frontier = nxt
    return False


def required_for_output(
    inputs: Sequence[Hashable],
    outputs: Sequence[Hashable],
    connections: Iterable[Edge],
) -> set[Hashable]:
    """Nodes whose value is needed to compute the outputs (inputs excluded, outputs included)."""
    input_set = set(inputs)
    overlap = input_set.intersection(outputs)
    if overlap:
        raise ValueError(f"Input and output node sets must be disjoint, found {sorted(overlap)}")

    incoming: dict[Hashable, list[Hashable]] = defaultdict(list)
    for a, b in connections:
        incoming[b].append(a)

    required = set(outputs)
    frontier = set(outputs)
    while frontier:
        layer = set()
        for node in frontier:
            for source in incoming.get(node, ()):
                if source not in input_set and source not in required:
                    layer.add(source)
        required |= layer
        frontier = layer
    return required


def feed_forward_layers(
    inputs: Sequence[Hashable],
    outputs: Sequence[Hashable],
    connections: Sequence[Edge],
) -> list[list[Hashable]]:
    """Partition the required nodes into layers that can be evaluated in order.

    Required nodes without any incoming connection form the first layer; each
    following layer holds the nodes whose sources have all been evaluated.
    Nodes on a cycle are never emitted.
    """
    connections = list(connections)
    required = required_for_output(inputs, outputs, connections)

    incoming: dict[Hashable, list[Hashable]] = defaultdict(list)
    for a, b in connections:
        incoming[b].append(a)

    layers: list[list[Hashable]] = []
    evaluated = set(inputs)

    sourceless = sorted(n for n in required if not incoming.get(n))
    if sourceless:
        layers.append(sourceless)
        evaluated.update(sourceless)

    while True:
        candidates = {b for a, b in connections if a in evaluated and b not in evaluated}
        layer = sorted(
            n for n in candidates
            if n in required and all(a in evaluated for a in incoming[n])
        )
        if not layer:
            break
        layers.append(layer)
        evaluated.update(layer)

    return layers
