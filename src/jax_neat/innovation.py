from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass
class NodeKeyIndexer:
    """Hands out new hidden-node keys for one evolutionary run.

    Splitting the same connection again reuses the key from the first split
    (when that key is free in the genome being mutated), so structurally
    identical mutations in different genomes line up for crossover and
    compatibility distance.
    """

    next_node_key: int
    split_keys: dict[tuple[int, int], int] = field(default_factory=dict)

    def new_key(self, nodes: Mapping[int, object]) -> int:
        key = self.next_node_key
        while key in nodes:
            key += 1
        self.next_node_key = key + 1
        return key

    def get_split(self, src: int, dst: int, nodes: Mapping[int, object]) -> int:
        pair = (src, dst)
        key = self.split_keys.get(pair)
        if key is not None and key not in nodes:
            return key
        key = self.new_key(nodes)
        self.split_keys.setdefault(pair, key)
        return key
