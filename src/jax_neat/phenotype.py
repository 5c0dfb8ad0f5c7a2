from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import jax.numpy as jnp
import numpy as np

from .activations import ActivationFn
from .aggregations import AggregationFn
from .config import GenomeConfig
from .graphs import feed_forward_layers

if TYPE_CHECKING:
    from .genome import Genome


@dataclass(frozen=True)
class NodeEval:
    key: int
    activation: ActivationFn
    aggregation: AggregationFn
    bias: float
    response: float
    links: tuple[tuple[int, float], ...]


class FeedForwardNetwork:
    """Compiled evaluation plan for a feed-forward genome.

    ``activate`` accepts one input vector of shape ``(num_inputs,)`` or a batch
    of shape ``(batch, num_inputs)`` and returns outputs in declared order.
    """

    def __init__(self, input_nodes: Sequence[int], output_nodes: Sequence[int], node_evals: Sequence[NodeEval]):
        self.input_nodes = list(input_nodes)
        self.output_nodes = list(output_nodes)
        self.node_evals = list(node_evals)

    @classmethod
    def create(cls, genome: Genome, cfg: GenomeConfig) -> "FeedForwardNetwork":
        connections = [c for c in genome.connections.values() if c.enabled]
        layers = feed_forward_layers(cfg.input_keys, cfg.output_keys, [c.key for c in connections])

        incoming: dict[int, list[tuple[int, float]]] = {}
        for conn in connections:
            incoming.setdefault(conn.dst, []).append((conn.src, conn.weight))

        node_evals = []
        for layer in layers:
            for node_key in layer:
                node = genome.nodes[node_key]
                node_evals.append(
                    NodeEval(
                        key=node_key,
                        activation=cfg.activation_defs.get(node.activation),
                        aggregation=cfg.aggregation_defs.get(node.aggregation),
                        bias=node.bias,
                        response=node.response,
                        links=tuple(sorted(incoming.get(node_key, []))),
                    )
                )

        return cls(cfg.input_keys, cfg.output_keys, node_evals)

    def activate(self, inputs) -> jnp.ndarray:
        x = jnp.asarray(inputs, dtype=jnp.float32)
        if x.ndim == 0 or x.shape[-1] != len(self.input_nodes):
            raise ValueError(f"Expected {len(self.input_nodes)} inputs, got shape {tuple(x.shape)}")

        batch_shape = x.shape[:-1]
        values: dict[int, jnp.ndarray] = {k: x[..., i] for i, k in enumerate(self.input_nodes)}

        for ev in self.node_evals:
            if ev.links:
                weighted = []
                for src, weight in ev.links:
                    if src not in values:
                        raise RuntimeError(f"Node {ev.key} scheduled before its source node {src}")
                    weighted.append(values[src] * jnp.float32(weight))
                stacked = jnp.stack(weighted)
            else:
                stacked = jnp.zeros((0,) + batch_shape, dtype=jnp.float32)
            s = ev.aggregation(stacked)
            values[ev.key] = ev.activation(jnp.float32(ev.bias) + jnp.float32(ev.response) * s)

        zeros = jnp.zeros(batch_shape, dtype=jnp.float32)
        return jnp.stack([jnp.broadcast_to(values.get(k, zeros), batch_shape) for k in self.output_nodes], axis=-1)

    def activate_numpy(self, inputs) -> np.ndarray:
        return np.asarray(self.activate(inputs), dtype=np.float64)
