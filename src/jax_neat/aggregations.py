"""Aggregation functions reduce the stacked weighted inputs of a node.

Every function receives an array of shape ``(n_links, ...)`` and reduces it
over the first axis, so the same table serves single inputs and batches.
"""

from __future__ import annotations

from typing import Callable

import jax.numpy as jnp

from .activations import required_positional_args
from .errors import InvalidAggregationFunctionError

AggregationFn = Callable[[jnp.ndarray], jnp.ndarray]


def _empty(x: jnp.ndarray) -> bool:
    return x.shape[0] == 0


def product_aggregation(x):
    return jnp.prod(x, axis=0)


def sum_aggregation(x):
    return jnp.sum(x, axis=0)


def max_aggregation(x):
    if _empty(x):
        return jnp.zeros(x.shape[1:])
    return jnp.max(x, axis=0)


def min_aggregation(x):
    if _empty(x):
        return jnp.zeros(x.shape[1:])
    return jnp.min(x, axis=0)


def maxabs_aggregation(x):
    if _empty(x):
        return jnp.zeros(x.shape[1:])
    idx = jnp.argmax(jnp.abs(x), axis=0)
    return jnp.take_along_axis(x, jnp.expand_dims(idx, 0), axis=0)[0]


def median_aggregation(x):
    if _empty(x):
        return jnp.zeros(x.shape[1:])
    return jnp.median(x, axis=0)


def mean_aggregation(x):
    if _empty(x):
        return jnp.zeros(x.shape[1:])
    return jnp.mean(x, axis=0)


BUILTIN_AGGREGATIONS: dict[str, AggregationFn] = {
    "product": product_aggregation,
    "sum": sum_aggregation,
    "max": max_aggregation,
    "min": min_aggregation,
    "maxabs": maxabs_aggregation,
    "median": median_aggregation,
    "mean": mean_aggregation,
}


class AggregationFunctionSet:
    def __init__(self):
        self.functions: dict[str, AggregationFn] = {}
        for name, func in BUILTIN_AGGREGATIONS.items():
            self.add(name, func)

    def add(self, name: str, func: AggregationFn) -> None:
        if not callable(func):
            raise InvalidAggregationFunctionError("A function object is required.")
        arity = required_positional_args(func)
        if arity is not None and arity != 1:
            raise InvalidAggregationFunctionError(
                f"Aggregation {name!r} must take the stacked inputs as its only argument."
            )
        self.functions[name] = func

    def get(self, name: str) -> AggregationFn:
        func = self.functions.get(name)
        if func is None:
            raise InvalidAggregationFunctionError(f"No such aggregation function: {name!r}")
        return func

    def is_valid(self, name: str) -> bool:
        return name in self.functions
