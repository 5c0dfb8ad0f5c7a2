"""Built-in node activation functions and the name -> function table."""

from __future__ import annotations

import inspect
from typing import Callable

import jax.numpy as jnp

from .errors import InvalidActivationFunctionError

ActivationFn = Callable[[jnp.ndarray], jnp.ndarray]


def sigmoid_activation(z):
    z = jnp.clip(5.0 * z, -60.0, 60.0)
    return 1.0 / (1.0 + jnp.exp(-z))


def tanh_activation(z):
    z = jnp.clip(2.5 * z, -60.0, 60.0)
    return jnp.tanh(z)


def sin_activation(z):
    z = jnp.clip(5.0 * z, -60.0, 60.0)
    return jnp.sin(z)


def gauss_activation(z):
    z = jnp.clip(z, -3.4, 3.4)
    return jnp.exp(-5.0 * z * z)


def relu_activation(z):
    return jnp.maximum(0.0, z)


def elu_activation(z):
    return jnp.where(z > 0.0, z, jnp.exp(jnp.minimum(z, 0.0)) - 1.0)


def lelu_activation(z):
    leaky = 0.005
    return jnp.where(z > 0.0, z, leaky * z)


def selu_activation(z):
    lam = 1.0507009873554804934193349852946
    alpha = 1.6732632423543772848170429916717
    return jnp.where(z > 0.0, lam * z, lam * alpha * (jnp.exp(jnp.minimum(z, 0.0)) - 1.0))


def softplus_activation(z):
    z = jnp.clip(5.0 * z, -60.0, 60.0)
    return 0.2 * jnp.log1p(jnp.exp(z))


def identity_activation(z):
    return jnp.asarray(z)


def clamped_activation(z):
    return jnp.clip(z, -1.0, 1.0)


def inv_activation(z):
    z = jnp.asarray(z, dtype=jnp.float32)
    safe = jnp.where(z == 0.0, 1.0, z)
    out = jnp.where(z == 0.0, 0.0, 1.0 / safe)
    return jnp.where(jnp.isfinite(out), out, 0.0)


def log_activation(z):
    return jnp.log(jnp.maximum(z, 1e-7))


def exp_activation(z):
    return jnp.exp(jnp.clip(z, -60.0, 60.0))


def abs_activation(z):
    return jnp.abs(z)


def hat_activation(z):
    return jnp.maximum(0.0, 1.0 - jnp.abs(z))


def square_activation(z):
    return z * z


def cube_activation(z):
    return z * z * z


BUILTIN_ACTIVATIONS: dict[str, ActivationFn] = {
    "sigmoid": sigmoid_activation,
    "tanh": tanh_activation,
    "sin": sin_activation,
    "gauss": gauss_activation,
    "relu": relu_activation,
    "elu": elu_activation,
    "lelu": lelu_activation,
    "selu": selu_activation,
    "softplus": softplus_activation,
    "identity": identity_activation,
    "clamped": clamped_activation,
    "inv": inv_activation,
    "log": log_activation,
    "exp": exp_activation,
    "abs": abs_activation,
    "hat": hat_activation,
    "square": square_activation,
    "cube": cube_activation,
}


def required_positional_args(func: Callable) -> int | None:
    """Number of positional parameters ``func`` needs, or None if it cannot be inspected."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in sig.parameters.values():
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD) and param.default is param.empty:
            count += 1
    return count


class ActivationFunctionSet:
    def __init__(self):
        self.functions: dict[str, ActivationFn] = {}
        for name, func in BUILTIN_ACTIVATIONS.items():
            self.add(name, func)

    def add(self, name: str, func: ActivationFn) -> None:
        if not callable(func):
            raise InvalidActivationFunctionError("A function object is required.")
        arity = required_positional_args(func)
        if arity is not None and arity != 1:
            raise InvalidActivationFunctionError(
                f"A single-argument function is required for activation {name!r}."
            )
        self.functions[name] = func

    def get(self, name: str) -> ActivationFn:
        func = self.functions.get(name)
        if func is None:
            raise InvalidActivationFunctionError(f"No such activation function: {name!r}")
        return func

    def is_valid(self, name: str) -> bool:
        return name in self.functions
