from __future__ import annotations


class NEATError(Exception):
    """Base class for every error raised by jax_neat."""


class ConfigurationError(NEATError, ValueError):
    """A parameter is missing, unknown, mistyped or out of range."""


class KeyMismatchError(NEATError, ValueError):
    """Two genes with different keys were crossed over."""


class InvalidFunctionError(NEATError, TypeError):
    pass


class InvalidActivationFunctionError(InvalidFunctionError):
    pass


class InvalidAggregationFunctionError(InvalidFunctionError):
    pass


class MissingFitnessError(NEATError, RuntimeError):
    def __init__(self, genome_key: int):
        super().__init__(f"Fitness not assigned to genome {genome_key}")
        self.genome_key = genome_key


class CompleteExtinctionError(NEATError, RuntimeError):
    def __init__(self, message: str = "All species went extinct."):
        super().__init__(message)
