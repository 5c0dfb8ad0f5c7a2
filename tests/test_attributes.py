from __future__ import annotations

import numpy as np
import pytest

from jax_neat.attributes import (
    BoolAttribute,
    BoolAttributeConfig,
    FloatAttribute,
    FloatAttributeConfig,
    IntAttribute,
    IntAttributeConfig,
    StringAttribute,
    StringAttributeConfig,
)
from jax_neat.errors import ConfigurationError


def test_param_names_map_flat_names_to_fields():
    names = FloatAttribute("bias").param_names()
    assert names["bias_init_mean"] == "init_mean"
    assert names["bias_max_value"] == "max_value"
    assert "enabled_rate_to_true_add" in BoolAttribute("enabled").param_names()


def test_gaussian_init_is_clamped(rng):
    attr = FloatAttribute("bias")
    cfg = FloatAttributeConfig(init_mean=0.0, init_stdev=100.0, min_value=-1.0, max_value=1.0)
    values = [attr.init_value(rng, cfg) for _ in range(200)]
    assert all(-1.0 <= v <= 1.0 for v in values)
    assert -1.0 in values and 1.0 in values


def test_uniform_init_stays_within_two_stdev(rng):
    attr = FloatAttribute("weight")
    cfg = FloatAttributeConfig(init_mean=1.0, init_stdev=0.5, init_type="uniform")
    values = [attr.init_value(rng, cfg) for _ in range(200)]
    assert min(values) >= 0.0
    assert max(values) <= 2.0


def test_float_mutation_disabled_keeps_value(rng):
    attr = FloatAttribute("bias")
    cfg = FloatAttributeConfig(mutate_rate=0.0, replace_rate=0.0)
    assert all(attr.mutate_value(0.25, rng, cfg) == 0.25 for _ in range(50))


def test_float_mutation_perturbs_and_clamps(rng):
    attr = FloatAttribute("bias")
    cfg = FloatAttributeConfig(mutate_rate=1.0, mutate_power=10.0, min_value=-2.0, max_value=2.0)
    values = [attr.mutate_value(0.0, rng, cfg) for _ in range(100)]
    assert all(-2.0 <= v <= 2.0 for v in values)
    assert any(v != 0.0 for v in values)


def test_float_replacement_redraws_from_init_distribution(rng):
    attr = FloatAttribute("bias")
    cfg = FloatAttributeConfig(init_mean=5.0, init_stdev=0.0, mutate_rate=0.0, replace_rate=1.0)
    assert attr.mutate_value(-3.0, rng, cfg) == 5.0


@pytest.mark.parametrize(
    "cfg",
    [
        FloatAttributeConfig(min_value=1.0, max_value=-1.0),
        FloatAttributeConfig(init_type="cauchy"),
        FloatAttributeConfig(init_stdev=-1.0),
    ],
)
def test_float_validate_rejects_bad_config(cfg):
    with pytest.raises(ConfigurationError):
        FloatAttribute("bias").validate(cfg)


def test_validate_rejects_wrong_config_type():
    with pytest.raises(ConfigurationError):
        FloatAttribute("bias").validate(BoolAttributeConfig())


def test_int_attribute_produces_bounded_ints(rng):
    attr = IntAttribute("delay")
    cfg = IntAttributeConfig(init_stdev=20.0, mutate_rate=1.0, mutate_power=5.0)
    value = attr.init_value(rng, cfg)
    for _ in range(50):
        value = attr.mutate_value(value, rng, cfg)
        assert isinstance(value, int)
        assert cfg.min_value <= value <= cfg.max_value


@pytest.mark.parametrize("default, expected", [("true", True), ("on", True), ("0", False), ("No", False)])
def test_bool_init_from_literal_default(rng, default, expected):
    assert BoolAttribute("enabled").init_value(rng, BoolAttributeConfig(default=default)) is expected


def test_bool_random_default_gives_both_values(rng):
    attr = BoolAttribute("enabled")
    cfg = BoolAttributeConfig(default="random")
    values = {attr.init_value(rng, cfg) for _ in range(100)}
    assert values == {True, False}


def test_bool_rate_bias_only_applies_to_matching_value(rng):
    attr = BoolAttribute("enabled")
    cfg = BoolAttributeConfig(mutate_rate=0.0, rate_to_false_add=1.0)
    # Disabled genes see a zero rate and never flip back.
    assert all(attr.mutate_value(False, rng, cfg) is False for _ in range(50))
    flipped = [attr.mutate_value(True, rng, cfg) for _ in range(100)]
    assert False in flipped


def test_bool_validate_rejects_unknown_default():
    with pytest.raises(ConfigurationError):
        BoolAttribute("enabled").validate(BoolAttributeConfig(default="maybe"))


def test_string_init_and_mutation_use_options(rng):
    attr = StringAttribute("activation")
    options = ("sigmoid", "tanh", "relu")
    cfg = StringAttributeConfig(default="random", options=options, mutate_rate=1.0)
    assert attr.init_value(rng, cfg) in options
    seen = {attr.mutate_value("sigmoid", rng, cfg) for _ in range(100)}
    assert seen == set(options)


def test_string_fixed_default(rng):
    cfg = StringAttributeConfig(default="tanh", options=("sigmoid", "tanh"))
    assert StringAttribute("activation").init_value(rng, cfg) == "tanh"


@pytest.mark.parametrize(
    "cfg",
    [
        StringAttributeConfig(default="random", options=()),
        StringAttributeConfig(default="relu", options=("sigmoid",)),
    ],
)
def test_string_validate_rejects_bad_config(cfg):
    with pytest.raises(ConfigurationError):
        StringAttribute("activation").validate(cfg)


def test_uniform_init_with_mean_outside_bounds(rng):
    attr = FloatAttribute("bias")
    cfg = FloatAttributeConfig(init_mean=5.0, init_stdev=1.0, init_type="uniform", min_value=-1.0, max_value=1.0)
    attr.validate(cfg)
    assert all(attr.init_value(rng, cfg) == 1.0 for _ in range(20))


def test_uniform_init_window_wider_than_bounds(rng):
    attr = FloatAttribute("bias")
    cfg = FloatAttributeConfig(init_mean=0.0, init_stdev=5.0, init_type="uniform", min_value=-1.0, max_value=1.0)
    values = [attr.init_value(rng, cfg) for _ in range(100)]
    assert all(-1.0 <= v <= 1.0 for v in values)


def test_int_uniform_init_with_mean_outside_bounds(rng):
    attr = IntAttribute("delay")
    cfg = IntAttributeConfig(init_mean=-50.0, init_type="uniform")
    assert attr.init_value(rng, cfg) == cfg.min_value
