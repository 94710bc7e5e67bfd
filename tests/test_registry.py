"""Tests for the parameter registry."""

import numpy as np
import pytest

from rastermodel.errors import ConfigurationError
from rastermodel.registry import InputBundle, OutputBundle, ParameterRegistry, as_size


pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "field, expected",
    [
        pytest.param([16, 16], (16, 16), id="list"),
        pytest.param((np.int64(8), 4), (8, 4), id="numpy_ints"),
        pytest.param(5, (5,), id="scalar"),
    ],
)
def test_as_size_normalizes_fields(field, expected):
    """Fields become tuples of plain ints."""
    size = as_size(field)
    assert size == expected
    assert all(type(value) is int for value in size)


@pytest.mark.parametrize(
    "field",
    [
        pytest.param("16", id="str"),
        pytest.param(b"16", id="bytes"),
        pytest.param(16.5, id="float_scalar"),
        pytest.param([16.9, 16], id="float_entry"),
        pytest.param([True, 16], id="bool_entry"),
        pytest.param(True, id="bool_scalar"),
        pytest.param(None, id="none"),
    ],
)
def test_as_size_rejects_non_integer_fields(field):
    """Non-integer fields raise instead of being coerced into plausible sizes."""
    with pytest.raises(ConfigurationError, match="receptive field"):
        as_size(field, "receptive field")


def test_failed_append_leaves_lists_untouched():
    """A rejected field does not grow any of the paired lists."""
    registry = ParameterRegistry()
    with pytest.raises(ConfigurationError, match="'x'"):
        registry.append_input_bundle("x", "16", object())
    with pytest.raises(ConfigurationError, match="'y'"):
        registry.append_output_bundle("y", [1.5, 1])
    assert registry.input_placeholders == []
    assert registry.inputs == []
    assert registry.output_tensors == []


def test_append_bundles_grow_lists_together():
    """Bundle appends keep the paired lists in lockstep."""
    registry = ParameterRegistry()
    registry.append_input_bundle("a", [16, 16], "image-a")
    registry.append_input_bundle("b", [32, 32], "image-b")
    registry.append_output_bundle("y", [1, 1])

    assert registry.input_placeholders == ["a", "b"]
    assert registry.input_receptive_fields == [(16, 16), (32, 32)]
    assert registry.inputs == ["image-a", "image-b"]
    assert registry.input_bundles == (
        InputBundle("a", (16, 16), "image-a"),
        InputBundle("b", (32, 32), "image-b"),
    )
    assert registry.output_bundles == (OutputBundle("y", (1, 1)),)
    registry.validate()


def test_setters_do_not_repair_mismatches():
    """Setting one paired list alone is accepted but fails validation."""
    registry = ParameterRegistry()
    registry.append_input_bundle("a", [16, 16], "image-a")
    registry.input_placeholders = ["a", "b"]
    assert registry.input_placeholders == ["a", "b"]
    with pytest.raises(ConfigurationError, match="1 vs 2 vs 1"):
        registry.validate()
    with pytest.raises(ConfigurationError):
        registry.input_bundles


def test_getters_return_copies():
    """Mutating a returned list leaves the registry unchanged."""
    registry = ParameterRegistry()
    registry.append_output_bundle("y", [1, 1])
    registry.output_tensors.append("z")
    registry.user_placeholders["k"] = np.float32(1.0)
    assert registry.output_tensors == ["y"]
    assert registry.user_placeholders == {}


def test_missing_image_is_configuration_error():
    """A placeholder with no attached image fails validation."""
    registry = ParameterRegistry()
    registry.append_input_bundle("a", [16, 16], None)
    with pytest.raises(ConfigurationError, match="'a'"):
        registry.validate()


def test_zero_outputs_is_valid():
    """Outputs are optional; target-only graphs are allowed."""
    registry = ParameterRegistry()
    registry.append_input_bundle("a", [16, 16], "image-a")
    registry.target_nodes_names = ["init"]
    registry.validate()
    assert registry.output_bundles == ()
