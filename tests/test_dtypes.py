"""Tests for the engine element type bridge."""

import numpy as np
import pytest

from rastermodel.dtypes import engine_type_to_numpy, numpy_to_engine_type


pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "type_name, dtype",
    [
        pytest.param("tensor(float)", np.float32, id="float32"),
        pytest.param("tensor(double)", np.float64, id="float64"),
        pytest.param("tensor(int64)", np.int64, id="int64"),
        pytest.param("tensor(uint8)", np.uint8, id="uint8"),
        pytest.param("tensor(bool)", np.bool_, id="bool"),
    ],
)
def test_engine_type_round_trip(type_name, dtype):
    """Known element types map to numpy and back."""
    assert engine_type_to_numpy(type_name) == np.dtype(dtype)
    assert numpy_to_engine_type(dtype) == type_name


def test_unsupported_types_raise():
    """Unknown element types raise ValueError."""
    with pytest.raises(ValueError, match="tensor\\(string\\)"):
        engine_type_to_numpy("tensor(string)")
    with pytest.raises(ValueError):
        numpy_to_engine_type(np.complex64)
