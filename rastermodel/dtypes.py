"""Bridge between engine element type names and numpy dtypes."""

import numpy as np


# ONNX Runtime reports element types as 'tensor(<name>)'.
_ENGINE_TO_NUMPY = {
    "tensor(float)": np.dtype(np.float32),
    "tensor(float16)": np.dtype(np.float16),
    "tensor(double)": np.dtype(np.float64),
    "tensor(int8)": np.dtype(np.int8),
    "tensor(int16)": np.dtype(np.int16),
    "tensor(int32)": np.dtype(np.int32),
    "tensor(int64)": np.dtype(np.int64),
    "tensor(uint8)": np.dtype(np.uint8),
    "tensor(uint16)": np.dtype(np.uint16),
    "tensor(uint32)": np.dtype(np.uint32),
    "tensor(uint64)": np.dtype(np.uint64),
    "tensor(bool)": np.dtype(np.bool_),
}
_NUMPY_TO_ENGINE = {dtype: name for name, dtype in _ENGINE_TO_NUMPY.items()}


def engine_type_to_numpy(type_name: str) -> np.dtype:
    """Return the numpy dtype for an engine element type name."""
    key = str(type_name).strip().lower()
    if key not in _ENGINE_TO_NUMPY:
        raise ValueError(f"unsupported engine element type: {type_name}")
    return _ENGINE_TO_NUMPY[key]


def numpy_to_engine_type(dtype) -> str:
    """Return the engine element type name for a numpy dtype."""
    key = np.dtype(dtype)
    if key not in _NUMPY_TO_ENGINE:
        raise ValueError(f"no engine element type for numpy dtype {key}")
    return _NUMPY_TO_ENGINE[key]
