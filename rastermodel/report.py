"""Human-readable debug reports for session inputs."""

from typing import Any, Mapping

import numpy as np

from rastermodel.dtypes import numpy_to_engine_type
from rastermodel.parameters import REPORT_FLOAT_FORMAT


def _fmt(value: float) -> str:
    return REPORT_FLOAT_FORMAT.format(value)


def _describe_tensor(value: Any) -> str:
    """Describe one tensor as dtype, engine element type, shape and summary statistics."""
    arr = np.asarray(value)
    try:
        engine_type = numpy_to_engine_type(arr.dtype)
    except ValueError:
        engine_type = "unsupported"
    line = f"dtype={arr.dtype}, engine={engine_type}, shape={tuple(arr.shape)}"
    if arr.size == 0:
        return f"{line}, empty"
    if arr.dtype == np.bool_:
        return f"{line}, true={int(arr.sum())}/{arr.size}"
    if not np.issubdtype(arr.dtype, np.number):
        return f"{line}, non-numeric"

    arr64 = arr.astype(np.float64, copy=False)
    finite = np.isfinite(arr64)
    n_nonfinite = int(arr.size - finite.sum())
    if n_nonfinite == arr.size:
        return f"{line}, all {arr.size} values non-finite"
    valid = arr64[finite]
    return (
        f"{line}, min={_fmt(valid.min())}, max={_fmt(valid.max())}, "
        f"mean={_fmt(valid.mean())}, non_finite={n_nonfinite}"
    )


def format_debug_report(inputs: Mapping[str, Any], header: str = "") -> str:
    """Build a report with one line per input tensor; never raises."""
    lines = ["## debug report"]
    if header:
        lines.append(header)
    try:
        items = list(inputs.items())
    except Exception as err:  # report must degrade rather than raise
        lines.append(f"  <inputs not readable: {type(err).__name__}: {err}>")
        return "\n".join(lines)

    lines.append(f"  {len(items)} input tensors")
    for idx, (name, value) in enumerate(items):
        try:
            description = _describe_tensor(value)
        except Exception as err:  # report must degrade rather than raise
            description = f"<unreadable {type(value).__name__}: {type(err).__name__}: {err}>"
        lines.append(f"  input #{idx} '{name}': {description}")
    return "\n".join(lines)
