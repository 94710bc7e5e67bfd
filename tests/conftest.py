"""Pytest fixtures for rastermodel tests."""

import logging, pathlib
from collections import Counter
from typing import Mapping, Sequence

import numpy as np
import pytest

from rastermodel.engine.base import Graph, SessionBase, TensorSpec
from rastermodel.errors import EngineError, IntrospectionError
from rastermodel.io import RasterImage
from rastermodel.models.base import ModelFilterBase


class RecordingSession(SessionBase):
    """In-memory session that doubles its first input and counts target evaluations."""

    def __init__(self, specs: Sequence[TensorSpec], required_inputs: Sequence[str] = ("x_input",)):
        self.specs = {spec.name: spec for spec in specs}
        self.required_inputs = tuple(required_inputs)
        self.target_hits: Counter = Counter()
        self.calls: list[dict] = []

    def introspect(self, tensor_name: str) -> TensorSpec:
        if tensor_name not in self.specs:
            raise IntrospectionError(tensor_name)
        return self.specs[tensor_name]

    def run(self, target_nodes, output_names, feed: Mapping[str, np.ndarray]) -> list[np.ndarray]:
        missing = [name for name in self.required_inputs if name not in feed]
        if missing:
            raise EngineError(f"Required inputs ({missing}) are missing from input feed ({list(feed)}).")
        unknown = [name for name in output_names if name not in self.specs]
        if unknown:
            raise EngineError(f"Invalid output names: {unknown}")
        for name in target_nodes:
            self.target_hits[name] += 1
        self.calls.append({"targets": list(target_nodes), "outputs": list(output_names), "feed": dict(feed)})
        scale = float(np.asarray(feed.get("scale", 1.0)))
        base = np.asarray(feed[self.required_inputs[0]], dtype=np.float32)
        return [base * 2.0 * scale for _ in output_names]


class FullImageFilter(ModelFilterBase):
    """Test filter feeding each whole input image as one NHWC tensor."""

    def generate_data(self) -> list[np.ndarray]:
        feed = {}
        for bundle in self.input_bundles:
            # (bands, rows, cols) -> (1, rows, cols, bands)
            feed[bundle.name] = np.ascontiguousarray(np.transpose(bundle.image.array, (1, 2, 0))[np.newaxis, ...])
        return self.run_session(feed)


#===============================================================================
# pytest custom config------------
#===============================================================================


def pytest_report_header(config):
    """Show pytest invocation arguments in the test header."""
    return f"pytest arguments: {' '.join(config.invocation_params.args)}"


# -------------------
# ----- Fixtures -----
# -------------------
@pytest.fixture(scope="session")
def logger():
    """Simple logger fixture for the function under test."""
    log = logging.getLogger("pytest")
    log.setLevel(logging.DEBUG)
    # keep handlers minimal to avoid duplicate logs across runs
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter("%(levelname)s:%(name)s:%(message)s")
        handler.setFormatter(formatter)
        log.addHandler(handler)
    return log


@pytest.fixture(scope="function")
def tensor_specs() -> list[TensorSpec]:
    """Declared specs of the in-memory test graph."""
    return [
        TensorSpec("x_input", np.dtype(np.float32), (None, 16, 16, 1)),
        TensorSpec("x_aux", np.dtype(np.float32), (None, 32, 32, 3)),
        TensorSpec("scale", np.dtype(np.float32), ()),
        TensorSpec("y_output", np.dtype(np.float32), (None, 16, 16, 1)),
        TensorSpec("counter", np.dtype(np.int64), ()),
    ]


@pytest.fixture(scope="function")
def recording_session(tensor_specs) -> RecordingSession:
    return RecordingSession(tensor_specs)


@pytest.fixture(scope="function")
def dummy_graph() -> Graph:
    return Graph(model_bytes=b"dummy-graph")


@pytest.fixture(scope="function")
def image_a() -> RasterImage:
    """Single-band 16x16 raster image."""
    return RasterImage(np.arange(256, dtype=np.float32).reshape((16, 16)))


@pytest.fixture(scope="function")
def configured_filter(recording_session, dummy_graph, image_a, logger) -> FullImageFilter:
    """Filter with one input bundle and one output bundle."""
    model_filter = FullImageFilter(graph=dummy_graph, session=recording_session, logger=logger)
    model_filter.append_input_bundle("x_input", (16, 16), image_a)
    model_filter.append_output_bundle("y_output", (1, 1))
    return model_filter


@pytest.fixture(scope="session")
def onnx_model_fp(tmp_path_factory) -> pathlib.Path:
    """Write a tiny ONNX graph: y_output = x_input * scale, aux_sum = x_input + x_input."""
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper

    x_input = helper.make_tensor_value_info("x_input", TensorProto.FLOAT, ["batch", 16, 16, 1])
    scale = helper.make_tensor_value_info("scale", TensorProto.FLOAT, [])
    y_output = helper.make_tensor_value_info("y_output", TensorProto.FLOAT, ["batch", 16, 16, 1])
    aux_sum = helper.make_tensor_value_info("aux_sum", TensorProto.FLOAT, ["batch", 16, 16, 1])
    nodes = [
        helper.make_node("Mul", ["x_input", "scale"], ["y_output"]),
        helper.make_node("Add", ["x_input", "x_input"], ["aux_sum"]),
    ]
    graph = helper.make_graph(nodes, "tiny_raster_model", [x_input, scale], [y_output, aux_sum])
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    # Pin an IR version that released onnxruntime builds accept.
    model.ir_version = 8
    onnx.checker.check_model(model)

    model_fp = tmp_path_factory.mktemp("models") / "tiny_raster_model.onnx"
    onnx.save(model, str(model_fp))
    return model_fp
