"""ONNX Runtime graph loader and session binding."""

import hashlib, logging, time
from pathlib import Path
from typing import Any, Mapping, Sequence

import numpy as np
import onnxruntime as ort

from rastermodel.dtypes import engine_type_to_numpy
from rastermodel.engine.base import Graph, SessionBase, TensorSpec
from rastermodel.errors import EngineError, IntrospectionError
from rastermodel.parameters import DEFAULT_PROVIDERS


log = logging.getLogger(__name__)


def load_graph(model_fp: str | Path, expected_sha256: str | None = None, logger=None) -> Graph:
    """Read a serialized ONNX graph from disk, optionally verifying its SHA256."""
    log = logger or logging.getLogger(__name__)
    path = Path(model_fp).expanduser().resolve()
    assert path.exists(), f"model file does not exist: {path}"
    assert path.is_file(), f"model path is not a file: {path}"

    model_bytes = path.read_bytes()
    actual_sha256 = hashlib.sha256(model_bytes).hexdigest()
    if expected_sha256 is not None and actual_sha256.lower() != expected_sha256.strip().lower():
        raise ValueError(
            f"checksum mismatch for {path}: "
            f"expected {expected_sha256}, got {actual_sha256}"
        )
    log.debug(f"loaded {len(model_bytes):,} graph bytes (sha256={actual_sha256}) from\n    {path}")
    return Graph(model_bytes=model_bytes, source_fp=path, sha256=actual_sha256)


def _resolve_dims(dims: list[Any]) -> tuple[int | None, ...]:
    """Map ORT shape metadata to ints, with symbolic or unknown dims as None."""
    return tuple(dim if isinstance(dim, int) and dim >= 0 else None for dim in dims)


class SessionORT(SessionBase):
    """Session adapter over an ``onnxruntime.InferenceSession``.

    ONNX graphs only expose their declared outputs, so target nodes must be
    graph outputs; they are fetched alongside the requested outputs and dropped
    from the result.
    """

    def __init__(self, session: ort.InferenceSession, logger=None):
        self.session = session
        self.log = logger or logging.getLogger(__name__)
        self._input_meta = {node.name: node for node in session.get_inputs()}
        self._output_meta = {node.name: node for node in session.get_outputs()}

    @property
    def input_names(self) -> list[str]:
        return list(self._input_meta)

    @property
    def output_names(self) -> list[str]:
        return list(self._output_meta)

    def introspect(self, tensor_name: str) -> TensorSpec:
        """Return the declared dtype and shape of a graph input or output."""
        node = self._input_meta.get(tensor_name) or self._output_meta.get(tensor_name)
        if node is None:
            raise IntrospectionError(
                tensor_name,
                f"tensor '{tensor_name}' not found in graph; "
                f"inputs={self.input_names}, outputs={self.output_names}",
            )
        try:
            dtype = engine_type_to_numpy(node.type)
        except ValueError as err:
            raise IntrospectionError(tensor_name, f"tensor '{tensor_name}': {err}") from err
        return TensorSpec(name=tensor_name, dtype=dtype, shape=_resolve_dims(list(node.shape)))

    def run(
        self,
        target_nodes: Sequence[str],
        output_names: Sequence[str],
        feed: Mapping[str, np.ndarray],
    ) -> list[np.ndarray]:
        """Run the graph, fetching outputs plus targets, and return the outputs only."""
        # Targets already requested as outputs, or named twice, are fetched once.
        extra_l = [name for name in dict.fromkeys(target_nodes) if name not in output_names]
        fetch_l = list(output_names) + extra_l
        unknown_targets = [name for name in target_nodes if name not in self._output_meta]
        if unknown_targets:
            raise EngineError(f"target nodes must be graph outputs; not found: {unknown_targets}")

        start = time.perf_counter()
        try:
            results = self.session.run(fetch_l, dict(feed))
        except Exception as err:
            # Keep the native ORT diagnostic text as the message.
            raise EngineError(str(err)) from err
        self.log.debug(
            f"ORT run fetched {len(fetch_l)} tensors "
            f"({len(output_names)} outputs, {len(fetch_l) - len(output_names)} targets) "
            f"in {time.perf_counter() - start:.3f}s"
        )
        return list(results[: len(output_names)])


def create_session(
    graph: Graph,
    providers: Sequence[str] = DEFAULT_PROVIDERS,
    logger=None,
) -> SessionORT:
    """Create an ORT session bound to a graph."""
    log = logger or logging.getLogger(__name__)
    assert providers, "providers cannot be empty"
    assert graph.model_bytes, "graph has no model bytes"
    log.debug(f"creating ORT session for {graph.name} with providers={list(providers)}")
    try:
        session = ort.InferenceSession(graph.model_bytes, providers=list(providers))
    except Exception as err:
        raise EngineError(f"failed to create session for {graph.name}: {err}") from err
    log.info(
        f"loaded ORT graph '{graph.name}' with providers={session.get_providers()}; "
        f"{len(session.get_inputs())} inputs, {len(session.get_outputs())} outputs"
    )
    return SessionORT(session, logger=log)
