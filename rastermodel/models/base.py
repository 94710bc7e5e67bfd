"""Base contract for filters that run raster inputs through a model session.

A filter has N input images, each feeding one graph placeholder. For each input
the placeholder name and the receptive field (the input extent the model
"sees") must be given, so the number of input images, placeholders and
receptive fields must match; ``generate_output_information`` raises otherwise.

Output tensors are named with their expression field (the output extent the
model produces per run). Target nodes are evaluated for their side effects and
never returned. Scalar user placeholders (see ``rastermodel.expressions``) are
fed on every run alongside the pixel-derived tensors.

Concrete filters implement ``generate_data``: they pack pixel regions into a
tensor dictionary, call ``run_session`` once per region and scatter the
returned tensors into output rasters.
"""

import enum, logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

import numpy as np

from rastermodel.engine.base import Graph, SessionBase, TensorSpec
from rastermodel.errors import (
    ConfigurationError,
    EngineError,
    ExecutionError,
    IntrospectionError,
    SessionNotSetError,
)
from rastermodel.registry import InputBundle, OutputBundle, ParameterRegistry
from rastermodel.report import format_debug_report


class FilterState(enum.Enum):
    """Lifecycle state of a model filter."""

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    INTROSPECTED = "introspected"
    EXECUTING = "executing"


def _registry_property(attr: str, doc: str) -> property:
    """Forward a registry list to the filter; setting it drops introspection results."""

    def getter(self):
        return getattr(self.parameters, attr)

    def setter(self, value):
        setattr(self.parameters, attr, value)
        self._clear_tensor_cache()

    return property(getter, setter, doc=doc)


class ModelFilterBase(ABC):
    """Abstract base for all model filters."""

    def __init__(self, *, graph: Graph | None = None, session: SessionBase | None = None, logger=None):
        self.log = logger or logging.getLogger(__name__)
        self.parameters = ParameterRegistry()
        self._graph = graph
        # Borrowed: the caller keeps the session alive and may share it across filters.
        self._session = session
        self._running = 0
        self._clear_tensor_cache()

    # ------------------------------------------------------------------ graph/session
    @property
    def graph(self) -> Graph | None:
        return self._graph

    @graph.setter
    def graph(self, graph: Graph | None) -> None:
        self._graph = graph
        self._clear_tensor_cache()

    @property
    def session(self) -> SessionBase | None:
        return self._session

    @session.setter
    def session(self, session: SessionBase | None) -> None:
        self._session = session
        self._clear_tensor_cache()

    # ------------------------------------------------------------------ parameters
    input_placeholders = _registry_property("input_placeholders", "Input placeholder names.")
    input_receptive_fields = _registry_property("input_receptive_fields", "Input receptive fields.")
    inputs = _registry_property("inputs", "Input images, one per placeholder.")
    output_tensors = _registry_property("output_tensors", "Output tensor names.")
    output_expression_fields = _registry_property("output_expression_fields", "Output expression fields.")
    target_nodes_names = _registry_property("target_nodes_names", "Nodes evaluated for effect only.")
    user_placeholders = _registry_property("user_placeholders", "Scalar placeholders fed on every run.")

    def append_input_bundle(self, name: str, receptive_field: Iterable[int], image: Any) -> None:
        """Add one input image with its placeholder name and receptive field."""
        self.parameters.append_input_bundle(name, receptive_field, image)
        self._clear_tensor_cache()

    def append_output_bundle(self, name: str, expression_field: Iterable[int]) -> None:
        """Add one output tensor with its expression field."""
        self.parameters.append_output_bundle(name, expression_field)
        self._clear_tensor_cache()

    @property
    def input_bundles(self) -> tuple[InputBundle, ...]:
        return self.parameters.input_bundles

    @property
    def output_bundles(self) -> tuple[OutputBundle, ...]:
        return self.parameters.output_bundles

    # ------------------------------------------------------------------ read-only tensor info
    def _clear_tensor_cache(self) -> None:
        self._input_specs: tuple[TensorSpec, ...] = ()
        self._output_specs: tuple[TensorSpec, ...] = ()
        self._introspected = False

    @property
    def input_tensor_specs(self) -> tuple[TensorSpec, ...]:
        return self._input_specs

    @property
    def output_tensor_specs(self) -> tuple[TensorSpec, ...]:
        return self._output_specs

    @property
    def input_tensors_data_types(self) -> tuple[np.dtype, ...]:
        return tuple(spec.dtype for spec in self._input_specs)

    @property
    def output_tensors_data_types(self) -> tuple[np.dtype, ...]:
        return tuple(spec.dtype for spec in self._output_specs)

    @property
    def input_tensors_shapes(self) -> tuple[tuple[int | None, ...], ...]:
        return tuple(spec.shape for spec in self._input_specs)

    @property
    def output_tensors_shapes(self) -> tuple[tuple[int | None, ...], ...]:
        return tuple(spec.shape for spec in self._output_specs)

    @property
    def state(self) -> FilterState:
        if self._running > 0:
            return FilterState.EXECUTING
        if self._introspected:
            return FilterState.INTROSPECTED
        if self._graph is not None and self._session is not None and self.parameters.inputs:
            return FilterState.CONFIGURED
        return FilterState.UNCONFIGURED

    # ------------------------------------------------------------------ lifecycle
    def _require_session(self, action: str) -> SessionBase:
        if self._session is None:
            raise SessionNotSetError(f"session is not set; set it before {action}")
        if self._graph is None:
            raise SessionNotSetError(f"graph is not set; set it before {action}")
        return self._session

    def _introspect(self, session: SessionBase, names: list[str]) -> tuple[TensorSpec, ...]:
        specs = []
        for name in names:
            try:
                specs.append(session.introspect(name))
            except IntrospectionError:
                raise
            except (EngineError, KeyError, ValueError) as err:
                raise IntrospectionError(name, f"cannot introspect tensor '{name}': {err}") from err
        return tuple(specs)

    def generate_output_information(self) -> None:
        """Validate parameters and read the dtype/shape of every named tensor.

        Subclasses that derive output geometry from the expression fields call
        this first; the tensor specs are available once it returns.
        """
        self._clear_tensor_cache()
        session = self._require_session("generate_output_information()")
        self.parameters.validate()

        # Build into locals so a failed lookup leaves the cache empty.
        input_specs = self._introspect(session, self.parameters.input_placeholders)
        output_specs = self._introspect(session, self.parameters.output_tensors)
        self._input_specs = input_specs
        self._output_specs = output_specs
        self._introspected = True

        summary_l = [f"  input  {spec.name}: {spec.dtype} {spec.shape}" for spec in input_specs]
        summary_l += [f"  output {spec.name}: {spec.dtype} {spec.shape}" for spec in output_specs]
        self.log.info(f"introspected graph '{self._graph.name}'\n" + "\n".join(summary_l))

    def _build_feed(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        """Merge per-run inputs with user placeholders, rejecting shared keys."""
        user_placeholders = self.parameters.user_placeholders
        collisions = sorted(set(inputs).intersection(user_placeholders))
        if collisions:
            raise ConfigurationError(f"inputs and user placeholders both define {collisions}")
        feed = dict(inputs)
        feed.update(user_placeholders)
        return feed

    def run_session(self, inputs: Mapping[str, np.ndarray]) -> list[np.ndarray]:
        """Run the session on ``inputs`` and return tensors in ``output_tensors`` order.

        Target nodes are evaluated but not returned. Engine failures raise
        ExecutionError with the engine message kept verbatim and a debug report
        of the fed tensors attached.
        """
        session = self._require_session("run_session()")
        feed = self._build_feed(inputs)
        output_names = self.parameters.output_tensors
        target_names = self.parameters.target_nodes_names
        self.log.debug(f"running session: feed={sorted(feed)}, outputs={output_names}, targets={target_names}")

        self._running += 1
        try:
            try:
                outputs = session.run(target_names, output_names, feed)
            except EngineError as err:
                engine_message = str(err)
                raise ExecutionError(
                    f"session run failed: {engine_message}",
                    engine_message=engine_message,
                    debug_report=self.generate_debug_report(feed),
                ) from err
        finally:
            self._running -= 1

        outputs = list(outputs)
        if len(outputs) != len(output_names):
            raise ExecutionError(
                f"session returned {len(outputs)} tensors for {len(output_names)} requested outputs",
                debug_report=self.generate_debug_report(feed),
            )
        return outputs

    def generate_debug_report(self, inputs: Mapping[str, Any]) -> str:
        """Describe each input tensor (name, dtype, shape, statistics); never raises."""
        graph_name = self._graph.name if self._graph is not None else "<unset>"
        header = (
            f"  graph: {graph_name}\n"
            f"  outputs: {self.parameters.output_tensors}\n"
            f"  targets: {self.parameters.target_nodes_names}"
        )
        return format_debug_report(inputs, header=header)

    @abstractmethod
    def generate_data(self) -> Any:
        """Stream the input images through the session and produce outputs."""
