"""Parameter registry for raster model filters.

Holds the ordered input bundles (placeholder name, receptive field, source
image), output bundles (tensor name, expression field), target node names and
user placeholders of one filter instance. Paired lists correspond by index.
``append_input_bundle``/``append_output_bundle`` keep them in lockstep; the
per-list setters do not, and mismatches are reported by ``validate``.
"""

import numbers
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from rastermodel.errors import ConfigurationError


SizeType = tuple[int, ...]


def _as_dim(value: Any, field: Any, label: str) -> int:
    # bool is an Integral subclass but never a size.
    if isinstance(value, bool) or not isinstance(value, (numbers.Integral, np.integer)):
        raise ConfigurationError(f"{label} must hold whole-number sizes; got {field!r}")
    return int(value)


def as_size(field: Iterable[int] | int, label: str = "field") -> SizeType:
    """Normalize a field to a tuple of ints, one per spatial dimension.

    Strings, floats and bools are rejected with ConfigurationError rather than
    coerced, so ``"16"`` never becomes ``(1, 6)`` and ``16.9`` never ``16``.
    """
    if isinstance(field, (str, bytes)):
        raise ConfigurationError(f"{label} must be an int or a sequence of ints; got {field!r}")
    if isinstance(field, (numbers.Integral, np.integer)) and not isinstance(field, bool):
        return (int(field),)
    try:
        values = list(field)
    except TypeError as err:
        raise ConfigurationError(f"{label} must be an int or a sequence of ints; got {field!r}") from err
    return tuple(_as_dim(value, field, label) for value in values)


@dataclass(frozen=True)
class InputBundle:
    """One model input: placeholder name, receptive field and source image."""

    name: str
    receptive_field: SizeType
    image: Any


@dataclass(frozen=True)
class OutputBundle:
    """One model output: tensor name and expression field."""

    name: str
    expression_field: SizeType


class ParameterRegistry:
    """Per-filter model parameters."""

    def __init__(self):
        self._input_placeholders: list[str] = []
        self._input_receptive_fields: list[SizeType] = []
        self._inputs: list[Any] = []
        self._output_tensors: list[str] = []
        self._output_expression_fields: list[SizeType] = []
        self._target_nodes_names: list[str] = []
        self._user_placeholders: dict[str, np.ndarray] = {}

    # ------------------------------------------------------------------ bundles
    def append_input_bundle(self, name: str, receptive_field: Iterable[int], image: Any) -> None:
        """Append one input bundle, growing the three input lists together."""
        receptive_field = as_size(receptive_field, f"receptive field of '{name}'")
        self._input_placeholders.append(str(name))
        self._input_receptive_fields.append(receptive_field)
        self._inputs.append(image)

    def append_output_bundle(self, name: str, expression_field: Iterable[int]) -> None:
        """Append one output bundle, growing both output lists together."""
        expression_field = as_size(expression_field, f"expression field of '{name}'")
        self._output_tensors.append(str(name))
        self._output_expression_fields.append(expression_field)

    @property
    def input_bundles(self) -> tuple[InputBundle, ...]:
        self._check_inputs()
        return tuple(
            InputBundle(name, field, image)
            for name, field, image in zip(self._input_placeholders, self._input_receptive_fields, self._inputs)
        )

    @property
    def output_bundles(self) -> tuple[OutputBundle, ...]:
        self._check_outputs()
        return tuple(
            OutputBundle(name, field)
            for name, field in zip(self._output_tensors, self._output_expression_fields)
        )

    # ------------------------------------------------------------------ lists
    @property
    def input_placeholders(self) -> list[str]:
        return list(self._input_placeholders)

    @input_placeholders.setter
    def input_placeholders(self, names: Sequence[str]) -> None:
        self._input_placeholders = [str(name) for name in names]

    @property
    def input_receptive_fields(self) -> list[SizeType]:
        return list(self._input_receptive_fields)

    @input_receptive_fields.setter
    def input_receptive_fields(self, fields: Sequence[Iterable[int]]) -> None:
        self._input_receptive_fields = [as_size(field, "receptive field") for field in fields]

    @property
    def inputs(self) -> list[Any]:
        return list(self._inputs)

    @inputs.setter
    def inputs(self, images: Sequence[Any]) -> None:
        self._inputs = list(images)

    @property
    def output_tensors(self) -> list[str]:
        return list(self._output_tensors)

    @output_tensors.setter
    def output_tensors(self, names: Sequence[str]) -> None:
        self._output_tensors = [str(name) for name in names]

    @property
    def output_expression_fields(self) -> list[SizeType]:
        return list(self._output_expression_fields)

    @output_expression_fields.setter
    def output_expression_fields(self, fields: Sequence[Iterable[int]]) -> None:
        self._output_expression_fields = [as_size(field, "expression field") for field in fields]

    @property
    def target_nodes_names(self) -> list[str]:
        return list(self._target_nodes_names)

    @target_nodes_names.setter
    def target_nodes_names(self, names: Sequence[str]) -> None:
        self._target_nodes_names = [str(name) for name in names]

    @property
    def user_placeholders(self) -> dict[str, np.ndarray]:
        return dict(self._user_placeholders)

    @user_placeholders.setter
    def user_placeholders(self, placeholders: Mapping[str, Any]) -> None:
        self._user_placeholders = {str(name): np.asarray(value) for name, value in placeholders.items()}

    # ------------------------------------------------------------------ checks
    def _check_inputs(self) -> None:
        n_names = len(self._input_placeholders)
        n_fields = len(self._input_receptive_fields)
        n_images = len(self._inputs)
        if n_images == 0 and n_names == 0 and n_fields == 0:
            raise ConfigurationError("no input bundle: at least one input image and placeholder are required")
        if not n_images == n_names == n_fields:
            raise ConfigurationError(
                "input lists disagree: "
                f"input images vs input placeholders vs input receptive fields = {n_images} vs {n_names} vs {n_fields}"
            )

    def _check_outputs(self) -> None:
        n_names = len(self._output_tensors)
        n_fields = len(self._output_expression_fields)
        if n_names != n_fields:
            raise ConfigurationError(
                f"output lists disagree: output tensors vs output expression fields = {n_names} vs {n_fields}"
            )

    def validate(self) -> None:
        """Raise ConfigurationError unless paired lists agree and fields are positive."""
        self._check_inputs()
        self._check_outputs()
        for label, names, fields in (
            ("receptive field", self._input_placeholders, self._input_receptive_fields),
            ("expression field", self._output_tensors, self._output_expression_fields),
        ):
            for name, field in zip(names, fields):
                if not field or any(value <= 0 for value in field):
                    raise ConfigurationError(f"{label} of '{name}' must hold positive sizes; got {field}")
        missing_images = [name for name, image in zip(self._input_placeholders, self._inputs) if image is None]
        if missing_images:
            raise ConfigurationError(f"no input image attached for placeholders {missing_images}")
