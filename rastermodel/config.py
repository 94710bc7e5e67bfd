"""JSON model configuration for raster model filters.

Example::

    {
        "model_fp": "model.onnx",
        "sha256": "...",
        "providers": ["CPUExecutionProvider"],
        "inputs": [{"name": "x_input", "receptive_field": [16, 16]}],
        "outputs": [{"name": "y_output", "expression_field": [1, 1]}],
        "target_nodes": [],
        "user_placeholders": ["drop_rate=0.0 is_training=false"]
    }
"""

import json, logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from rastermodel.errors import ConfigurationError
from rastermodel.expressions import expressions_to_placeholders
from rastermodel.io import RasterImage
from rastermodel.parameters import DEFAULT_PROVIDERS
from rastermodel.registry import SizeType, as_size


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TensorEntry:
    """Configured tensor name with its receptive or expression field."""

    name: str
    field: SizeType


@dataclass(frozen=True)
class ModelConfig:
    """Resolved model configuration."""

    model_fp: Path
    inputs: tuple[TensorEntry, ...]
    outputs: tuple[TensorEntry, ...] = ()
    sha256: str | None = None
    providers: tuple[str, ...] = DEFAULT_PROVIDERS
    target_nodes: tuple[str, ...] = ()
    user_placeholders: tuple[str, ...] = ()

    def apply(self, model_filter, images: Sequence[Any], logger=None) -> None:
        """Configure a filter's bundles, targets and user placeholders.

        ``images`` are matched to the configured inputs by position; path-like
        entries are read with rasterio.
        """
        log = logger or logging.getLogger(__name__)
        if len(images) != len(self.inputs):
            raise ConfigurationError(
                f"configured inputs vs given images = {len(self.inputs)} vs {len(images)}"
            )
        for entry, image in zip(self.inputs, images):
            if isinstance(image, (str, Path)):
                image = RasterImage.from_file(image)
            model_filter.append_input_bundle(entry.name, entry.field, image)
        for entry in self.outputs:
            model_filter.append_output_bundle(entry.name, entry.field)
        model_filter.target_nodes_names = list(self.target_nodes)
        if self.user_placeholders:
            model_filter.user_placeholders = expressions_to_placeholders(self.user_placeholders)
        log.debug(
            f"applied config for {self.model_fp.name}: "
            f"{len(self.inputs)} inputs, {len(self.outputs)} outputs, {len(self.target_nodes)} targets"
        )


def _parse_entries(payload: dict, key: str, field_key: str, config_fp: Path) -> tuple[TensorEntry, ...]:
    raw_l = payload.get(key, [])
    if not isinstance(raw_l, list):
        raise ConfigurationError(f"'{key}' must be a list in {config_fp}")
    entries = []
    for idx, raw in enumerate(raw_l):
        if not isinstance(raw, dict) or "name" not in raw or field_key not in raw:
            raise ConfigurationError(f"{key}[{idx}] must define 'name' and '{field_key}' in {config_fp}")
        entries.append(TensorEntry(name=str(raw["name"]), field=as_size(raw[field_key], f"{key}[{idx}].{field_key}")))
    return tuple(entries)


def load_model_config(config_fp: str | Path) -> ModelConfig:
    """Load a model configuration from JSON."""
    path = Path(config_fp).expanduser().resolve()
    assert path.exists(), f"config file does not exist: {path}"
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as err:
        raise ConfigurationError(f"invalid JSON in {path}: {err}") from err
    if not isinstance(payload, dict):
        raise ConfigurationError(f"config must be a JSON object: {path}")

    if "model_fp" not in payload:
        raise ConfigurationError(f"config is missing 'model_fp': {path}")
    # Relative model paths are resolved against the config file location.
    model_fp = Path(payload["model_fp"]).expanduser()
    if not model_fp.is_absolute():
        model_fp = path.parent / model_fp

    inputs = _parse_entries(payload, "inputs", "receptive_field", path)
    if not inputs:
        raise ConfigurationError(f"config must list at least one input: {path}")

    user_placeholders = payload.get("user_placeholders", [])
    if isinstance(user_placeholders, str):
        user_placeholders = [user_placeholders]
    providers = tuple(payload.get("providers") or DEFAULT_PROVIDERS)

    config = ModelConfig(
        model_fp=model_fp.resolve(),
        inputs=inputs,
        outputs=_parse_entries(payload, "outputs", "expression_field", path),
        sha256=payload.get("sha256"),
        providers=providers,
        target_nodes=tuple(str(name) for name in payload.get("target_nodes", [])),
        user_placeholders=tuple(str(expr) for expr in user_placeholders),
    )
    log.debug(f"loaded model config from\n    {path}")
    return config
