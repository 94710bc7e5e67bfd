"""Inference engine interfaces for raster model filters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np


@dataclass(frozen=True)
class Graph:
    """Serialized model graph held by value."""

    model_bytes: bytes
    source_fp: Path | None = None
    sha256: str = ""

    @property
    def name(self) -> str:
        """Return a display name for logs and reports."""
        if self.source_fp is not None:
            return self.source_fp.name
        return f"<in-memory graph, {len(self.model_bytes):,} bytes>"


@dataclass(frozen=True)
class TensorSpec:
    """Declared element type and shape of one named tensor.

    Dimensions the graph leaves symbolic are reported as ``None``.
    """

    name: str
    dtype: np.dtype
    shape: tuple[int | None, ...]

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def is_fully_defined(self) -> bool:
        return all(dim is not None for dim in self.shape)


class SessionBase(ABC):
    """Abstract execution session shared by one or more filters.

    Filters only borrow a session: they never close it, and the caller keeps it
    alive for as long as any filter references it. Implementations must accept
    concurrent ``run`` calls from several threads.
    """

    @abstractmethod
    def introspect(self, tensor_name: str) -> TensorSpec:
        """Return the declared dtype and shape of a graph input or output."""

    @abstractmethod
    def run(
        self,
        target_nodes: Sequence[str],
        output_names: Sequence[str],
        feed: Mapping[str, np.ndarray],
    ) -> list[np.ndarray]:
        """Evaluate outputs and targets, returning only ``output_names`` values in order."""
