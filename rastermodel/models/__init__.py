"""Model filter contracts."""

from rastermodel.models.base import FilterState, ModelFilterBase

__all__ = ["FilterState", "ModelFilterBase"]
