"""Rasterio-backed raster images."""

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from rastermodel.parameters import GEOTIF_OPTIONS


def get_geotif_options() -> dict:
    """Return a copy of default GeoTIFF options for safe per-call mutation."""
    return dict(GEOTIF_OPTIONS)


@dataclass
class RasterImage:
    """Band-first pixel array with its rasterio profile."""

    array: np.ndarray
    profile: dict = field(default_factory=dict)
    source_fp: Path | None = None

    def __post_init__(self):
        if self.array.ndim == 2:
            self.array = self.array[np.newaxis, :, :]
        assert self.array.ndim == 3, f"raster array must be (bands, rows, cols); got {self.array.shape}"

    @classmethod
    def from_file(cls, fp: str | Path) -> "RasterImage":
        """Read every band of a raster from disk."""
        import rasterio

        path = Path(fp).expanduser().resolve()
        assert path.exists(), f"raster does not exist: {path}"
        with rasterio.open(path) as ds:
            arr = ds.read().astype(np.float32)
            profile = ds.profile.copy()
        return cls(array=arr, profile=profile, source_fp=path)

    def to_file(self, fp: str | Path, **profile_overrides) -> Path:
        """Write the raster as float32 and return the output path."""
        import rasterio

        path = Path(fp).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        out_profile = get_geotif_options()
        out_profile.update(self.profile)
        out_profile.update(dtype="float32", count=self.count, height=self.height, width=self.width)
        out_profile.update(profile_overrides)
        if not bool(out_profile.get("tiled", False)):
            out_profile.pop("blockxsize", None)
            out_profile.pop("blockysize", None)
        with rasterio.open(path, "w", **out_profile) as ds:
            ds.write(self.array.astype(np.float32, copy=False))
        return path

    @property
    def count(self) -> int:
        return int(self.array.shape[0])

    @property
    def height(self) -> int:
        return int(self.array.shape[1])

    @property
    def width(self) -> int:
        return int(self.array.shape[2])

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.count, self.height, self.width)

    @property
    def resolution(self) -> tuple[float, float]:
        """Absolute pixel size in projection units, NaN when no transform is known."""
        transform = self.profile.get("transform")
        if transform is None:
            return (float("nan"), float("nan"))
        if hasattr(transform, "a") and hasattr(transform, "e"):
            return (abs(float(transform.a)), abs(float(transform.e)))
        return (abs(float(transform[0])), abs(float(transform[4])))
