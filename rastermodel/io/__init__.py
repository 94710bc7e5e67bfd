"""Raster image references for model filter inputs and outputs."""

from rastermodel.io.raster import RasterImage, get_geotif_options

__all__ = ["RasterImage", "get_geotif_options"]
