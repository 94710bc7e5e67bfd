"""Tests for rasterio-backed raster images."""

from pathlib import Path

import numpy as np
import pytest

from rastermodel.io import RasterImage, get_geotif_options


def test_two_dimensional_arrays_gain_band_axis():
    image = RasterImage(np.zeros((4, 5), dtype=np.float32))
    assert image.shape == (1, 4, 5)
    assert image.count == 1


def test_resolution_without_transform_is_nan():
    image = RasterImage(np.zeros((4, 5), dtype=np.float32))
    assert all(np.isnan(image.resolution))


def test_geotif_options_are_copies():
    options = get_geotif_options()
    options["compress"] = "DEFLATE"
    assert get_geotif_options()["compress"] == "LZW"


def test_raster_write_and_read(tmp_path: Path):
    """Multi-band rasters keep pixels, band count and resolution through disk."""
    pytest.importorskip("rasterio")
    from rasterio.transform import from_origin

    array = np.stack([np.full((8, 6), band, dtype=np.float32) for band in range(3)])
    image = RasterImage(
        array,
        profile={"crs": "EPSG:32633", "transform": from_origin(500000.0, 4000000.0, 2.0, 2.0)},
    )
    out_fp = image.to_file(tmp_path / "nested" / "image.tif")
    assert out_fp.exists()

    loaded = RasterImage.from_file(out_fp)
    assert loaded.shape == (3, 8, 6)
    assert loaded.resolution == (2.0, 2.0)
    assert loaded.source_fp == out_fp
    assert np.array_equal(loaded.array, array)
